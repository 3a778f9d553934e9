"""Error handling — catching NotFound, Conflict, AlreadyExists, AggregateFailure, etc.

Demonstrates the normalized error hierarchy and how to handle errors
programmatically using structured attributes.
"""

from __future__ import annotations

from repo_drive import (
    AlreadyExists,
    BackendCoordinates,
    Conflict,
    Drive,
    InvalidPath,
    MemorySettingsStore,
    NotConfigured,
    NotFound,
    PayloadTooLarge,
    RepoDriveError,
    TransferCodec,
)

if __name__ == "__main__":
    # --- NotConfigured: nothing saved yet ---
    try:
        Drive(MemorySettingsStore()).list_children()
    except NotConfigured as exc:
        print(f"NotConfigured: {exc}")

    coords = BackendCoordinates(token="local", owner="me", repo="drive", backend="memory")
    with Drive(MemorySettingsStore(coords), codec=TransferCodec(limit=1024)) as drive:
        # --- Missing folders list as empty unless strict ---
        print(f"\nlist_children('docs') -> {drive.list_children('docs')}")
        try:
            drive.list_children("docs", strict=True)
        except NotFound as exc:
            print(f"NotFound: {exc}")
            print(f"  path={exc.path}, backend={exc.backend}")

        # --- Conflict: stale hash on delete ---
        old = drive.upload_file("a.txt", b"one")
        drive.upload_file("a.txt", b"two")
        try:
            drive.delete_file("a.txt", old.sha)
        except Conflict as exc:
            print(f"\nConflict: {exc}")
            print(f"  expected_sha={exc.expected_sha}")

        # --- AlreadyExists: rename onto a taken name ---
        drive.upload_file("b.txt", b"b")
        try:
            drive.rename_file("a.txt", "b.txt")
        except AlreadyExists as exc:
            print(f"\nAlreadyExists: {exc}")

        # --- PayloadTooLarge: raised before any backend call ---
        try:
            drive.upload_file("big.bin", b"\0" * 2048)
        except PayloadTooLarge as exc:
            print(f"\nPayloadTooLarge: size={exc.size}, limit={exc.limit}")

        # --- InvalidPath (path traversal attempt) ---
        try:
            drive.read_bytes("../../etc/passwd")
        except InvalidPath as exc:
            print(f"\nInvalidPath: {exc}")

        # --- Catch any repo-drive error with the base class ---
        for path in ["missing.txt", "a//b"]:
            try:
                drive.read_bytes(path)
            except RepoDriveError as exc:
                print(f"\nRepoDriveError ({type(exc).__name__}): {exc}")

    print("\nDone!")
