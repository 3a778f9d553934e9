"""Configuration — coordinates, settings stores and swapping backends.

Demonstrates:
- BackendCoordinates from a plain dict (e.g. parsed JSON)
- Persisting coordinates with JsonSettingsStore
- Pointing a drive at GitHub (not contacted unless a token is set)
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from repo_drive import BackendCoordinates, Drive, JsonSettingsStore, RepoDriveError

if __name__ == "__main__":
    # --- Option 1: from_dict(), blank optionals fall back to defaults ---
    coords = BackendCoordinates.from_dict(
        {"token": "local", "owner": "me", "repo": "drive", "branch": "", "backend": "memory"}
    )
    print(coords)

    # --- Option 2: persisted JSON settings (file is written owner-only) ---
    with tempfile.TemporaryDirectory() as tmp:
        settings = JsonSettingsStore(Path(tmp) / "settings.json")
        with Drive(settings) as drive:
            drive.configure(coords)
            drive.upload_file("hello.txt", b"hi")
            print("Saved settings:", sorted((settings.load() or {}).keys()))
            drive.logout()
            print("After logout:", settings.load())

    # --- Option 3: a real GitHub repository ---
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        github = BackendCoordinates(
            token=token,
            owner=os.environ.get("GITHUB_OWNER", "octocat"),
            repo=os.environ.get("GITHUB_REPO", "Hello-World"),
            branch=os.environ.get("GITHUB_BRANCH", "master"),
        )
        with tempfile.TemporaryDirectory() as tmp:
            with Drive(JsonSettingsStore(Path(tmp) / "settings.json")) as drive:
                try:
                    info = drive.configure(github)
                    print(f"GitHub: {info}")
                    print("Root:", [e.name for e in drive.list_children()])
                except RepoDriveError as exc:
                    print(f"GitHub: {type(exc).__name__}: {exc}")

    print("Done!")
