"""Quickstart — configure a drive, upload, list and read with repo-drive.

Demonstrates:
- Saving backend coordinates (in-memory backend, no network)
- Uploading files into nested folders
- Listing a folder and reading a file back
"""

from __future__ import annotations

from repo_drive import BackendCoordinates, Drive, MemorySettingsStore

if __name__ == "__main__":
    coords = BackendCoordinates(token="local", owner="me", repo="drive", backend="memory")

    with Drive(MemorySettingsStore()) as drive:
        info = drive.configure(coords)
        print(f"Connected to {info.full_name if info else '?'}")

        # Upload a couple of files
        drive.upload_file("docs/hello.txt", b"Hello, world!")
        drive.upload_file("docs/notes/todo.md", b"- write more docs\n")
        drive.create_directory("docs/empty")

        # List a folder: directories first, placeholder hidden
        for entry in drive.list_children("docs"):
            kind = "dir " if entry.is_dir else "file"
            print(f"  {kind} {entry.path} ({entry.size} bytes)")

        # Read it back
        print(f"Content: {drive.read_bytes('docs/hello.txt')!r}")
        print(f"Preview URL: {drive.content_url('docs/hello.txt')}")

    print("Done!")
