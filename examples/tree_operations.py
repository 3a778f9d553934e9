"""Tree operations — recursive copy, folder rename and recursive delete.

Demonstrates:
- copy_directory() re-uploading every file, empty folders included
- rename_file() / rename_folder() with copy-then-delete ordering
- delete_directory() returning a TreeReport
- upload_files() / delete_entries() for a whole selection
"""

from __future__ import annotations

from repo_drive import BackendCoordinates, Drive, MemorySettingsStore

if __name__ == "__main__":
    coords = BackendCoordinates(token="local", owner="me", repo="drive", backend="memory")

    with Drive(MemorySettingsStore(coords)) as drive:
        drive.upload_file("projects/alpha/readme.md", b"# Alpha\n")
        drive.upload_file("projects/alpha/src/main.py", b"print('alpha')\n")
        drive.create_directory("projects/alpha/assets")

        # --- Copy a whole folder ---
        report = drive.copy_directory("projects/alpha", "projects/beta")
        print("Copied:", [str(p) for p in report.succeeded])

        # --- Rename a file inside its folder ---
        result = drive.rename_file("projects/beta/readme.md", "README.md")
        print(f"Renamed {result.source} -> {result.destination} (complete={result.complete})")

        # --- Rename a folder ---
        result = drive.rename_folder("projects/beta", "gamma")
        print(f"Renamed {result.source} -> {result.destination} (complete={result.complete})")
        print("Projects:", [e.name for e in drive.list_children("projects")])

        # --- Delete recursively ---
        report = drive.delete_directory("projects/alpha")
        print("Deleted:", [str(p) for p in report.succeeded])
        print("Projects:", [e.name for e in drive.list_children("projects")])

        # --- Upload and delete a selection ---
        report = drive.upload_files("inbox", [("a.txt", b"a"), ("nested/b.txt", b"b")])
        print("Uploaded:", [str(p) for p in report.succeeded])
        report = drive.delete_entries(drive.list_children("inbox"))
        print("Deleted:", [str(p) for p in report.succeeded])

    print("Done!")
