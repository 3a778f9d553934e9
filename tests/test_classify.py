"""Tests for extension-based file classification."""

from __future__ import annotations

import pytest

from repo_drive._classify import (
    DEFAULT_COLOR,
    DEFAULT_ICON,
    DEFAULT_MIME_TYPE,
    FileType,
    extension,
    get_color_class,
    get_icon,
    get_type,
    guess_mime_type,
    is_previewable,
)


class TestExtension:
    def test_last_dot_wins(self) -> None:
        assert extension("archive.tar.gz") == "gz"

    def test_lowercased(self) -> None:
        assert extension("PHOTO.JPG") == "jpg"

    def test_no_dot_is_whole_name(self) -> None:
        assert extension("Makefile") == "makefile"

    def test_dotfile(self) -> None:
        assert extension(".gitignore") == "gitignore"


class TestGetType:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("a.PNG", FileType.IMAGE),
            ("clip.mkv", FileType.VIDEO),
            ("song.flac", FileType.AUDIO),
            ("doc.pdf", FileType.PDF),
            ("letter.docx", FileType.WORD),
            ("table.csv", FileType.EXCEL),
            ("deck.pptx", FileType.PPT),
            ("main.py", FileType.CODE),
            ("Dockerfile", FileType.CODE),
            ("notes.txt", FileType.TEXT),
            ("LICENSE", FileType.TEXT),
            ("README.md", FileType.MD),
            ("backup.tgz", FileType.ZIP),
            ("data.bin", FileType.OTHER),
        ],
    )
    def test_families(self, name: str, expected: FileType) -> None:
        assert get_type(name) is expected

    def test_ogg_is_video_first(self) -> None:
        assert get_type("track.ogg") is FileType.VIDEO

    def test_previewable(self) -> None:
        assert is_previewable("a.md")
        assert not is_previewable("a.bin")


class TestIconAndColor:
    def test_icon(self) -> None:
        assert get_icon("a.pdf") == "fa-file-pdf"
        assert get_icon("a.csv") == "fa-file-csv"
        assert get_icon("a.xlsx") == "fa-file-excel"
        assert get_icon("a.bin") == DEFAULT_ICON

    def test_color(self) -> None:
        assert get_color_class("a.csv") == "icon-excel"
        assert get_color_class("a.JSON") == "icon-code"
        assert get_color_class("a.go") == DEFAULT_COLOR


class TestMimeType:
    def test_known(self) -> None:
        assert guess_mime_type("index.html") == "text/html"

    def test_unknown_falls_back(self) -> None:
        assert guess_mime_type("blob.zzqq") == DEFAULT_MIME_TYPE
