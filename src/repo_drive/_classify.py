"""File classification by extension — semantic type, icon and color for a file browser."""

from __future__ import annotations

import enum
import mimetypes


class FileType(enum.Enum):
    """Preview family a file belongs to."""

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    PDF = "pdf"
    WORD = "word"
    EXCEL = "excel"
    PPT = "ppt"
    CODE = "code"
    TEXT = "text"
    MD = "md"
    ZIP = "zip"
    OTHER = "other"


# Checked in order: an extension listed twice (``ogg``) takes the first family.
_TYPE_EXTENSIONS: dict[FileType, frozenset[str]] = {
    FileType.IMAGE: frozenset({"jpg", "jpeg", "png", "gif", "webp", "svg", "bmp", "ico", "avif", "tiff"}),
    FileType.VIDEO: frozenset({"mp4", "webm", "ogg", "mov", "avi", "mkv", "flv", "m4v"}),
    FileType.AUDIO: frozenset({"mp3", "wav", "ogg", "aac", "flac", "m4a", "opus", "weba"}),
    FileType.PDF: frozenset({"pdf"}),
    FileType.WORD: frozenset({"doc", "docx"}),
    FileType.EXCEL: frozenset({"xls", "xlsx", "csv"}),
    FileType.PPT: frozenset({"ppt", "pptx"}),
    FileType.CODE: frozenset(
        {
            "js", "ts", "jsx", "tsx", "py", "java", "c", "cpp", "cs", "go", "rs", "rb",
            "php", "swift", "kt", "dart", "sh", "bash", "zsh", "fish", "ps1",
            "html", "css", "scss", "sass", "less", "xml", "json", "yaml", "yml",
            "toml", "ini", "env", "conf", "nginx", "dockerfile", "makefile",
            "sql", "graphql", "vue", "svelte", "astro", "r", "m", "lua", "pl",
            "ex", "exs", "erl", "clj", "hs", "ml", "scala",
        }
    ),  # fmt: skip
    FileType.TEXT: frozenset(
        {
            "txt", "log", "gitignore", "gitattributes", "editorconfig", "license",
            "readme", "authors", "changelog", "contributing", "notice",
        }
    ),  # fmt: skip
    FileType.MD: frozenset({"md", "mdx", "markdown"}),
    FileType.ZIP: frozenset({"zip", "tar", "gz", "bz2", "xz", "7z", "rar", "tgz"}),
}

_ICON_EXTENSIONS: dict[str, frozenset[str]] = {
    "fa-file-image": frozenset({"jpg", "jpeg", "png", "gif", "webp", "svg", "bmp", "ico", "avif"}),
    "fa-file-video": frozenset({"mp4", "webm", "mov", "avi", "mkv", "m4v"}),
    "fa-file-audio": frozenset({"mp3", "wav", "aac", "flac", "m4a"}),
    "fa-file-pdf": frozenset({"pdf"}),
    "fa-file-word": frozenset({"doc", "docx"}),
    "fa-file-excel": frozenset({"xls", "xlsx"}),
    "fa-file-csv": frozenset({"csv"}),
    "fa-file-powerpoint": frozenset({"ppt", "pptx"}),
    "fa-file-code": frozenset(
        {"js", "ts", "jsx", "tsx", "py", "java", "c", "cpp", "html", "css", "json", "xml", "sql", "php"}
    ),
    "fa-file-lines": frozenset({"md", "txt", "log"}),
    "fa-file-zipper": frozenset({"zip", "rar", "tar", "gz", "7z", "bz2", "xz", "tgz"}),
}

_COLOR_EXTENSIONS: dict[str, frozenset[str]] = {
    "icon-pdf": frozenset({"pdf"}),
    "icon-word": frozenset({"doc", "docx"}),
    "icon-excel": frozenset({"xls", "xlsx", "csv"}),
    "icon-ppt": frozenset({"ppt", "pptx"}),
    "icon-image": frozenset({"jpg", "jpeg", "png", "gif", "webp", "svg", "bmp"}),
    "icon-video": frozenset({"mp4", "webm", "mov", "avi", "mkv"}),
    "icon-audio": frozenset({"mp3", "wav", "aac", "flac", "m4a"}),
    "icon-zip": frozenset({"zip", "rar", "tar", "gz", "7z", "bz2", "tgz", "xz"}),
    "icon-code": frozenset({"js", "ts", "jsx", "tsx", "py", "java", "html", "css", "json"}),
    "icon-text": frozenset({"md", "txt", "log"}),
}


def _invert(table: dict[str, frozenset[str]]) -> dict[str, str]:
    return {ext: value for value, exts in table.items() for ext in exts}


_EXT_ICON = _invert(_ICON_EXTENSIONS)
_EXT_COLOR = _invert(_COLOR_EXTENSIONS)

DEFAULT_ICON = "fa-file"
FOLDER_ICON = "fa-folder"
DEFAULT_COLOR = "icon-other"
DEFAULT_MIME_TYPE = "application/octet-stream"


def extension(name: str) -> str:
    """Lower-cased text after the last dot; the whole name if there is none."""
    return name.rsplit(".", 1)[-1].lower()


def get_type(name: str) -> FileType:
    ext = extension(name)
    for file_type, exts in _TYPE_EXTENSIONS.items():
        if ext in exts:
            return file_type
    return FileType.OTHER


def get_icon(name: str) -> str:
    """Font Awesome icon class for a file name."""
    return _EXT_ICON.get(extension(name), DEFAULT_ICON)


def get_color_class(name: str) -> str:
    return _EXT_COLOR.get(extension(name), DEFAULT_COLOR)


def is_previewable(name: str) -> bool:
    """``True`` for every family a preview renderer exists for."""
    return get_type(name) is not FileType.OTHER


def guess_mime_type(name: str) -> str:
    mime, _ = mimetypes.guess_type(name, strict=False)
    return mime or DEFAULT_MIME_TYPE
