"""VirtualPath and key resolution — pure path algebra, no I/O."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final, Union
from urllib.parse import quote

from repo_drive._errors import InvalidPath

if TYPE_CHECKING:
    from collections.abc import Iterable


class VirtualPath:
    """An immutable, normalized path relative to the configured root directory.

    Leading and trailing slashes are stripped. An empty segment (``a//b``), a
    ``.`` or ``..`` segment and a null byte are rejected. The empty string is
    the root.

    :param raw: The raw path string to normalize and validate.
    :raises InvalidPath: If the path is malformed.
    """

    __slots__ = ("_parts",)
    _parts: Final[tuple[str, ...]]  # type: ignore[misc]

    def __init__(self, raw: str = "") -> None:
        object.__setattr__(self, "_parts", self._split(raw))

    @staticmethod
    def _split(raw: str) -> tuple[str, ...]:
        stripped = raw.strip("/")
        if not stripped:
            return ()
        parts = tuple(stripped.split("/"))
        for segment in parts:
            _check_segment(segment, raw)
        return parts

    @classmethod
    def from_parts(cls, *segments: str) -> VirtualPath:
        """Build a path from literal segments.

        A ``/`` inside a segment is part of the name, not a separator.
        """
        for segment in segments:
            _check_segment(segment, "/".join(segments))
        return cls._from_tuple(tuple(segments))

    @classmethod
    def _from_tuple(cls, parts: tuple[str, ...]) -> VirtualPath:
        p = object.__new__(cls)
        object.__setattr__(p, "_parts", parts)
        return p

    @property
    def parts(self) -> tuple[str, ...]:
        """Tuple of path segments."""
        return self._parts

    @property
    def is_root(self) -> bool:
        return not self._parts

    @property
    def name(self) -> str:
        """Final segment, or empty string for the root."""
        return self._parts[-1] if self._parts else ""

    @property
    def parent(self) -> VirtualPath:
        """Containing directory. The parent of the root is the root."""
        return self._from_tuple(self._parts[:-1])

    @property
    def suffix(self) -> str:
        """File extension including the dot, or empty string."""
        name = self.name
        dot = name.rfind(".")
        if dot <= 0:
            return ""
        return name[dot:]

    def with_name(self, name: str) -> VirtualPath:
        """Sibling path with the final segment replaced by ``name``.

        :raises InvalidPath: If this is the root or ``name`` is not a valid segment.
        """
        if self.is_root:
            raise InvalidPath("The root has no name to replace", path=str(self))
        _check_segment(name, name)
        return self._from_tuple((*self._parts[:-1], name))

    def is_relative_to(self, other: VirtualPath) -> bool:
        return self._parts[: len(other._parts)] == other._parts

    def relative_to(self, other: VirtualPath) -> tuple[str, ...]:
        """Segments of this path below ``other``.

        :raises InvalidPath: If this path is not inside ``other``.
        """
        if not self.is_relative_to(other):
            raise InvalidPath(f"{str(self)!r} is not under {str(other)!r}", path=str(self))
        return self._parts[len(other._parts) :]

    def joinpath(self, segments: Iterable[str]) -> VirtualPath:
        extra = tuple(segments)
        for segment in extra:
            _check_segment(segment, segment)
        return self._from_tuple(self._parts + extra)

    def __truediv__(self, name: str) -> VirtualPath:
        return self.joinpath((name,))

    def __str__(self) -> str:
        return "/".join(self._parts)

    def __repr__(self) -> str:
        return f"VirtualPath({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, VirtualPath):
            return self._parts == other._parts
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._parts)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"VirtualPath is immutable: cannot set '{name}'")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"VirtualPath is immutable: cannot delete '{name}'")


PathArg = Union[str, VirtualPath]  # noqa: UP007


def _check_segment(segment: str, raw: str) -> None:
    if segment == "":
        raise InvalidPath("Path contains an empty segment", path=raw)
    if segment in (".", ".."):
        raise InvalidPath(f"Path contains a {segment!r} segment", path=raw)
    if "\0" in segment:
        raise InvalidPath("Path contains null byte", path=raw)


def as_path(path: PathArg) -> VirtualPath:
    """Coerce a string or VirtualPath to a VirtualPath."""
    if isinstance(path, VirtualPath):
        return path
    return VirtualPath(path)


def escape_segment(segment: str) -> str:
    """Percent-escape one segment; ``/`` is always escaped."""
    return quote(segment, safe="")


def resolve_key(root: PathArg, path: PathArg) -> str:
    """Join the root directory and a virtual path into an escaped backend key.

    Each segment is escaped independently, so distinct normalized paths never
    share a key.

    :raises InvalidPath: If either input contains an empty segment.
    """
    parts = as_path(root).parts + as_path(path).parts
    return "/".join(escape_segment(s) for s in parts)
