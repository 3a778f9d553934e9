"""Immutable metadata and result models."""

from __future__ import annotations

import dataclasses
import enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from repo_drive._errors import RepoDriveError
    from repo_drive._path import VirtualPath

PLACEHOLDER_NAME = ".gitkeep"
"""Zero-length object that keeps an otherwise-empty directory listable."""


class ObjectKind(enum.Enum):
    """What a backend object is. Directories are never stored, only enumerated."""

    FILE = "file"
    DIRECTORY = "dir"
    OTHER = "other"

    @classmethod
    def from_api(cls, value: object) -> ObjectKind:
        """Map a contents-API ``type`` field. Symlinks and submodules become ``OTHER``."""
        for kind in cls:
            if kind.value == value:
                return kind
        return cls.OTHER


@dataclasses.dataclass(frozen=True, eq=False)
class ObjectHandle:
    """Snapshot of a backend object's identity, stale as soon as anyone mutates it.

    :param key: Backend key (root directory included).
    :param name: Final key segment, unescaped.
    :param kind: File, directory or other.
    :param sha: Content hash assigned by the backend.
    :param size: Length in bytes (``0`` for directories).
    :param download_url: Direct-content locator, files only.
    :param encoded_content: Base64 body when the backend inlined it.
    :param encoding: Encoding of ``encoded_content`` as reported by the backend.
    """

    key: str
    name: str
    kind: ObjectKind
    sha: str
    size: int = 0
    download_url: Optional[str] = None
    encoded_content: Optional[str] = None
    encoding: Optional[str] = None

    @property
    def is_file(self) -> bool:
        return self.kind is ObjectKind.FILE

    @property
    def is_dir(self) -> bool:
        return self.kind is ObjectKind.DIRECTORY

    @property
    def has_inline_content(self) -> bool:
        """``True`` if the body came back with the metadata call."""
        return self.encoded_content is not None and self.encoding == "base64"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ObjectHandle):
            return (self.key, self.sha) == (other.key, other.sha)
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self.key, self.sha))


@dataclasses.dataclass(frozen=True)
class DirectoryEntry:
    """One child of a directory listing, addressed by its virtual path."""

    name: str
    path: VirtualPath
    kind: ObjectKind
    sha: str
    size: int = 0
    download_url: Optional[str] = None

    @property
    def is_file(self) -> bool:
        return self.kind is ObjectKind.FILE

    @property
    def is_dir(self) -> bool:
        return self.kind is ObjectKind.DIRECTORY

    @property
    def is_placeholder(self) -> bool:
        return self.is_file and self.name == PLACEHOLDER_NAME

    @classmethod
    def from_handle(cls, parent: VirtualPath, handle: ObjectHandle) -> DirectoryEntry:
        return cls(
            name=handle.name,
            path=parent / handle.name,
            kind=handle.kind,
            sha=handle.sha,
            size=handle.size,
            download_url=handle.download_url,
        )


@dataclasses.dataclass(frozen=True)
class TransferUnit:
    """An in-flight upload. Lives for the duration of one upload call.

    :param path: Destination virtual path.
    :param data: Source bytes.
    :param expected_sha: Hash of the object being replaced, ``None`` to create.
    """

    path: VirtualPath
    data: bytes
    expected_sha: Optional[str] = None

    @property
    def is_create(self) -> bool:
        return self.expected_sha is None


@dataclasses.dataclass
class TreeReport:
    """Outcome of a recursive operation.

    Both lists reflect persisted backend state: there is no rollback.
    """

    succeeded: list[VirtualPath] = dataclasses.field(default_factory=list)
    failed: list[tuple[VirtualPath, RepoDriveError]] = dataclasses.field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclasses.dataclass(frozen=True)
class RenameResult:
    """Outcome of a copy-then-delete rename.

    :param source: The original location.
    :param destination: The new location, which holds the content.
    :param warning: Why the original could not be removed, or ``None``.
        When set, the content exists at both locations.
    """

    source: VirtualPath
    destination: VirtualPath
    warning: Optional[RepoDriveError] = None

    @property
    def complete(self) -> bool:
        return self.warning is None


@dataclasses.dataclass(frozen=True)
class RepositoryInfo:
    """Repository-level metadata used to verify a connection.

    :param size_kb: Repository size as reported by the backend, in KiB.
    """

    full_name: str
    default_branch: str
    private: bool = False
    size_kb: int = 0

    @property
    def size_bytes(self) -> int:
        return self.size_kb * 1024
