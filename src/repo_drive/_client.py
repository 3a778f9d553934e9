"""ObjectStoreClient abstract base class — the flat backend contract."""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from repo_drive._config import BackendCoordinates
    from repo_drive._models import ObjectHandle, RepositoryInfo

GetResult = Union["ObjectHandle", "list[ObjectHandle]"]  # noqa: UP007


class ObjectStoreClient(abc.ABC):
    """Thin transport over a flat, hash-checked object API.

    Each method is exactly one backend round trip. There is no tree logic
    here: recursive operations live in :class:`~repo_drive.Drive`. Keys are
    escaped backend keys as produced by :func:`~repo_drive.resolve_key`.
    Backend-native exceptions must never leak; they are mapped to
    ``repo_drive`` errors.
    """

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Unique identifier for this backend type (e.g. ``'github'``)."""

    @classmethod
    @abc.abstractmethod
    def from_coordinates(cls, coords: BackendCoordinates) -> ObjectStoreClient:
        """Build a client for a configuration snapshot."""

    @abc.abstractmethod
    def get(self, key: str, *, ref: str) -> GetResult:
        """Fetch the object at ``key``, or the direct children if it is a directory.

        :raises NotFound: If nothing exists at ``key``.
        """

    @abc.abstractmethod
    def put(self, key: str, content: str, *, ref: str, message: str, expected_sha: str | None = None) -> ObjectHandle:
        """Create or update the object at ``key``.

        :param content: Base64-encoded body.
        :param expected_sha: Hash last observed; ``None`` means create.
        :raises Conflict: If ``expected_sha`` is stale, or omitted for an existing object.
        :raises PayloadTooLarge: If the backend refuses the size.
        """

    @abc.abstractmethod
    def delete(self, key: str, *, ref: str, message: str, expected_sha: str) -> None:
        """Remove the object at ``key``.

        :raises Conflict: If ``expected_sha`` is stale.
        :raises NotFound: If the object is already absent.
        """

    @abc.abstractmethod
    def download(self, handle: ObjectHandle) -> bytes:
        """Fetch a file's raw bytes through its direct-content locator.

        :raises NotFound: If the content is gone.
        """

    @abc.abstractmethod
    def content_url(self, key: str, *, ref: str) -> str:
        """Direct-content locator for ``key`` as of ``ref``. No round trip."""

    @abc.abstractmethod
    def repository_info(self) -> RepositoryInfo:
        """Fetch repository metadata; doubles as a credential check.

        :raises AuthFailure: If the credential is rejected.
        :raises NotFound: If the repository does not exist or is hidden.
        """

    def close(self) -> None:  # noqa: B027
        """Release resources. Default is a no-op."""
