"""Normalized error hierarchy for repo_drive."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from repo_drive._models import TreeReport


class RepoDriveError(Exception):
    """Base class for all repo_drive errors.

    :param message: Human-readable error description.
    :param path: The path involved in the error, if any.
    :param backend: The backend name involved, if any.
    """

    def __init__(self, message: str = "", *, path: Optional[str] = None, backend: Optional[str] = None) -> None:
        self.path = path
        self.backend = backend
        super().__init__(message)

    @property
    def message(self) -> str:
        """The bare message, without path or backend context."""
        return super().__str__()

    def _context(self) -> list[tuple[str, object]]:
        ctx: list[tuple[str, object]] = []
        if self.path is not None:
            ctx.append(("path", self.path))
        if self.backend is not None:
            ctx.append(("backend", self.backend))
        return ctx

    def __str__(self) -> str:
        parts = [self.message]
        parts.extend(f"{key}={value!r}" for key, value in self._context())
        return " | ".join(p for p in parts if p)

    def __repr__(self) -> str:
        cls = type(self).__name__
        args = [repr(self.message)]
        args.extend(f"{key}={value!r}" for key, value in self._context())
        return f"{cls}({', '.join(args)})"


class InvalidPath(RepoDriveError):
    """Raised for malformed or ambiguous virtual paths. Never reaches the backend."""


class NotFound(RepoDriveError):
    """Raised when an object does not exist."""


class Conflict(RepoDriveError):
    """Raised when a mutation is rejected because the supplied content hash is stale.

    :param expected_sha: The hash the caller presented, if any.
    """

    def __init__(
        self,
        message: str = "",
        *,
        path: Optional[str] = None,
        backend: Optional[str] = None,
        expected_sha: Optional[str] = None,
    ) -> None:
        self.expected_sha = expected_sha
        super().__init__(message, path=path, backend=backend)

    def _context(self) -> list[tuple[str, object]]:
        ctx = super()._context()
        if self.expected_sha is not None:
            ctx.append(("expected_sha", self.expected_sha))
        return ctx


class AlreadyExists(Conflict):
    """Raised when a create targets a path that is already occupied."""


class PayloadTooLarge(RepoDriveError):
    """Raised when content exceeds the per-object size ceiling.

    :param size: Size of the rejected payload in bytes, if known.
    :param limit: The ceiling that was exceeded, if known.
    """

    def __init__(
        self,
        message: str = "",
        *,
        path: Optional[str] = None,
        backend: Optional[str] = None,
        size: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> None:
        self.size = size
        self.limit = limit
        super().__init__(message, path=path, backend=backend)

    def _context(self) -> list[tuple[str, object]]:
        ctx = super()._context()
        if self.size is not None:
            ctx.append(("size", self.size))
        if self.limit is not None:
            ctx.append(("limit", self.limit))
        return ctx


class AuthFailure(RepoDriveError):
    """Raised when the backend rejects the credential or denies access."""


class RateLimited(RepoDriveError):
    """Raised when the backend's rate limit is exhausted.

    :param reset_at: When the limit resets, if the backend said so.
    """

    def __init__(
        self,
        message: str = "",
        *,
        path: Optional[str] = None,
        backend: Optional[str] = None,
        reset_at: Optional[datetime] = None,
    ) -> None:
        self.reset_at = reset_at
        super().__init__(message, path=path, backend=backend)

    def _context(self) -> list[tuple[str, object]]:
        ctx = super()._context()
        if self.reset_at is not None:
            ctx.append(("reset_at", self.reset_at.isoformat()))
        return ctx


class BackendUnavailable(RepoDriveError):
    """Raised when the backend cannot be reached or fails server-side."""


class NotConfigured(RepoDriveError):
    """Raised when backend coordinates are missing or invalid."""


class AggregateFailure(RepoDriveError):
    """Raised when one or more steps of a recursive operation failed.

    The backend is left in the partial state the completed steps produced.

    :param report: Which paths succeeded and which failed, with their causes.
    """

    def __init__(
        self,
        message: str = "",
        *,
        path: Optional[str] = None,
        backend: Optional[str] = None,
        report: TreeReport,
    ) -> None:
        self.report = report
        super().__init__(message, path=path, backend=backend)

    @property
    def failures(self) -> list[tuple[str, RepoDriveError]]:
        """Failed sub-paths (as strings) paired with their individual causes."""
        return [(str(p), exc) for p, exc in self.report.failed]

    def _context(self) -> list[tuple[str, object]]:
        ctx = super()._context()
        ctx.append(("failed", [p for p, _ in self.failures]))
        return ctx
