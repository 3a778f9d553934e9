"""TransferCodec — binary/text transcoding of object bodies and the size ceiling."""

from __future__ import annotations

import base64
import binascii
from typing import Optional

from repo_drive._errors import PayloadTooLarge

MAX_OBJECT_SIZE = 100 * 1024 * 1024
"""Per-object ceiling of the contents API, in bytes (100 MiB)."""


class TransferCodec:
    """Base64 transcoding with a client-side size check.

    The limit is advisory: it fails fast before any transfer, but the backend
    may still reject a payload on its own terms.

    :param limit: Maximum object size in bytes.
    """

    __slots__ = ("_limit",)

    def __init__(self, limit: int = MAX_OBJECT_SIZE) -> None:
        if limit < 0:
            raise ValueError("limit must be non-negative")
        self._limit = limit

    @property
    def limit(self) -> int:
        return self._limit

    def __repr__(self) -> str:
        return f"TransferCodec(limit={self._limit})"

    def enforce_limit(self, data: bytes, *, path: Optional[str] = None) -> None:
        """Raise if ``data`` exceeds the ceiling.

        :raises PayloadTooLarge: If ``len(data)`` is above the limit.
        """
        if len(data) > self._limit:
            raise PayloadTooLarge(
                f"Content is {len(data)} bytes, limit is {self._limit}",
                path=path,
                size=len(data),
                limit=self._limit,
            )

    @staticmethod
    def encode(data: bytes) -> str:
        """Encode bytes as single-line standard base64."""
        return base64.b64encode(data).decode("ascii")

    @staticmethod
    def decode(text: str) -> bytes:
        """Decode base64 text, ignoring the line breaks GitHub inserts.

        :raises ValueError: If the text is not valid base64.
        """
        cleaned = "".join(text.split())
        try:
            return base64.b64decode(cleaned, validate=True)
        except binascii.Error as exc:
            raise ValueError(f"Malformed base64 content: {exc}") from None
