"""Type aliases used throughout repo_drive."""

from __future__ import annotations

from typing import BinaryIO

WritableContent = BinaryIO | bytes
Settings = dict[str, object]
