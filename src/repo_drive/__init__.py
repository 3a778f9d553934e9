"""A folder/file drive on top of a version-controlled repository's flat contents API."""

from repo_drive._classify import FileType, get_color_class, get_icon, get_type, guess_mime_type, is_previewable
from repo_drive._client import ObjectStoreClient
from repo_drive._codec import MAX_OBJECT_SIZE, TransferCodec
from repo_drive._config import BackendCoordinates, JsonSettingsStore, MemorySettingsStore, SettingsStore
from repo_drive._drive import Drive
from repo_drive._errors import (
    AggregateFailure,
    AlreadyExists,
    AuthFailure,
    BackendUnavailable,
    Conflict,
    InvalidPath,
    NotConfigured,
    NotFound,
    PayloadTooLarge,
    RateLimited,
    RepoDriveError,
)
from repo_drive._models import (
    PLACEHOLDER_NAME,
    DirectoryEntry,
    ObjectHandle,
    ObjectKind,
    RenameResult,
    RepositoryInfo,
    TransferUnit,
    TreeReport,
)
from repo_drive._path import VirtualPath, resolve_key
from repo_drive._registry import register_backend

__version__ = "0.1.0"

__all__ = [
    # Core
    "Drive",
    "ObjectStoreClient",
    "register_backend",
    # Path & Models
    "VirtualPath",
    "resolve_key",
    "ObjectHandle",
    "ObjectKind",
    "DirectoryEntry",
    "TransferUnit",
    "TreeReport",
    "RenameResult",
    "RepositoryInfo",
    "PLACEHOLDER_NAME",
    # Codec
    "TransferCodec",
    "MAX_OBJECT_SIZE",
    # Config
    "BackendCoordinates",
    "SettingsStore",
    "MemorySettingsStore",
    "JsonSettingsStore",
    # Classification
    "FileType",
    "get_type",
    "get_icon",
    "get_color_class",
    "is_previewable",
    "guess_mime_type",
    # Errors
    "RepoDriveError",
    "InvalidPath",
    "NotFound",
    "Conflict",
    "AlreadyExists",
    "PayloadTooLarge",
    "AuthFailure",
    "RateLimited",
    "BackendUnavailable",
    "NotConfigured",
    "AggregateFailure",
    # Version
    "__version__",
]
