"""Backend registry — maps backend type names to client classes."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from repo_drive._client import ObjectStoreClient
    from repo_drive._config import BackendCoordinates

# Global client factory registry: maps type strings to client classes.
_BACKEND_FACTORIES: dict[str, type[ObjectStoreClient]] = {}


def register_backend(type_name: str, cls: type[ObjectStoreClient]) -> None:
    """Register a client class for a given backend type string.

    :param type_name: The type identifier (e.g. ``"github"``).
    :param cls: The client class; built with ``cls.from_coordinates(coords)``.
    """
    _BACKEND_FACTORIES[type_name] = cls


def _register_builtin_backends() -> None:
    """Register the built-in backends."""
    from repo_drive.backends._github import GitHubContentsClient
    from repo_drive.backends._memory import MemoryObjectStore

    _BACKEND_FACTORIES.setdefault("github", GitHubContentsClient)
    _BACKEND_FACTORIES.setdefault("memory", MemoryObjectStore)


def registered_backends() -> list[str]:
    _register_builtin_backends()
    return sorted(_BACKEND_FACTORIES)


def create_client(coords: BackendCoordinates) -> ObjectStoreClient:
    """Instantiate the client registered for ``coords.backend``.

    :raises ValueError: If the backend type is unknown.
    """
    _register_builtin_backends()
    if coords.backend not in _BACKEND_FACTORIES:
        raise ValueError(
            f"Unknown backend type '{coords.backend}'. Registered types: {sorted(_BACKEND_FACTORIES.keys())}"
        )
    return _BACKEND_FACTORIES[coords.backend].from_coordinates(coords)
