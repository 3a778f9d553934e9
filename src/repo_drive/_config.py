"""Configuration model — backend coordinates and the stores that persist them."""

from __future__ import annotations

import abc
import dataclasses
import json
import os
from pathlib import Path
from typing import TYPE_CHECKING

from repo_drive._errors import InvalidPath, NotConfigured
from repo_drive._path import VirtualPath

if TYPE_CHECKING:
    from repo_drive._types import Settings

DEFAULT_API_URL = "https://api.github.com"


@dataclasses.dataclass(frozen=True)
class BackendCoordinates:
    """Where the drive lives: credential, repository, branch and root directory.

    :param token: Bearer credential attached to every request.
    :param owner: Owning user or organization.
    :param repo: Repository name.
    :param branch: Ref all operations run against.
    :param root_dir: Directory inside the repository that acts as the drive root.
    :param backend: Registered backend type (e.g. ``"github"``, ``"memory"``).
    :param api_url: Base URL of the contents API.
    """

    token: str
    owner: str
    repo: str
    branch: str = "main"
    root_dir: str = "files"
    backend: str = "github"
    api_url: str = DEFAULT_API_URL

    def __repr__(self) -> str:
        return (
            f"BackendCoordinates(owner={self.owner!r}, repo={self.repo!r}, branch={self.branch!r}, "
            f"root_dir={self.root_dir!r}, backend={self.backend!r})"
        )

    @property
    def root(self) -> VirtualPath:
        """The root directory as a path.

        :raises NotConfigured: If ``root_dir`` is malformed.
        """
        try:
            return VirtualPath(self.root_dir)
        except InvalidPath as exc:
            raise NotConfigured(f"Invalid root directory: {exc.message}", path=self.root_dir) from None

    def validate(self) -> None:
        """Check that every required field is present.

        :raises NotConfigured: If a required field is empty or the root is malformed.
        """
        missing = [f for f in ("token", "owner", "repo", "branch", "backend") if not str(getattr(self, f)).strip()]
        if missing:
            raise NotConfigured(f"Missing required settings: {', '.join(missing)}")
        _ = self.root

    def to_dict(self) -> Settings:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Settings) -> BackendCoordinates:
        """Construct from a plain dict (e.g. parsed JSON).

        Empty ``branch`` and ``root_dir`` fall back to their defaults.

        :raises NotConfigured: If a required key is missing or not a string.
        """
        values: dict[str, str] = {}
        for field in dataclasses.fields(cls):
            raw = data.get(field.name)
            if raw is None:
                continue
            if not isinstance(raw, str):
                raise NotConfigured(f"Setting '{field.name}' must be a string")
            raw = raw.strip()
            if raw or field.default is dataclasses.MISSING:
                values[field.name] = raw
        for required in ("token", "owner", "repo"):
            if required not in values:
                raise NotConfigured(f"Missing required setting '{required}'")
        return cls(**values)


class SettingsStore(abc.ABC):
    """Key-value persistence for coordinates: load, save, clear."""

    @abc.abstractmethod
    def load(self) -> Settings | None:
        """Return the saved settings, or ``None`` if nothing is saved."""

    @abc.abstractmethod
    def save(self, settings: Settings) -> None:
        """Replace the saved settings wholesale."""

    @abc.abstractmethod
    def clear(self) -> None:
        """Forget the saved settings (logout)."""

    def coordinates(self) -> BackendCoordinates:
        """Load, parse and validate a fresh snapshot.

        :raises NotConfigured: If nothing is saved or the settings are invalid.
        """
        data = self.load()
        if not data:
            raise NotConfigured("No backend settings saved")
        coords = BackendCoordinates.from_dict(data)
        coords.validate()
        return coords

    def save_coordinates(self, coords: BackendCoordinates) -> None:
        coords.validate()
        self.save(coords.to_dict())


class MemorySettingsStore(SettingsStore):
    """Settings held in process memory.

    :param initial: Optional coordinates or settings dict to start with.
    """

    def __init__(self, initial: BackendCoordinates | Settings | None = None) -> None:
        if isinstance(initial, BackendCoordinates):
            initial = initial.to_dict()
        self._data: Settings | None = dict(initial) if initial else None

    def load(self) -> Settings | None:
        return dict(self._data) if self._data is not None else None

    def save(self, settings: Settings) -> None:
        self._data = dict(settings)

    def clear(self) -> None:
        self._data = None


class JsonSettingsStore(SettingsStore):
    """Settings persisted as a JSON object in a single file.

    The file is written with owner-only permissions since it holds the token.

    :param path: Location of the JSON file.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)

    def __repr__(self) -> str:
        return f"JsonSettingsStore(path={str(self._path)!r})"

    def load(self) -> Settings | None:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            return None
        if not isinstance(data, dict):
            return None
        return data

    def save(self, settings: Settings) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(str(self._path), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(settings, fh, indent=2, sort_keys=True)

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)
