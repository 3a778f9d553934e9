"""In-memory object store backend — stdlib-only reference implementation."""

from __future__ import annotations

import hashlib
import threading
from typing import TYPE_CHECKING
from urllib.parse import quote, unquote

from repo_drive._client import ObjectStoreClient
from repo_drive._codec import MAX_OBJECT_SIZE, TransferCodec
from repo_drive._errors import Conflict, NotFound, PayloadTooLarge, RepoDriveError
from repo_drive._models import ObjectHandle, ObjectKind, RepositoryInfo

if TYPE_CHECKING:
    from repo_drive._client import GetResult
    from repo_drive._config import BackendCoordinates

_URL_SCHEME = "memory://"


def blob_sha(data: bytes) -> str:
    """Git blob hash of ``data``, the same value GitHub reports as ``sha``."""
    return hashlib.sha1(b"blob %d\0" % len(data) + data).hexdigest()  # noqa: S324


class MemoryObjectStore(ObjectStoreClient):
    """Flat key → bytes store with per-ref namespaces and git blob hashes.

    Directories are derived from key prefixes, exactly as on the contents
    API: a directory exists while at least one object lives under it.

    :param owner: Reported repository owner.
    :param repo: Reported repository name.
    :param limit: Per-object size ceiling in bytes.
    """

    def __init__(self, owner: str = "local", repo: str = "drive", *, limit: int = MAX_OBJECT_SIZE) -> None:
        self._owner = owner
        self._repo = repo
        self._codec = TransferCodec(limit)
        self._refs: dict[str, dict[str, bytes]] = {}
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "memory"

    @classmethod
    def from_coordinates(cls, coords: BackendCoordinates) -> MemoryObjectStore:
        return cls(owner=coords.owner, repo=coords.repo)

    def __repr__(self) -> str:
        return f"MemoryObjectStore(owner={self._owner!r}, repo={self._repo!r})"

    # region: helpers

    def _objects(self, ref: str) -> dict[str, bytes]:
        return self._refs.setdefault(ref, {})

    def _file_handle(self, key: str, ref: str, data: bytes, *, with_content: bool) -> ObjectHandle:
        return ObjectHandle(
            key=key,
            name=unquote(key.rsplit("/", 1)[-1]),
            kind=ObjectKind.FILE,
            sha=blob_sha(data),
            size=len(data),
            download_url=self.content_url(key, ref=ref),
            encoded_content=self._codec.encode(data) if with_content else None,
            encoding="base64" if with_content else None,
        )

    @staticmethod
    def _dir_handle(key: str, children: list[str]) -> ObjectHandle:
        digest = hashlib.sha1("\n".join(sorted(children)).encode()).hexdigest()  # noqa: S324
        return ObjectHandle(key=key, name=unquote(key.rsplit("/", 1)[-1]), kind=ObjectKind.DIRECTORY, sha=digest)

    @staticmethod
    def _under(objects: dict[str, bytes], key: str) -> list[str]:
        if not key:
            return list(objects)
        prefix = key + "/"
        return [k for k in objects if k.startswith(prefix)]

    def _children(self, objects: dict[str, bytes], key: str, ref: str) -> list[ObjectHandle]:
        offset = len(key) + 1 if key else 0
        files: list[ObjectHandle] = []
        dirs: dict[str, list[str]] = {}
        for k in self._under(objects, key):
            head, sep, _rest = k[offset:].partition("/")
            child_key = f"{key}/{head}" if key else head
            if sep:
                dirs.setdefault(child_key, []).append(k)
            else:
                files.append(self._file_handle(child_key, ref, objects[k], with_content=False))
        handles = files + [self._dir_handle(k, v) for k, v in dirs.items()]
        return sorted(handles, key=lambda h: h.key)

    # endregion

    # region: flat operations

    def get(self, key: str, *, ref: str) -> GetResult:
        with self._lock:
            objects = self._objects(ref)
            if key in objects:
                return self._file_handle(key, ref, objects[key], with_content=True)
            children = self._children(objects, key, ref)
            if not children and key:
                raise NotFound(f"Not found: {key}", path=key, backend=self.name)
            return children

    def put(self, key: str, content: str, *, ref: str, message: str, expected_sha: str | None = None) -> ObjectHandle:
        try:
            data = self._codec.decode(content)
        except ValueError as exc:
            raise RepoDriveError(str(exc), path=key, backend=self.name) from None
        try:
            self._codec.enforce_limit(data, path=key)
        except PayloadTooLarge as exc:
            exc.backend = self.name
            raise
        with self._lock:
            objects = self._objects(ref)
            if not key or self._under(objects, key):
                raise Conflict(f"A directory exists at {key!r}", path=key, backend=self.name)
            segments = key.split("/")
            for i in range(1, len(segments)):
                if "/".join(segments[:i]) in objects:
                    raise Conflict(f"A file blocks the directory for {key!r}", path=key, backend=self.name)
            current = objects.get(key)
            if current is None and expected_sha is not None:
                raise Conflict(
                    f"Object {key!r} no longer exists", path=key, backend=self.name, expected_sha=expected_sha
                )
            if current is not None:
                if expected_sha is None:
                    raise Conflict(f"Object {key!r} exists and no sha was supplied", path=key, backend=self.name)
                if blob_sha(current) != expected_sha:
                    raise Conflict(
                        f"sha does not match for {key!r}", path=key, backend=self.name, expected_sha=expected_sha
                    )
            objects[key] = data
            return self._file_handle(key, ref, data, with_content=False)

    def delete(self, key: str, *, ref: str, message: str, expected_sha: str) -> None:
        with self._lock:
            objects = self._objects(ref)
            current = objects.get(key)
            if current is None:
                raise NotFound(f"Not found: {key}", path=key, backend=self.name)
            if blob_sha(current) != expected_sha:
                raise Conflict(
                    f"sha does not match for {key!r}", path=key, backend=self.name, expected_sha=expected_sha
                )
            del objects[key]

    def download(self, handle: ObjectHandle) -> bytes:
        url = handle.download_url or ""
        if not url.startswith(_URL_SCHEME):
            raise NotFound(f"No direct-content locator for {handle.key!r}", path=handle.key, backend=self.name)
        ref, _, key = url[len(_URL_SCHEME) :].partition("/")
        with self._lock:
            data = self._objects(unquote(ref)).get(key)
        if data is None:
            raise NotFound(f"Not found: {key}", path=key, backend=self.name)
        return data

    def content_url(self, key: str, *, ref: str) -> str:
        return f"{_URL_SCHEME}{quote(ref, safe='')}/{key}"

    def repository_info(self) -> RepositoryInfo:
        with self._lock:
            total = sum(len(d) for objects in self._refs.values() for d in objects.values())
        return RepositoryInfo(
            full_name=f"{self._owner}/{self._repo}",
            default_branch="main",
            private=True,
            size_kb=total // 1024,
        )

    # endregion
