"""Drive — tree-level operations composed from flat object calls."""

from __future__ import annotations

import dataclasses
import logging
import threading
from typing import TYPE_CHECKING, Callable

from repo_drive._codec import TransferCodec
from repo_drive._errors import (
    AggregateFailure,
    AlreadyExists,
    Conflict,
    InvalidPath,
    NotConfigured,
    NotFound,
    RepoDriveError,
)
from repo_drive._models import (
    PLACEHOLDER_NAME,
    DirectoryEntry,
    ObjectHandle,
    RenameResult,
    TransferUnit,
    TreeReport,
)
from repo_drive._path import as_path, resolve_key
from repo_drive._registry import create_client

if TYPE_CHECKING:
    from collections.abc import Iterable
    from types import TracebackType

    from repo_drive._client import ObjectStoreClient
    from repo_drive._config import BackendCoordinates, SettingsStore
    from repo_drive._models import RepositoryInfo
    from repo_drive._path import PathArg, VirtualPath
    from repo_drive._types import WritableContent

log = logging.getLogger(__name__)

ClientFactory = Callable[["BackendCoordinates"], "ObjectStoreClient"]


@dataclasses.dataclass(frozen=True)
class _Snapshot:
    """Coordinates and client for the duration of one operation."""

    coords: BackendCoordinates
    client: ObjectStoreClient

    @property
    def ref(self) -> str:
        return self.coords.branch

    def key(self, path: VirtualPath) -> str:
        return resolve_key(self.coords.root, path)


class Drive:
    """A folder/file tree on top of a flat, hash-checked object store.

    Holds no object state between calls: coordinates are re-read from
    ``settings`` at the start of every operation and every hash comes from a
    fresh backend read. Backend calls are issued one at a time. Recursive
    operations never stop at the first failure; they collect failures and
    raise :class:`AggregateFailure` at the end, leaving the backend in the
    partial state the completed steps produced.

    :param settings: Where the backend coordinates are persisted.
    :param client_factory: Builds a client for a coordinates snapshot.
        Defaults to the backend registry.
    :param codec: Transcoder and size ceiling for object bodies.
    """

    def __init__(
        self,
        settings: SettingsStore,
        *,
        client_factory: ClientFactory | None = None,
        codec: TransferCodec | None = None,
    ) -> None:
        self._settings = settings
        self._factory = client_factory or create_client
        self._codec = codec or TransferCodec()
        self._cached: tuple[BackendCoordinates, ObjectStoreClient] | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_client(
        cls, client: ObjectStoreClient, coords: BackendCoordinates, *, codec: TransferCodec | None = None
    ) -> Drive:
        """Build a drive bound to an existing client and fixed coordinates."""
        from repo_drive._config import MemorySettingsStore

        return cls(MemorySettingsStore(coords), client_factory=lambda _coords: client, codec=codec)

    def __repr__(self) -> str:
        return f"Drive(settings={self._settings!r})"

    @property
    def settings(self) -> SettingsStore:
        return self._settings

    @property
    def codec(self) -> TransferCodec:
        return self._codec

    # region: lifecycle

    def close(self) -> None:
        """Close the cached client, releasing any held resources."""
        with self._lock:
            cached, self._cached = self._cached, None
        if cached is not None:
            cached[1].close()

    def __enter__(self) -> Drive:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def _snapshot(self) -> _Snapshot:
        """Read coordinates fresh and pair them with a client for them.

        :raises NotConfigured: If the settings are missing or invalid.
        """
        coords = self._settings.coordinates()
        with self._lock:
            if self._cached is None or self._cached[0] != coords:
                try:
                    client = self._factory(coords)
                except ValueError as exc:
                    raise NotConfigured(str(exc), backend=coords.backend) from None
                self._cached = (coords, client)
            client = self._cached[1]
        return _Snapshot(coords=coords, client=client)

    # endregion

    # region: configuration

    def configure(self, coords: BackendCoordinates, *, verify: bool = True) -> RepositoryInfo | None:
        """Replace the saved coordinates, optionally checking them against the backend.

        If verification fails the settings are cleared again and the error is raised.
        """
        self._settings.save_coordinates(coords)
        if not verify:
            return None
        try:
            return self.verify_connection()
        except RepoDriveError:
            self._settings.clear()
            raise

    def logout(self) -> None:
        """Forget the saved coordinates and drop the client."""
        self._settings.clear()
        self.close()

    def verify_connection(self) -> RepositoryInfo:
        """Fetch repository metadata with the current credential.

        :raises AuthFailure: If the credential is rejected.
        :raises NotFound: If the repository is missing or hidden from the credential.
        """
        snap = self._snapshot()
        info = snap.client.repository_info()
        log.info("Connected to %s (branch %s)", info.full_name, snap.ref)
        return info

    def repository_info(self) -> RepositoryInfo:
        return self._snapshot().client.repository_info()

    # endregion

    # region: helpers

    @staticmethod
    def _read_content(content: WritableContent) -> bytes:
        if isinstance(content, bytes):
            return content
        return content.read()

    @staticmethod
    def _require_non_root(path: PathArg) -> VirtualPath:
        target = as_path(path)
        if target.is_root:
            raise InvalidPath("Path must not be empty for this operation", path=str(target))
        return target

    def _list(self, snap: _Snapshot, path: VirtualPath, *, strict: bool = False) -> list[DirectoryEntry]:
        """Direct children of ``path``, placeholder included.

        An absent directory yields ``[]`` unless ``strict`` is set.
        """
        try:
            result = snap.client.get(snap.key(path), ref=snap.ref)
        except NotFound:
            if strict:
                raise
            return []
        if isinstance(result, ObjectHandle):
            if strict:
                raise NotFound(f"Not a directory: {path}", path=str(path), backend=snap.client.name)
            return []
        return [DirectoryEntry.from_handle(path, handle) for handle in result]

    def _get_file(self, snap: _Snapshot, path: VirtualPath) -> ObjectHandle:
        result = snap.client.get(snap.key(path), ref=snap.ref)
        if not isinstance(result, ObjectHandle) or result.is_dir:
            raise NotFound(f"Not a file: {path}", path=str(path), backend=snap.client.name)
        return result

    def _existing_sha(self, snap: _Snapshot, path: VirtualPath) -> str | None:
        """Current hash of the file at ``path``; ``None`` if nothing is there."""
        try:
            result = snap.client.get(snap.key(path), ref=snap.ref)
        except NotFound:
            return None
        if not isinstance(result, ObjectHandle):
            raise Conflict(f"A directory exists at {path}", path=str(path), backend=snap.client.name)
        return result.sha

    def _read_handle(self, snap: _Snapshot, handle: ObjectHandle) -> bytes:
        """Body of a file, falling back to direct download when it was not inlined."""
        if handle.has_inline_content:
            try:
                return self._codec.decode(handle.encoded_content or "")
            except ValueError as exc:
                raise RepoDriveError(str(exc), path=handle.key, backend=snap.client.name) from None
        if handle.size == 0:
            return b""
        log.debug("Content of %s not inlined, downloading", handle.key)
        return snap.client.download(handle)

    def _write(self, snap: _Snapshot, unit: TransferUnit, message: str) -> ObjectHandle:
        self._codec.enforce_limit(unit.data, path=str(unit.path))
        return snap.client.put(
            snap.key(unit.path),
            self._codec.encode(unit.data),
            ref=snap.ref,
            message=message,
            expected_sha=unit.expected_sha,
        )

    # endregion

    # region: listing and reading

    def list_children(self, path: PathArg = "", *, strict: bool = False) -> list[DirectoryEntry]:
        """List a directory, directories first, placeholder hidden.

        :param strict: Raise ``NotFound`` for an absent directory instead of
            returning an empty list.
        """
        target = as_path(path)
        snap = self._snapshot()
        entries = [e for e in self._list(snap, target, strict=strict) if not e.is_placeholder]
        return sorted(entries, key=lambda e: (not e.is_dir, e.name.lower(), e.name))

    def get_info(self, path: PathArg) -> ObjectHandle:
        """Metadata (and inlined content, if any) of a file.

        :raises NotFound: If the file does not exist or is a directory.
        """
        target = self._require_non_root(path)
        return self._get_file(self._snapshot(), target)

    def read_bytes(self, path: PathArg) -> bytes:
        """Full content of a file.

        :raises NotFound: If the file does not exist or is a directory.
        """
        target = self._require_non_root(path)
        snap = self._snapshot()
        return self._read_handle(snap, self._get_file(snap, target))

    def content_url(self, path: PathArg) -> str:
        """Direct-content locator for preview consumers. No round trip."""
        target = self._require_non_root(path)
        snap = self._snapshot()
        return snap.client.content_url(snap.key(target), ref=snap.ref)

    # endregion

    # region: single-object mutations

    def upload_file(self, path: PathArg, content: WritableContent, *, message: str | None = None) -> ObjectHandle:
        """Create or replace the file at ``path``.

        :raises PayloadTooLarge: Before any backend call, if the content is above the ceiling.
        :raises Conflict: If a directory occupies ``path`` or the file changed concurrently.
        """
        target = self._require_non_root(path)
        data = self._read_content(content)
        self._codec.enforce_limit(data, path=str(target))
        snap = self._snapshot()
        unit = TransferUnit(path=target, data=data, expected_sha=self._existing_sha(snap, target))
        log.debug("Uploading %d bytes to %s (%s)", len(data), target, "create" if unit.is_create else "replace")
        return self._write(snap, unit, message or f"Upload {target.name}")

    def create_directory(self, path: PathArg, *, message: str | None = None) -> ObjectHandle:
        """Make ``path`` exist by writing an empty placeholder inside it.

        Returns the placeholder handle; an existing placeholder is returned as is.
        """
        target = self._require_non_root(path)
        placeholder = target / PLACEHOLDER_NAME
        snap = self._snapshot()
        unit = TransferUnit(path=placeholder, data=b"")
        try:
            return self._write(snap, unit, message or f"Create folder {target}")
        except Conflict:
            try:
                existing = snap.client.get(snap.key(placeholder), ref=snap.ref)
            except NotFound:
                existing = None
            if isinstance(existing, ObjectHandle) and existing.is_file:
                return existing
            raise

    def delete_file(self, path: PathArg, sha: str, *, message: str | None = None) -> None:
        """Delete one file, presenting the hash the caller last observed.

        :raises Conflict: If ``sha`` is stale.
        :raises NotFound: If the file is already gone.
        """
        target = self._require_non_root(path)
        snap = self._snapshot()
        snap.client.delete(snap.key(target), ref=snap.ref, message=message or f"Delete {target.name}", expected_sha=sha)

    # endregion

    # region: batch operations

    def upload_files(self, base: PathArg, items: Iterable[tuple[PathArg, WritableContent]]) -> TreeReport:
        """Upload several files below ``base``, one at a time.

        Each item is a path relative to ``base`` and its content. A failing
        item (oversized, conflicting) does not stop the rest.

        :raises InvalidPath: Before any upload, if a relative path is invalid or empty.
        :raises AggregateFailure: If any item could not be uploaded.
        """
        root = as_path(base)
        batch = [(root.joinpath(self._require_non_root(rel).parts), content) for rel, content in items]
        snap = self._snapshot()
        log.info("Uploading %d files to %s", len(batch), root)
        report = TreeReport()
        for target, content in batch:
            try:
                data = self._read_content(content)
                self._codec.enforce_limit(data, path=str(target))
                unit = TransferUnit(path=target, data=data, expected_sha=self._existing_sha(snap, target))
                self._write(snap, unit, f"Upload {target.name}")
            except RepoDriveError as exc:
                log.debug("Could not upload %s: %s", target, exc)
                report.failed.append((target, exc))
                continue
            report.succeeded.append(target)
        if not report.ok:
            raise AggregateFailure(
                f"{len(report.failed)} of {len(batch)} files could not be uploaded to {root}",
                path=str(root),
                backend=snap.client.name,
                report=report,
            )
        return report

    def delete_entries(self, entries: Iterable[DirectoryEntry]) -> TreeReport:
        """Delete a selection of listed entries: files by their hash, directories recursively.

        A failing entry does not stop the rest; entries already gone count as deleted.

        :raises AggregateFailure: If anything in the selection could not be removed.
        """
        selection = list(entries)
        snap = self._snapshot()
        log.info("Deleting %d entries", len(selection))
        report = TreeReport()
        self._delete_entries(snap, selection, report)
        if not report.ok:
            raise AggregateFailure(
                f"{len(report.failed)} of the selected entries could not be removed",
                backend=snap.client.name,
                report=report,
            )
        return report

    # endregion

    # region: recursive operations

    def delete_directory(self, path: PathArg) -> TreeReport:
        """Delete everything under ``path``, depth-first, one call at a time.

        A failing child does not stop its siblings. An absent directory is an
        empty success, so re-running after a partial failure converges. A path
        naming a file is treated as an absent directory and left untouched.

        :raises AggregateFailure: If any descendant could not be removed.
        :raises InvalidPath: If ``path`` is the root.
        """
        target = self._require_non_root(path)
        snap = self._snapshot()
        log.info("Deleting directory %s", target)
        return self._delete_directory(snap, target)

    def _delete_directory(self, snap: _Snapshot, target: VirtualPath) -> TreeReport:
        report = TreeReport()
        self._delete_entries(snap, self._list(snap, target), report)
        if not report.ok:
            raise AggregateFailure(
                f"{len(report.failed)} entries under {target} could not be removed",
                path=str(target),
                backend=snap.client.name,
                report=report,
            )
        return report

    def _delete_entries(self, snap: _Snapshot, entries: list[DirectoryEntry], report: TreeReport) -> None:
        for entry in entries:
            if entry.is_dir:
                try:
                    children = self._list(snap, entry.path)
                except RepoDriveError as exc:
                    report.failed.append((entry.path, exc))
                    continue
                self._delete_entries(snap, children, report)
                continue
            try:
                snap.client.delete(
                    snap.key(entry.path), ref=snap.ref, message=f"Delete {entry.path}", expected_sha=entry.sha
                )
            except NotFound:
                log.debug("%s already gone", entry.path)
            except RepoDriveError as exc:
                log.debug("Could not delete %s: %s", entry.path, exc)
                report.failed.append((entry.path, exc))
                continue
            report.succeeded.append(entry.path)

    def copy_directory(self, src: PathArg, dst: PathArg, *, overwrite: bool = False) -> TreeReport:
        """Copy every file under ``src`` to the same relative position under ``dst``.

        Every byte is re-transferred; placeholders are copied too, so empty
        subdirectories survive. Failures are reported by source path. A
        ``src`` naming a file is treated as an empty directory: nothing is copied.

        :param overwrite: Replace files already present under ``dst``;
            otherwise such files fail with ``AlreadyExists``.
        :raises AggregateFailure: If any file could not be copied.
        :raises InvalidPath: If ``dst`` lies inside ``src``.
        """
        source = as_path(src)
        dest = self._require_non_root(dst)
        if dest.is_relative_to(source):
            raise InvalidPath(f"Cannot copy {source} into itself ({dest})", path=str(dest))
        snap = self._snapshot()
        log.info("Copying directory %s to %s", source, dest)
        return self._copy_directory(snap, source, dest, overwrite=overwrite)

    def _copy_directory(
        self, snap: _Snapshot, source: VirtualPath, dest: VirtualPath, *, overwrite: bool
    ) -> TreeReport:
        report = TreeReport()
        self._copy_entries(snap, source, dest, self._list(snap, source), report, overwrite=overwrite)
        if not report.ok:
            raise AggregateFailure(
                f"{len(report.failed)} entries under {source} could not be copied to {dest}",
                path=str(source),
                backend=snap.client.name,
                report=report,
            )
        return report

    def _copy_entries(
        self,
        snap: _Snapshot,
        source: VirtualPath,
        dest: VirtualPath,
        entries: list[DirectoryEntry],
        report: TreeReport,
        *,
        overwrite: bool,
    ) -> None:
        for entry in entries:
            target = dest.joinpath(entry.path.relative_to(source))
            if entry.is_dir:
                try:
                    children = self._list(snap, entry.path)
                except RepoDriveError as exc:
                    report.failed.append((entry.path, exc))
                    continue
                self._copy_entries(snap, source, dest, children, report, overwrite=overwrite)
                continue
            try:
                data = self._read_handle(snap, self._get_file(snap, entry.path))
                expected = self._existing_sha(snap, target) if overwrite else None
                self._write(snap, TransferUnit(path=target, data=data, expected_sha=expected), f"Copy to {target}")
            except Conflict as exc:
                failure: RepoDriveError = exc
                if not overwrite and not isinstance(exc, AlreadyExists):
                    failure = AlreadyExists(f"{target} already exists", path=str(target), backend=exc.backend)
                report.failed.append((entry.path, failure))
                continue
            except RepoDriveError as exc:
                report.failed.append((entry.path, exc))
                continue
            report.succeeded.append(target)

    # endregion

    # region: renames

    def rename_file(self, path: PathArg, new_name: str, *, overwrite: bool = False) -> RenameResult:
        """Rename a file within its directory: create the new object, then delete the old.

        If the delete fails the content exists at both paths; the failure is
        logged and returned as ``RenameResult.warning`` rather than raised.

        :raises AlreadyExists: If ``new_name`` is taken and ``overwrite`` is ``False``.
        :raises NotFound: If ``path`` is not an existing file.
        """
        source = self._require_non_root(path)
        destination = source.with_name(new_name)
        if destination == source:
            return RenameResult(source=source, destination=destination)
        snap = self._snapshot()
        handle = self._get_file(snap, source)
        data = self._read_handle(snap, handle)
        expected = self._existing_sha(snap, destination) if overwrite else None
        unit = TransferUnit(path=destination, data=data, expected_sha=expected)
        try:
            self._write(snap, unit, f"Rename {source} -> {destination}")
        except Conflict as exc:
            if unit.is_create and not isinstance(exc, AlreadyExists):
                raise AlreadyExists(
                    f"{destination} already exists", path=str(destination), backend=exc.backend
                ) from exc
            raise
        try:
            snap.client.delete(
                snap.key(source), ref=snap.ref, message=f"Remove {source} after rename", expected_sha=handle.sha
            )
        except RepoDriveError as exc:
            log.warning("Renamed %s to %s but the original could not be removed: %s", source, destination, exc)
            return RenameResult(source=source, destination=destination, warning=exc)
        log.info("Renamed %s to %s", source, destination)
        return RenameResult(source=source, destination=destination)

    def rename_folder(self, path: PathArg, new_name: str) -> RenameResult:
        """Rename a directory: full copy to the sibling path, then recursive delete.

        If the copy fails the source is left untouched. If the delete fails the
        content exists at both paths and the failure is returned as the warning.

        :raises NotFound: If ``path`` has no children.
        :raises AlreadyExists: If the sibling path is occupied.
        :raises AggregateFailure: If the copy did not complete.
        """
        source = self._require_non_root(path)
        destination = source.with_name(new_name)
        if destination == source:
            return RenameResult(source=source, destination=destination)
        snap = self._snapshot()
        if not self._list(snap, source):
            raise NotFound(f"Folder not found: {source}", path=str(source), backend=snap.client.name)
        try:
            snap.client.get(snap.key(destination), ref=snap.ref)
        except NotFound:
            pass
        else:
            raise AlreadyExists(f"{destination} already exists", path=str(destination), backend=snap.client.name)
        log.info("Renaming directory %s to %s", source, destination)
        self._copy_directory(snap, source, destination, overwrite=False)
        try:
            self._delete_directory(snap, source)
        except RepoDriveError as exc:
            log.warning("Copied %s to %s but the original could not be fully removed: %s", source, destination, exc)
            return RenameResult(source=source, destination=destination, warning=exc)
        return RenameResult(source=source, destination=destination)

    # endregion
