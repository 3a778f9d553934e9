"""GitHub repository contents API backend using requests."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import requests
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from repo_drive._client import ObjectStoreClient
from repo_drive._config import DEFAULT_API_URL
from repo_drive._errors import (
    AuthFailure,
    BackendUnavailable,
    Conflict,
    NotFound,
    PayloadTooLarge,
    RateLimited,
    RepoDriveError,
)
from repo_drive._models import ObjectHandle, ObjectKind, RepositoryInfo
from repo_drive._path import escape_segment

if TYPE_CHECKING:
    from collections.abc import Iterator

    from tenacity.wait import wait_base

    from repo_drive._client import GetResult
    from repo_drive._config import BackendCoordinates

log = logging.getLogger(__name__)

DEFAULT_RAW_URL = "https://raw.githubusercontent.com"
API_VERSION = "2022-11-28"

_TRANSIENT = (requests.ConnectionError, requests.Timeout)


class GitHubContentsClient(ObjectStoreClient):
    """Client for ``/repos/{owner}/{repo}/contents``.

    Read-only GETs are retried on connection errors and timeouts. Mutations
    and HTTP-level failures (conflicts, rate limits) are never retried.

    :param owner: Repository owner (required, non-empty).
    :param repo: Repository name (required, non-empty).
    :param token: Bearer credential.
    :param api_url: Base URL of the REST API (GitHub Enterprise: ``https://host/api/v3``).
    :param raw_url: Base URL for direct content links.
    :param timeout: Per-request timeout in seconds.
    :param max_attempts: Attempts for a GET before giving up.
    :param retry_wait: tenacity wait strategy between GET attempts.
    :param session: Pre-built ``requests.Session`` (headers are added to it).
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str,
        *,
        api_url: str = DEFAULT_API_URL,
        raw_url: str = DEFAULT_RAW_URL,
        timeout: float = 30.0,
        max_attempts: int = 3,
        retry_wait: wait_base | None = None,
        session: requests.Session | None = None,
    ) -> None:
        if not owner or not owner.strip():
            raise ValueError("owner must be a non-empty string")
        if not repo or not repo.strip():
            raise ValueError("repo must be a non-empty string")
        self._owner = owner
        self._repo = repo
        self._token = token
        self._api_url = api_url.rstrip("/")
        self._raw_url = raw_url.rstrip("/")
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._retry_wait = retry_wait if retry_wait is not None else wait_exponential(multiplier=1, min=2, max=10)
        self._session_instance = session
        self._session_ready = False

    @property
    def name(self) -> str:
        return "github"

    @classmethod
    def from_coordinates(cls, coords: BackendCoordinates) -> GitHubContentsClient:
        return cls(coords.owner, coords.repo, coords.token, api_url=coords.api_url)

    def __repr__(self) -> str:
        return f"GitHubContentsClient(owner={self._owner!r}, repo={self._repo!r}, api_url={self._api_url!r})"

    # region: lazy session

    @property
    def _session(self) -> requests.Session:
        if self._session_instance is None:
            self._session_instance = requests.Session()
        if not self._session_ready:
            self._session_instance.headers.update(
                {
                    "Authorization": f"Bearer {self._token}",
                    "Accept": "application/vnd.github+json",
                    "X-GitHub-Api-Version": API_VERSION,
                }
            )
            self._session_ready = True
        return self._session_instance

    # endregion

    # region: url helpers

    @property
    def _repo_path(self) -> str:
        return f"/repos/{escape_segment(self._owner)}/{escape_segment(self._repo)}"

    def _contents_url(self, key: str) -> str:
        return f"{self._api_url}{self._repo_path}/contents/{key}"

    # endregion

    # region: error mapping

    @contextmanager
    def _errors(self, path: str = "") -> Iterator[None]:
        """Map requests exceptions to repo_drive errors."""
        try:
            yield
        except RepoDriveError:
            raise
        except _TRANSIENT as exc:
            raise BackendUnavailable(f"Cannot reach {self._api_url}: {exc}", path=path, backend=self.name) from None
        except requests.RequestException as exc:
            raise RepoDriveError(str(exc), path=path, backend=self.name) from None

    @staticmethod
    def _backend_message(response: requests.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("message"):
            return str(data["message"])
        return response.text.strip() or f"HTTP {response.status_code}"

    @staticmethod
    def _reset_time(response: requests.Response) -> datetime | None:
        raw = response.headers.get("X-RateLimit-Reset")
        if raw is None or not raw.isdigit():
            return None
        return datetime.fromtimestamp(int(raw), tz=timezone.utc)

    def _classify(self, response: requests.Response, path: str) -> RepoDriveError:
        """Turn a non-2xx response into a repo_drive error type."""
        status = response.status_code
        message = self._backend_message(response)
        lowered = message.lower()
        if status == 404:
            return NotFound(message, path=path, backend=self.name)
        if status == 401:
            return AuthFailure(message, path=path, backend=self.name)
        if status == 429 or (
            status == 403 and (response.headers.get("X-RateLimit-Remaining") == "0" or "rate limit" in lowered)
        ):
            return RateLimited(message, path=path, backend=self.name, reset_at=self._reset_time(response))
        if status == 403:
            return AuthFailure(message, path=path, backend=self.name)
        if status == 409:
            return Conflict(message, path=path, backend=self.name)
        if status == 413:
            return PayloadTooLarge(message, path=path, backend=self.name)
        if status == 422:
            if "sha" in lowered:
                return Conflict(message, path=path, backend=self.name)
            if "too large" in lowered or "too big" in lowered:
                return PayloadTooLarge(message, path=path, backend=self.name)
        if status >= 500:
            return BackendUnavailable(message, path=path, backend=self.name)
        return RepoDriveError(message, path=path, backend=self.name)

    # endregion

    # region: transport

    def _get(self, url: str, *, path: str, **kwargs: Any) -> requests.Response:
        """GET with tenacity retry on transient transport errors."""
        retrying = Retrying(
            retry=retry_if_exception_type(_TRANSIENT),
            stop=stop_after_attempt(self._max_attempts),
            wait=self._retry_wait,
            before_sleep=before_sleep_log(log, logging.WARNING),  # type: ignore[arg-type,unused-ignore]
            reraise=True,
        )
        with self._errors(path):
            for attempt in retrying:
                with attempt:
                    response = self._session.get(url, timeout=self._timeout, **kwargs)
        if not response.ok:
            raise self._classify(response, path)
        return response

    def _send(self, method: str, url: str, *, path: str, body: dict[str, Any]) -> requests.Response:
        with self._errors(path):
            response = self._session.request(method, url, json=body, timeout=self._timeout)
        if not response.ok:
            raise self._classify(response, path)
        return response

    @staticmethod
    def _json(response: requests.Response, path: str) -> Any:
        try:
            return response.json()
        except ValueError:
            raise RepoDriveError("Backend returned a non-JSON body", path=path, backend="github") from None

    @staticmethod
    def _to_handle(item: dict[str, Any]) -> ObjectHandle:
        raw_path = str(item.get("path", item.get("name", "")))
        return ObjectHandle(
            key="/".join(escape_segment(s) for s in raw_path.split("/")),
            name=str(item.get("name", raw_path.rsplit("/", 1)[-1])),
            kind=ObjectKind.from_api(item.get("type")),
            sha=str(item.get("sha", "")),
            size=int(item.get("size") or 0),
            download_url=item.get("download_url"),
            encoded_content=item.get("content"),
            encoding=item.get("encoding"),
        )

    # endregion

    # region: flat operations

    def get(self, key: str, *, ref: str) -> GetResult:
        log.debug("GET %s@%s", key, ref)
        response = self._get(self._contents_url(key), path=key, params={"ref": ref})
        data = self._json(response, key)
        if isinstance(data, list):
            return [self._to_handle(item) for item in data]
        if not isinstance(data, dict):
            raise RepoDriveError("Unexpected contents payload", path=key, backend=self.name)
        return self._to_handle(data)

    def put(self, key: str, content: str, *, ref: str, message: str, expected_sha: str | None = None) -> ObjectHandle:
        log.debug("PUT %s@%s (sha=%s)", key, ref, expected_sha)
        body: dict[str, Any] = {"message": message, "content": content, "branch": ref}
        if expected_sha is not None:
            body["sha"] = expected_sha
        try:
            response = self._send("PUT", self._contents_url(key), path=key, body=body)
        except Conflict as exc:
            exc.expected_sha = expected_sha
            raise
        data = self._json(response, key)
        if not isinstance(data, dict) or not isinstance(data.get("content"), dict):
            raise RepoDriveError("Unexpected PUT payload", path=key, backend=self.name)
        return self._to_handle(data["content"])

    def delete(self, key: str, *, ref: str, message: str, expected_sha: str) -> None:
        log.debug("DELETE %s@%s (sha=%s)", key, ref, expected_sha)
        body = {"message": message, "sha": expected_sha, "branch": ref}
        try:
            self._send("DELETE", self._contents_url(key), path=key, body=body)
        except Conflict as exc:
            exc.expected_sha = expected_sha
            raise

    def download(self, handle: ObjectHandle) -> bytes:
        if not handle.download_url:
            raise NotFound(f"No direct-content locator for {handle.key!r}", path=handle.key, backend=self.name)
        response = self._get(handle.download_url, path=handle.key, headers={"Accept": "*/*"})
        return response.content

    def content_url(self, key: str, *, ref: str) -> str:
        return (
            f"{self._raw_url}/{escape_segment(self._owner)}/{escape_segment(self._repo)}/"
            f"{quote(ref, safe='/')}/{key}"
        )

    def repository_info(self) -> RepositoryInfo:
        response = self._get(f"{self._api_url}{self._repo_path}", path="")
        data = self._json(response, "")
        return RepositoryInfo(
            full_name=str(data.get("full_name", f"{self._owner}/{self._repo}")),
            default_branch=str(data.get("default_branch", "main")),
            private=bool(data.get("private", False)),
            size_kb=int(data.get("size") or 0),
        )

    # endregion

    # region: lifecycle

    def close(self) -> None:
        if self._session_instance is not None:
            self._session_instance.close()
            self._session_instance = None
            self._session_ready = False

    # endregion
