"""In-process fake of the GitHub contents API for testing.

``FakeGitHubSession`` is a ``requests.Session`` whose ``request`` answers the
way api.github.com does, backed by a ``MemoryObjectStore``. No sockets.
"""

from __future__ import annotations

import dataclasses
import json
from typing import Any
from urllib.parse import quote, unquote

import requests

from repo_drive._errors import Conflict, NotFound, PayloadTooLarge, RepoDriveError
from repo_drive._models import ObjectHandle
from repo_drive.backends._memory import MemoryObjectStore

API_URL = "https://api.github.test"
RAW_URL = "https://raw.github.test"
OWNER = "octo"
REPO = "drive"
TOKEN = "t0ken"

# GitHub only inlines content below this size in the metadata response.
INLINE_LIMIT = 1024 * 1024


@dataclasses.dataclass
class Fault:
    """A canned failure for the next matching request.

    :param method: HTTP method to match.
    :param suffix: Matches when the request URL ends with this string.
    :param status: Status code to answer with (ignored if ``exc`` is set).
    :param message: GitHub-style ``message`` field.
    :param headers: Extra response headers.
    :param exc: Exception to raise instead of answering.
    :param times: How many matching requests to fail.
    """

    method: str
    suffix: str
    status: int = 500
    message: str = "Server Error"
    headers: dict[str, str] = dataclasses.field(default_factory=dict)
    exc: Exception | None = None
    times: int = 1


def make_response(
    status: int,
    payload: Any = None,
    *,
    url: str = "",
    content: bytes | None = None,
    headers: dict[str, str] | None = None,
) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.url = url
    response.reason = "Fake"
    response.encoding = "utf-8"
    if content is not None:
        response._content = content
    elif payload is not None:
        response._content = json.dumps(payload).encode()
        response.headers["Content-Type"] = "application/json; charset=utf-8"
    else:
        response._content = b""
    response.headers.update(headers or {})
    return response


class FakeGitHubSession(requests.Session):
    """Answers contents-API requests from an in-memory store.

    :param store: Backing store; a fresh one is created if omitted.
    :param inline_limit: Files above this size come back without inline content.
    """

    def __init__(self, store: MemoryObjectStore | None = None, *, inline_limit: int = INLINE_LIMIT) -> None:
        super().__init__()
        self.store = store or MemoryObjectStore(OWNER, REPO)
        self.inline_limit = inline_limit
        self.faults: list[Fault] = []
        self.calls: list[tuple[str, str]] = []
        self._repo_prefix = f"{API_URL}/repos/{OWNER}/{REPO}"

    def fail(self, method: str, suffix: str, **kwargs: Any) -> Fault:
        fault = Fault(method=method, suffix=suffix, **kwargs)
        self.faults.append(fault)
        return fault

    # region: routing

    def request(self, method: str, url: str, *args: Any, **kwargs: Any) -> requests.Response:  # type: ignore[override]
        method = method.upper()
        self.calls.append((method, url))
        fault = self._take_fault(method, url)
        if fault is not None:
            if fault.exc is not None:
                raise fault.exc
            return make_response(fault.status, {"message": fault.message}, url=url, headers=fault.headers)
        if self.headers.get("Authorization") != f"Bearer {TOKEN}":
            return make_response(401, {"message": "Bad credentials"}, url=url)
        params = kwargs.get("params") or {}
        body = kwargs.get("json") or {}
        try:
            if url.startswith(RAW_URL + "/"):
                return self._raw(url)
            if url == self._repo_prefix:
                return self._repo_info(url)
            if url.startswith(self._repo_prefix + "/contents/") or url == self._repo_prefix + "/contents":
                key = url[len(self._repo_prefix + "/contents/") :]
                if method == "GET":
                    return self._get(key, params.get("ref", "main"), url)
                if method == "PUT":
                    return self._put(key, body, url)
                if method == "DELETE":
                    return self._delete(key, body, url)
        except NotFound:
            return make_response(404, {"message": "Not Found"}, url=url)
        except Conflict as exc:
            if exc.expected_sha is None and "no sha" in exc.message:
                return make_response(422, {"message": 'Invalid request.\n\n"sha" wasn\'t supplied.'}, url=url)
            return make_response(409, {"message": f"{exc.message}"}, url=url)
        except PayloadTooLarge as exc:
            return make_response(413, {"message": f"Content too large: {exc.message}"}, url=url)
        except RepoDriveError as exc:
            return make_response(400, {"message": exc.message}, url=url)
        return make_response(404, {"message": "Not Found"}, url=url)

    def _take_fault(self, method: str, url: str) -> Fault | None:
        for fault in self.faults:
            if fault.method == method and url.endswith(fault.suffix):
                fault.times -= 1
                if fault.times <= 0:
                    self.faults.remove(fault)
                return fault
        return None

    # endregion

    # region: payloads

    def _raw_url(self, key: str, ref: str) -> str:
        return f"{RAW_URL}/{OWNER}/{REPO}/{quote(ref, safe='')}/{key}"

    def _item(self, handle: ObjectHandle, ref: str) -> dict[str, Any]:
        item: dict[str, Any] = {
            "name": handle.name,
            "path": "/".join(unquote(s) for s in handle.key.split("/")),
            "sha": handle.sha,
            "size": handle.size,
            "type": handle.kind.value,
            "download_url": self._raw_url(handle.key, ref) if handle.is_file else None,
        }
        if handle.encoded_content is not None:
            if handle.size > self.inline_limit:
                item["content"] = ""
                item["encoding"] = "none"
            else:
                text = handle.encoded_content
                item["content"] = "\n".join(text[i : i + 60] for i in range(0, len(text), 60)) + "\n"
                item["encoding"] = "base64"
        return item

    def _get(self, key: str, ref: str, url: str) -> requests.Response:
        result = self.store.get(key, ref=ref)
        if isinstance(result, list):
            return make_response(200, [self._item(h, ref) for h in result], url=url)
        return make_response(200, self._item(result, ref), url=url)

    def _put(self, key: str, body: dict[str, Any], url: str) -> requests.Response:
        ref = body.get("branch", "main")
        existed = body.get("sha") is not None
        handle = self.store.put(
            key, body["content"], ref=ref, message=body["message"], expected_sha=body.get("sha")
        )
        payload = {"content": self._item(handle, ref), "commit": {"message": body["message"]}}
        return make_response(200 if existed else 201, payload, url=url)

    def _delete(self, key: str, body: dict[str, Any], url: str) -> requests.Response:
        ref = body.get("branch", "main")
        self.store.delete(key, ref=ref, message=body["message"], expected_sha=body["sha"])
        return make_response(200, {"content": None, "commit": {"message": body["message"]}}, url=url)

    def _raw(self, url: str) -> requests.Response:
        rest = url[len(RAW_URL) + 1 :]
        _owner, _repo, ref, key = rest.split("/", 3)
        result = self.store.get(key, ref=unquote(ref))
        if not isinstance(result, ObjectHandle):
            raise NotFound(key)
        return make_response(200, content=self.store.download(result), url=url)

    def _repo_info(self, url: str) -> requests.Response:
        info = self.store.repository_info()
        payload = {
            "full_name": info.full_name,
            "default_branch": info.default_branch,
            "private": info.private,
            "size": info.size_kb,
        }
        return make_response(200, payload, url=url)

    # endregion
