"""Client conformance suite — flat object contract, run against every client."""

from __future__ import annotations

import pytest

from repo_drive._client import ObjectStoreClient
from repo_drive._codec import TransferCodec
from repo_drive._errors import Conflict, NotFound
from repo_drive._models import ObjectHandle, ObjectKind, RepositoryInfo
from repo_drive.backends._memory import blob_sha

REF = "main"


def _put(client: ObjectStoreClient, key: str, data: bytes, sha: str | None = None) -> ObjectHandle:
    return client.put(key, TransferCodec.encode(data), ref=REF, message=f"write {key}", expected_sha=sha)


def _get_file(client: ObjectStoreClient, key: str) -> ObjectHandle:
    result = client.get(key, ref=REF)
    assert isinstance(result, ObjectHandle)
    return result


class TestClientIdentity:
    def test_is_client(self, client: ObjectStoreClient) -> None:
        assert isinstance(client, ObjectStoreClient)

    def test_name_is_string(self, client: ObjectStoreClient) -> None:
        assert isinstance(client.name, str)
        assert client.name

    def test_repository_info(self, client: ObjectStoreClient) -> None:
        info = client.repository_info()
        assert isinstance(info, RepositoryInfo)
        assert info.full_name == "octo/drive"


class TestGet:
    def test_missing_key_raises(self, client: ObjectStoreClient) -> None:
        with pytest.raises(NotFound):
            client.get("files/nope.txt", ref=REF)

    def test_file_returns_handle_with_content(self, client: ObjectStoreClient) -> None:
        _put(client, "files/a.txt", b"hello")
        handle = _get_file(client, "files/a.txt")
        assert handle.kind is ObjectKind.FILE
        assert handle.name == "a.txt"
        assert handle.key == "files/a.txt"
        assert handle.size == 5
        assert handle.has_inline_content
        assert TransferCodec.decode(handle.encoded_content or "") == b"hello"

    def test_sha_is_git_blob_hash(self, client: ObjectStoreClient) -> None:
        _put(client, "files/a.txt", b"hello")
        assert _get_file(client, "files/a.txt").sha == blob_sha(b"hello")
        assert blob_sha(b"hello") == "b6fc4c620b67d95f953a5c1c1230aaab5db5a1b0"

    def test_directory_returns_children(self, client: ObjectStoreClient) -> None:
        _put(client, "files/d/a.txt", b"a")
        _put(client, "files/d/sub/b.txt", b"b")
        result = client.get("files/d", ref=REF)
        assert isinstance(result, list)
        kinds = {h.name: h.kind for h in result}
        assert kinds == {"a.txt": ObjectKind.FILE, "sub": ObjectKind.DIRECTORY}

    def test_listing_is_one_level(self, client: ObjectStoreClient) -> None:
        _put(client, "files/d/sub/deep/c.txt", b"c")
        result = client.get("files/d", ref=REF)
        assert isinstance(result, list)
        assert [h.key for h in result] == ["files/d/sub"]

    def test_escaped_key_round_trips(self, client: ObjectStoreClient) -> None:
        handle = _put(client, "files/a%20b%23c.txt", b"x")
        assert handle.key == "files/a%20b%23c.txt"
        assert handle.name == "a b#c.txt"
        assert _get_file(client, "files/a%20b%23c.txt").name == "a b#c.txt"

    def test_refs_are_separate(self, client: ObjectStoreClient) -> None:
        _put(client, "files/a.txt", b"main")
        with pytest.raises(NotFound):
            client.get("files/a.txt", ref="other")


class TestPut:
    def test_create_returns_handle(self, client: ObjectStoreClient) -> None:
        handle = _put(client, "files/a.txt", b"abc")
        assert handle.sha == blob_sha(b"abc")
        assert handle.is_file

    def test_create_over_existing_without_sha_conflicts(self, client: ObjectStoreClient) -> None:
        _put(client, "files/a.txt", b"one")
        with pytest.raises(Conflict):
            _put(client, "files/a.txt", b"two")

    def test_replace_with_current_sha(self, client: ObjectStoreClient) -> None:
        first = _put(client, "files/a.txt", b"one")
        second = _put(client, "files/a.txt", b"two", sha=first.sha)
        assert second.sha == blob_sha(b"two")
        assert _get_file(client, "files/a.txt").size == 3

    def test_replace_with_stale_sha_conflicts(self, client: ObjectStoreClient) -> None:
        first = _put(client, "files/a.txt", b"one")
        _put(client, "files/a.txt", b"two", sha=first.sha)
        with pytest.raises(Conflict) as info:
            _put(client, "files/a.txt", b"three", sha=first.sha)
        assert info.value.expected_sha == first.sha

    def test_replace_vanished_object_conflicts(self, client: ObjectStoreClient) -> None:
        with pytest.raises(Conflict):
            _put(client, "files/a.txt", b"x", sha=blob_sha(b"old"))

    def test_put_over_directory_conflicts(self, client: ObjectStoreClient) -> None:
        _put(client, "files/d/a.txt", b"a")
        with pytest.raises(Conflict):
            _put(client, "files/d", b"x")

    def test_put_under_file_conflicts(self, client: ObjectStoreClient) -> None:
        _put(client, "files/f", b"a")
        with pytest.raises(Conflict):
            _put(client, "files/f/child.txt", b"x")


class TestDelete:
    def test_delete_with_current_sha(self, client: ObjectStoreClient) -> None:
        handle = _put(client, "files/a.txt", b"x")
        client.delete("files/a.txt", ref=REF, message="rm", expected_sha=handle.sha)
        with pytest.raises(NotFound):
            client.get("files/a.txt", ref=REF)

    def test_delete_stale_sha_conflicts(self, client: ObjectStoreClient) -> None:
        _put(client, "files/a.txt", b"x")
        with pytest.raises(Conflict):
            client.delete("files/a.txt", ref=REF, message="rm", expected_sha=blob_sha(b"other"))

    def test_delete_missing_raises(self, client: ObjectStoreClient) -> None:
        with pytest.raises(NotFound):
            client.delete("files/a.txt", ref=REF, message="rm", expected_sha=blob_sha(b"x"))

    def test_directory_vanishes_with_last_child(self, client: ObjectStoreClient) -> None:
        handle = _put(client, "files/d/a.txt", b"x")
        client.delete("files/d/a.txt", ref=REF, message="rm", expected_sha=handle.sha)
        with pytest.raises(NotFound):
            client.get("files/d", ref=REF)


class TestDownload:
    def test_download_by_locator(self, client: ObjectStoreClient) -> None:
        _put(client, "files/a.bin", bytes(range(256)))
        handle = _get_file(client, "files/a.bin")
        assert handle.download_url
        assert client.download(handle) == bytes(range(256))

    def test_download_without_locator(self, client: ObjectStoreClient) -> None:
        handle = ObjectHandle(key="files/a.bin", name="a.bin", kind=ObjectKind.FILE, sha="x")
        with pytest.raises(NotFound):
            client.download(handle)

    def test_content_url_contains_ref_and_key(self, client: ObjectStoreClient) -> None:
        url = client.content_url("files/a%20b.txt", ref="main")
        assert url.endswith("/main/files/a%20b.txt")


class TestLifecycle:
    def test_close_is_idempotent(self, client: ObjectStoreClient) -> None:
        client.close()
        client.close()
