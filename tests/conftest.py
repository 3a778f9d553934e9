"""Shared fixtures: a parameterized client and a drive bound to it."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from tenacity import wait_none

from repo_drive._config import BackendCoordinates
from repo_drive._drive import Drive
from repo_drive.backends._github import GitHubContentsClient
from repo_drive.backends._memory import MemoryObjectStore
from tests.backends.github_fake import API_URL, OWNER, RAW_URL, REPO, TOKEN, FakeGitHubSession

if TYPE_CHECKING:
    from collections.abc import Iterator

    from repo_drive._client import ObjectStoreClient


def pytest_configure(config: object) -> None:
    """Register custom markers."""
    if isinstance(config, pytest.Config):
        config.addinivalue_line("markers", "scenario(name): links a test to a documented drive scenario")


COORDS = BackendCoordinates(token=TOKEN, owner=OWNER, repo=REPO, branch="main", root_dir="files", backend="memory")


def make_github_client(session: FakeGitHubSession | None = None) -> GitHubContentsClient:
    return GitHubContentsClient(
        OWNER,
        REPO,
        TOKEN,
        api_url=API_URL,
        raw_url=RAW_URL,
        retry_wait=wait_none(),
        session=session or FakeGitHubSession(),
    )


@pytest.fixture(params=["memory", "github"])
def client(request: pytest.FixtureRequest) -> Iterator[ObjectStoreClient]:
    """Parameterized client fixture. Add new backends here."""
    if request.param == "memory":
        c: ObjectStoreClient = MemoryObjectStore(OWNER, REPO)
    else:
        c = make_github_client()
    yield c
    c.close()


@pytest.fixture
def drive(client: ObjectStoreClient) -> Iterator[Drive]:
    with Drive.from_client(client, COORDS) as d:
        yield d
