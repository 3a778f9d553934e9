"""Backend implementations."""

from repo_drive.backends._github import GitHubContentsClient
from repo_drive.backends._memory import MemoryObjectStore

__all__ = ["GitHubContentsClient", "MemoryObjectStore"]
