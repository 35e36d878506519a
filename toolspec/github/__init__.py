"""Repository content provider backed by the GitHub REST API."""

from .client import (
    GitHubApiError,
    GitHubClient,
    ReleaseProvider,
    RepositoryProvider,
    parse_repo_identifier,
)
from .dockerfile import DockerCommand, extract_dockerfile_cmd

__all__ = [
    "DockerCommand",
    "GitHubApiError",
    "GitHubClient",
    "ReleaseProvider",
    "RepositoryProvider",
    "extract_dockerfile_cmd",
    "parse_repo_identifier",
]
