"""GitHub REST adapter implementing the repository content provider contract."""

from __future__ import annotations

import base64
import binascii
import json
import re
from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from ..config import DEFAULT_API_BASE, GitHubSettings
from ..logging import get_logger
from ..models import RepositoryInfo

_LOGGER = get_logger("github")

_IDENTIFIER_PATTERNS = (
    re.compile(r"^https?://github\.com/([^/]+)/([^/]+?)(?:\.git)?(?:/.*)?$"),
    re.compile(r"^git@github\.com:([^/]+)/([^/]+?)(?:\.git)?$"),
    re.compile(r"^([^/\s:]+)/([^/\s]+)$"),
)


class GitHubApiError(RuntimeError):
    """Raised when the GitHub API cannot answer a request.

    ``status`` is the HTTP status, ``404`` for missing resources and ``0``
    for transport failures where no response was received.
    """

    def __init__(self, message: str, status: int, url: str) -> None:
        super().__init__(message)
        self.status = status
        self.url = url

    @property
    def not_found(self) -> bool:
        return self.status == 404


@runtime_checkable
class RepositoryProvider(Protocol):
    """Capabilities the check pipeline needs from a repository host."""

    def resolve_repository(self, identifier: str) -> RepositoryInfo: ...

    def file_exists(self, repo: RepositoryInfo, path: str) -> bool: ...

    def file_content(self, repo: RepositoryInfo, path: str) -> str: ...


@runtime_checkable
class ReleaseProvider(Protocol):
    """Optional capability: report the newest tag of a repository."""

    def latest_tag(self, repo: RepositoryInfo) -> Optional[str]: ...


def parse_repo_identifier(identifier: str) -> Tuple[str, str]:
    """Split a GitHub URL, SSH remote or ``owner/name`` string into its parts."""
    candidate = identifier.strip()
    for pattern in _IDENTIFIER_PATTERNS:
        match = pattern.match(candidate)
        if match:
            owner, name = match.group(1), match.group(2)
            if name.endswith(".git"):
                name = name[: -len(".git")]
            return owner, name
    raise ValueError(f"Invalid GitHub URL format: {identifier}")


class GitHubClient:
    """Read-only access to public repositories through the GitHub REST API."""

    def __init__(
        self,
        settings: GitHubSettings | None = None,
        *,
        api_base: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
    ) -> None:
        settings = settings or GitHubSettings()
        self.api_base = (api_base or settings.api_base or DEFAULT_API_BASE).rstrip("/")
        self.token = token if token is not None else settings.token
        self.timeout = timeout if timeout is not None else settings.timeout

    def resolve_repository(self, identifier: str) -> RepositoryInfo:
        owner, name = parse_repo_identifier(identifier)
        url = f"{self.api_base}/repos/{owner}/{name}"
        try:
            payload = self._get_json(url)
        except GitHubApiError as exc:
            if exc.not_found:
                raise GitHubApiError(
                    f"Repository {owner}/{name} not found or not public", 404, url
                ) from exc
            raise
        if not isinstance(payload, dict):
            raise GitHubApiError("GitHub API error: unexpected repository payload", 502, url)
        owner_data = payload.get("owner") or {}
        return RepositoryInfo(
            owner=str(owner_data.get("login") or owner),
            name=str(payload.get("name") or name),
            full_name=str(payload.get("full_name") or f"{owner}/{name}"),
            description=payload.get("description"),
            language=payload.get("language"),
            stars=int(payload.get("stargazers_count") or 0),
            created_at=str(payload.get("created_at") or ""),
            updated_at=str(payload.get("updated_at") or ""),
            clone_url=str(payload.get("clone_url") or ""),
            html_url=str(payload.get("html_url") or ""),
        )

    def file_exists(self, repo: RepositoryInfo, path: str) -> bool:
        try:
            self._get_json(self._contents_url(repo, path))
        except GitHubApiError as exc:
            if exc.not_found:
                return False
            raise
        return True

    def file_content(self, repo: RepositoryInfo, path: str) -> str:
        url = self._contents_url(repo, path)
        try:
            payload = self._get_json(url)
        except GitHubApiError as exc:
            if exc.not_found:
                raise GitHubApiError(f"File {path} not found", 404, url) from exc
            raise
        encoded = payload.get("content") if isinstance(payload, dict) else None
        if not encoded:
            raise GitHubApiError(f"No content found in {path}", 404, url)
        try:
            raw = base64.b64decode("".join(str(encoded).split()))
        except (binascii.Error, ValueError) as exc:
            raise GitHubApiError(f"Could not decode {path}: {exc}", 0, url) from exc
        return raw.decode("utf-8", errors="replace")

    def latest_tag(self, repo: RepositoryInfo) -> Optional[str]:
        """Return the first tag reported by the API, or ``None`` when unavailable."""
        url = f"{self.api_base}/repos/{repo.owner}/{repo.name}/tags"
        try:
            payload = self._get_json(url)
        except GitHubApiError as exc:
            _LOGGER.warning("Failed to fetch tags for %s: %s", repo.full_name, exc)
            return None
        tags = collect_tags(payload)
        return tags[0] if tags else None

    def _contents_url(self, repo: RepositoryInfo, path: str) -> str:
        return f"{self.api_base}/repos/{repo.owner}/{repo.name}/contents/{quote(path.lstrip('/'))}"

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "toolspec-converter",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _get_json(self, url: str) -> Any:
        _LOGGER.debug("GET %s", url)
        request = Request(url, headers=self._headers(), method="GET")
        try:
            with urlopen(request, timeout=self.timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            raise GitHubApiError(f"GitHub API error: {exc.reason}", exc.code, url) from exc
        except URLError as exc:
            raise GitHubApiError(f"Network error: {exc.reason}", 0, url) from exc
        except OSError as exc:
            raise GitHubApiError(f"Network error: {exc}", 0, url) from exc

        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise GitHubApiError(f"GitHub API returned invalid JSON: {exc}", 502, url) from exc


def collect_tags(payload: Any) -> List[str]:
    """Extract tag names from a ``/tags`` response body."""
    if not isinstance(payload, list):
        return []
    return [str(item["name"]) for item in payload if isinstance(item, dict) and item.get("name")]


__all__ = [
    "GitHubApiError",
    "GitHubClient",
    "ReleaseProvider",
    "RepositoryProvider",
    "parse_repo_identifier",
]
