from __future__ import annotations

import base64
import json
from typing import Any, Dict, List
from urllib.error import HTTPError, URLError

import pytest

from toolspec.config import GitHubSettings
from toolspec.github.client import (
    GitHubApiError,
    GitHubClient,
    ReleaseProvider,
    RepositoryProvider,
    parse_repo_identifier,
)
from toolspec.models import RepositoryInfo

REPO_PAYLOAD = {
    "name": "variogram-fitter",
    "full_name": "geolab/variogram-fitter",
    "owner": {"login": "geolab"},
    "description": "Fit variograms",
    "language": "Python",
    "stargazers_count": 12,
    "created_at": "2023-01-05T10:00:00Z",
    "updated_at": "2024-02-01T12:30:00Z",
    "clone_url": "https://github.com/geolab/variogram-fitter.git",
    "html_url": "https://github.com/geolab/variogram-fitter",
}


class FakeResponse:
    def __init__(self, payload: Any) -> None:
        self._body = json.dumps(payload).encode("utf-8")

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


def _install(monkeypatch: pytest.MonkeyPatch, routes: Dict[str, Any]) -> List[Dict[str, Any]]:
    calls: List[Dict[str, Any]] = []

    def fake_urlopen(request, timeout=None):
        calls.append(
            {
                "url": request.full_url,
                "headers": {k.lower(): v for k, v in request.header_items()},
                "timeout": timeout,
            }
        )
        outcome = routes.get(request.full_url)
        if outcome is None:
            raise HTTPError(request.full_url, 404, "Not Found", {}, None)  # type: ignore[arg-type]
        if isinstance(outcome, Exception):
            raise outcome
        return FakeResponse(outcome)

    monkeypatch.setattr("toolspec.github.client.urlopen", fake_urlopen)
    return calls


def _repo() -> RepositoryInfo:
    return RepositoryInfo(owner="geolab", name="variogram-fitter", full_name="geolab/variogram-fitter")


@pytest.mark.parametrize(
    ("identifier", "expected"),
    [
        ("https://github.com/geolab/variogram-fitter", ("geolab", "variogram-fitter")),
        ("https://github.com/geolab/variogram-fitter.git", ("geolab", "variogram-fitter")),
        ("https://github.com/geolab/variogram-fitter/tree/main/src", ("geolab", "variogram-fitter")),
        ("git@github.com:geolab/variogram-fitter.git", ("geolab", "variogram-fitter")),
        ("geolab/variogram-fitter", ("geolab", "variogram-fitter")),
    ],
)
def test_parse_repo_identifier_accepts_supported_forms(identifier: str, expected: tuple) -> None:
    assert parse_repo_identifier(identifier) == expected


def test_parse_repo_identifier_rejects_other_hosts() -> None:
    with pytest.raises(ValueError, match="Invalid GitHub URL format: https://gitlab.com/a/b"):
        parse_repo_identifier("https://gitlab.com/a/b")


def test_resolve_repository_maps_payload(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _install(
        monkeypatch,
        {"https://api.example.test/repos/geolab/variogram-fitter": REPO_PAYLOAD},
    )
    client = GitHubClient(GitHubSettings(api_base="https://api.example.test/", token="secret", timeout=4))

    info = client.resolve_repository("geolab/variogram-fitter")

    assert info.owner == "geolab"
    assert info.full_name == "geolab/variogram-fitter"
    assert info.language == "Python"
    assert info.stars == 12
    assert info.html_url == "https://github.com/geolab/variogram-fitter"
    assert calls[0]["headers"]["authorization"] == "Bearer secret"
    assert calls[0]["headers"]["user-agent"] == "toolspec-converter"
    assert calls[0]["timeout"] == 4


def test_resolve_repository_not_found(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, {})
    client = GitHubClient()

    with pytest.raises(GitHubApiError) as excinfo:
        client.resolve_repository("geolab/missing")

    assert excinfo.value.status == 404
    assert excinfo.value.not_found is True
    assert str(excinfo.value) == "Repository geolab/missing not found or not public"


def test_network_failure_has_status_zero(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(
        monkeypatch,
        {"https://api.github.com/repos/geolab/variogram-fitter": URLError("connection refused")},
    )

    with pytest.raises(GitHubApiError) as excinfo:
        GitHubClient().resolve_repository("geolab/variogram-fitter")

    assert excinfo.value.status == 0
    assert excinfo.value.not_found is False
    assert "Network error" in str(excinfo.value)


def test_file_exists_and_content(monkeypatch: pytest.MonkeyPatch) -> None:
    encoded = base64.encodebytes(b"tools:\n  t:\n    title: T\n").decode("ascii")
    base = "https://api.github.com/repos/geolab/variogram-fitter/contents"
    _install(monkeypatch, {f"{base}/src/tool.yml": {"content": encoded, "encoding": "base64"}})
    client = GitHubClient()

    assert client.file_exists(_repo(), "src/tool.yml") is True
    assert client.file_exists(_repo(), "CITATION.cff") is False
    assert client.file_content(_repo(), "src/tool.yml") == "tools:\n  t:\n    title: T\n"


def test_file_content_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    base = "https://api.github.com/repos/geolab/variogram-fitter/contents"
    _install(monkeypatch, {f"{base}/LICENSE": {"content": ""}})
    client = GitHubClient()

    with pytest.raises(GitHubApiError, match="File CITATION.cff not found"):
        client.file_content(_repo(), "CITATION.cff")
    with pytest.raises(GitHubApiError, match="No content found in LICENSE"):
        client.file_content(_repo(), "LICENSE")


def test_file_exists_propagates_non_404_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    url = "https://api.github.com/repos/geolab/variogram-fitter/contents/LICENSE"
    _install(monkeypatch, {url: HTTPError(url, 403, "rate limited", {}, None)})  # type: ignore[arg-type]

    with pytest.raises(GitHubApiError) as excinfo:
        GitHubClient().file_exists(_repo(), "LICENSE")

    assert excinfo.value.status == 403


def test_latest_tag_returns_first_tag_or_none(monkeypatch: pytest.MonkeyPatch) -> None:
    url = "https://api.github.com/repos/geolab/variogram-fitter/tags"
    _install(monkeypatch, {url: [{"name": "v2.1.0"}, {"name": "v2.0.0"}]})
    assert GitHubClient().latest_tag(_repo()) == "v2.1.0"

    _install(monkeypatch, {})
    assert GitHubClient().latest_tag(_repo()) is None


def test_client_satisfies_provider_protocols() -> None:
    client = GitHubClient()

    assert isinstance(client, RepositoryProvider)
    assert isinstance(client, ReleaseProvider)
