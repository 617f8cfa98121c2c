from __future__ import annotations

from pathlib import Path

import pytest
import requests

from courier.errors import EnrichmentError
from courier.github import GitHubAPIError, GitHubClient, GitHubGateway, Issue, parse_repo_slug


class StubResponse:
    def __init__(self, status_code: int, payload=None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class StubSession:
    def __init__(self, responses=None, error: Exception | None = None) -> None:
        self.responses = list(responses or [])
        self.error = error
        self.calls: list[dict] = []
        self.closed = False

    def request(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)

    def close(self) -> None:
        self.closed = True


class StubRepository:
    def __init__(self, remote: str | None = "git@github.com:acme/website.git") -> None:
        self.remote = remote

    def remote_url(self):
        return self.remote

    def discover_main_branch(self) -> str:
        return "master"


@pytest.mark.parametrize(
    "url",
    [
        "https://github.com/acme/website.git",
        "https://github.com/acme/website",
        "git@github.com:acme/website.git",
        "ssh://git@github.com/acme/website.git",
    ],
)
def test_parse_repo_slug(url: str) -> None:
    assert parse_repo_slug(url) == "acme/website"


def test_parse_repo_slug_rejects_other_hosts() -> None:
    with pytest.raises(ValueError):
        parse_repo_slug("https://gitlab.com/acme/website.git")


def test_client_sets_auth_headers() -> None:
    client = GitHubClient("secret-token")
    try:
        headers = client._session.headers
        assert headers["Authorization"] == "Bearer secret-token"
        assert headers["User-Agent"].startswith("courier/")
    finally:
        client.close()


def test_client_requests_issue() -> None:
    session = StubSession([StubResponse(200, {"number": 5, "title": "Broken"})])
    client = GitHubClient("t", base_url="https://ghe.example.com/api/v3/", session=session)

    data = client.get_issue("acme/website", 5)

    assert data["title"] == "Broken"
    assert session.calls[0]["method"] == "GET"
    assert session.calls[0]["url"] == "https://ghe.example.com/api/v3/repos/acme/website/issues/5"


def test_client_raises_with_api_message() -> None:
    session = StubSession([StubResponse(422, {"message": "Validation Failed"})])
    client = GitHubClient("t", session=session)

    with pytest.raises(GitHubAPIError) as excinfo:
        client.create_pull_request("acme/website", title="t", head="fix/1", base="main", body="b")

    assert excinfo.value.status_code == 422
    assert str(excinfo.value) == "[422] Validation Failed"
    assert session.calls[0]["json"]["head"] == "fix/1"


def test_client_wraps_transport_errors() -> None:
    session = StubSession(error=requests.exceptions.ConnectionError("unreachable"))
    client = GitHubClient("t", session=session)

    with pytest.raises(GitHubAPIError):
        client.get_issue("acme/website", 1)


def test_issue_from_api_flattens_labels_and_body() -> None:
    issue = Issue.from_api(
        {"number": 42, "title": "Null pointer on login", "body": None, "labels": [{"name": "bug"}, "ui"]}
    )

    assert issue.body == "No description provided"
    assert issue.labels == ("bug", "ui")


def test_gateway_fetches_issue_from_origin_remote(tmp_path: Path) -> None:
    session = StubSession([StubResponse(200, {"number": 42, "title": "Null pointer on login"})])
    gateway = GitHubGateway(
        GitHubClient("t", session=session), repository_factory=lambda _path: StubRepository()
    )

    issue = gateway.get_issue(tmp_path, 42)

    assert issue == Issue(number=42, title="Null pointer on login")
    assert session.calls[0]["url"].endswith("/repos/acme/website/issues/42")


def test_gateway_issue_failure_returns_none(tmp_path: Path, caplog) -> None:
    session = StubSession([StubResponse(404, {"message": "Not Found"})])
    gateway = GitHubGateway(
        GitHubClient("t", session=session), repository_factory=lambda _path: StubRepository()
    )
    caplog.set_level("WARNING", logger="courier.github.gateway")

    assert gateway.get_issue(tmp_path, 404) is None
    assert any("Failed to fetch issue" in record.getMessage() for record in caplog.records)


def test_gateway_without_remote_returns_none(tmp_path: Path) -> None:
    gateway = GitHubGateway(
        GitHubClient("t", session=StubSession()),
        repository_factory=lambda _path: StubRepository(remote=None),
    )

    assert gateway.get_issue(tmp_path, 1) is None
    assert gateway.create_pull_request(tmp_path, "fix/1", title="t", body="b") is None


def test_gateway_creates_pull_request_against_main_branch(tmp_path: Path) -> None:
    session = StubSession(
        [StubResponse(201, {"html_url": "https://github.com/acme/shop/pull/3"})]
    )
    gateway = GitHubGateway(
        GitHubClient("t", session=session),
        repository_factory=lambda _path: StubRepository(),
        repo_overrides={str(tmp_path): "acme/shop"},
    )

    url = gateway.create_pull_request(tmp_path, "fix/3", title="Fix #3", body="Closes #3")

    assert url == "https://github.com/acme/shop/pull/3"
    payload = session.calls[0]["json"]
    assert session.calls[0]["url"].endswith("/repos/acme/shop/pulls")
    assert payload == {"title": "Fix #3", "head": "fix/3", "base": "master", "body": "Closes #3"}


def test_fetch_issue_raises_enrichment_error(tmp_path: Path) -> None:
    session = StubSession([StubResponse(500, None, text="boom")])
    gateway = GitHubGateway(
        GitHubClient("t", session=session), repository_factory=lambda _path: StubRepository()
    )

    with pytest.raises(EnrichmentError) as excinfo:
        gateway.fetch_issue(tmp_path, 8)

    assert "Could not fetch issue #8" in str(excinfo.value)


def test_gateway_pull_request_rejection_returns_none(tmp_path: Path, caplog) -> None:
    session = StubSession(
        [StubResponse(422, {"message": "A pull request already exists for acme:fix/3."})]
    )
    gateway = GitHubGateway(
        GitHubClient("t", session=session), repository_factory=lambda _path: StubRepository()
    )
    caplog.set_level("WARNING", logger="courier.github.gateway")

    url = gateway.create_pull_request(tmp_path, "fix/3", title="Fix #3", body="Closes #3")

    assert url is None
    (record,) = [r for r in caplog.records if r.getMessage() == "Failed to create pull request"]
    assert record.branch == "fix/3"
    assert "[422] A pull request already exists" in record.error


def test_gateway_close_releases_http_session() -> None:
    session = StubSession()
    gateway = GitHubGateway(GitHubClient("t", session=session))

    gateway.close()

    assert session.closed is True
