"""Minimal GitHub REST client for issues and pull requests."""

from __future__ import annotations

import logging
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .. import __version__

logger = logging.getLogger(__name__)


class GitHubAPIError(RuntimeError):
    """Raised when the GitHub API returns an error or cannot be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code:
            return f"[{self.status_code}] {super().__str__()}"
        return super().__str__()


class GitHubClient:
    """Authenticated session against the GitHub REST API."""

    DEFAULT_BASE_URL = "https://api.github.com"
    DEFAULT_TIMEOUT = 30
    DEFAULT_RETRY_COUNT = 3
    DEFAULT_BACKOFF_FACTOR = 0.5

    def __init__(
        self,
        token: str | None,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        retry_count: int | None = None,
        backoff_factor: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._token = token
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self.retry_count = self.DEFAULT_RETRY_COUNT if retry_count is None else retry_count
        self.backoff_factor = backoff_factor or self.DEFAULT_BACKOFF_FACTOR
        self._session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "User-Agent": f"courier/{__version__}",
            }
        )
        if self._token:
            session.headers["Authorization"] = f"Bearer {self._token}"

        retry_strategy = Retry(
            total=self.retry_count,
            backoff_factor=self.backoff_factor,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["GET"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session

    def get_issue(self, repo: str, issue_number: int) -> dict[str, Any]:
        return self._request("GET", f"/repos/{repo}/issues/{issue_number}")

    def create_pull_request(
        self, repo: str, *, title: str, head: str, base: str, body: str
    ) -> dict[str, Any]:
        payload = {"title": title, "head": head, "base": base, "body": body}
        return self._request("POST", f"/repos/{repo}/pulls", data=payload)

    def _request(self, method: str, endpoint: str, data: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}{endpoint}"
        logger.debug("GitHub API: %s %s", method, endpoint)
        try:
            response = self._session.request(method=method, url=url, json=data, timeout=self.timeout)
        except requests.exceptions.Timeout as exc:
            raise GitHubAPIError(f"Request timed out: {method} {endpoint}") from exc
        except requests.exceptions.RequestException as exc:
            raise GitHubAPIError(f"Request failed: {exc}") from exc

        if response.status_code >= 400:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            raise GitHubAPIError(message, response.status_code)

        if response.status_code == 204:
            return {}
        return response.json()

    def close(self) -> None:
        self._session.close()


__all__ = ["GitHubAPIError", "GitHubClient"]
