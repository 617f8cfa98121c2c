"""Issue lookup and pull-request creation for a local checkout."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from ..errors import EnrichmentError, GitCommandError
from ..git import GitRepository
from .client import GitHubAPIError, GitHubClient

logger = logging.getLogger(__name__)

_REMOTE_PATTERN = re.compile(r"github\.com[:/](?P<owner>[^/]+)/(?P<repo>.+?)(?:\.git)?/?$")
NO_DESCRIPTION = "No description provided"


@dataclass(slots=True, frozen=True)
class Issue:
    number: int
    title: str
    body: str = NO_DESCRIPTION
    labels: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_api(cls, data: dict) -> "Issue":
        labels = tuple(
            label if isinstance(label, str) else label.get("name", "")
            for label in data.get("labels") or []
        )
        return cls(
            number=int(data["number"]),
            title=data.get("title") or "",
            body=data.get("body") or NO_DESCRIPTION,
            labels=tuple(label for label in labels if label),
        )


def parse_repo_slug(remote_url: str) -> str:
    """Return ``owner/repo`` for a GitHub remote URL (https or ssh)."""

    match = _REMOTE_PATTERN.search(remote_url.strip())
    if not match:
        raise ValueError(f"Could not parse GitHub repo from remote URL: {remote_url}")
    return f"{match.group('owner')}/{match.group('repo')}"


class GitHubGateway:
    """Resolve a checkout to its GitHub repository and talk to the API.

    Every failure is logged and reported as ``None``: issue details only
    enrich a task, and a missing PR leaves the pushed branch usable.
    """

    def __init__(
        self,
        client: GitHubClient,
        *,
        repository_factory: Callable[[Path], GitRepository] = GitRepository,
        repo_overrides: dict[str, str] | None = None,
    ) -> None:
        self._client = client
        self._repository_factory = repository_factory
        self._repo_overrides = {str(Path(path)): slug for path, slug in (repo_overrides or {}).items()}

    def repo_slug(self, repo_path: Path) -> str:
        override = self._repo_overrides.get(str(Path(repo_path)))
        if override:
            return override
        remote = self._repository_factory(Path(repo_path)).remote_url()
        if remote is None:
            raise ValueError(f"No origin remote configured in {repo_path}")
        return parse_repo_slug(remote)

    def fetch_issue(self, repo_path: Path, issue_number: int) -> Issue:
        """Return issue details or raise ``EnrichmentError``."""

        try:
            slug = self.repo_slug(repo_path)
            return Issue.from_api(self._client.get_issue(slug, issue_number))
        except (GitHubAPIError, GitCommandError, ValueError, KeyError) as exc:
            raise EnrichmentError(f"Could not fetch issue #{issue_number}: {exc}") from exc

    def get_issue(self, repo_path: Path, issue_number: int) -> Issue | None:
        try:
            return self.fetch_issue(repo_path, issue_number)
        except EnrichmentError as exc:
            logger.warning(
                "Failed to fetch issue",
                extra={"issue_number": issue_number, "repo_path": str(repo_path), "error": str(exc)},
            )
            return None

    def create_pull_request(
        self,
        repo_path: Path,
        branch_name: str,
        *,
        title: str,
        body: str,
        base: str | None = None,
    ) -> str | None:
        try:
            slug = self.repo_slug(repo_path)
            base_branch = base or self._repository_factory(Path(repo_path)).discover_main_branch()
            data = self._client.create_pull_request(
                slug, title=title, head=branch_name, base=base_branch, body=body
            )
            return data.get("html_url")
        except (GitHubAPIError, GitCommandError, ValueError) as exc:
            logger.warning(
                "Failed to create pull request",
                extra={"branch": branch_name, "repo_path": str(repo_path), "error": str(exc)},
            )
            return None

    def close(self) -> None:
        self._client.close()


__all__ = ["GitHubGateway", "Issue", "NO_DESCRIPTION", "parse_repo_slug"]
