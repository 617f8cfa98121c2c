"""GitHub issue and pull-request integration."""

from .client import GitHubAPIError, GitHubClient
from .gateway import GitHubGateway, Issue, parse_repo_slug

__all__ = [
    "GitHubAPIError",
    "GitHubClient",
    "GitHubGateway",
    "Issue",
    "parse_repo_slug",
]
