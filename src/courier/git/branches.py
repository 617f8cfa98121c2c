"""Branch naming and task-branch creation."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from ..errors import BranchCreationError, GitCommandError
from ..sessions import TaskKind

if TYPE_CHECKING:
    from .repository import GitRepository

logger = logging.getLogger(__name__)

SLUG_MAX_LENGTH = 40
FALLBACK_SLUG = "update"
DEFAULT_MAIN_BRANCH = "main"

_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")


def slugify(text: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    slug = _DISALLOWED.sub("", text.lower()).strip()
    slug = _WHITESPACE.sub("-", slug)
    return slug[:max_length].rstrip("-")


def derive_branch_name(
    *,
    issue_number: int | None = None,
    task_kind: TaskKind | str = TaskKind.AUTO,
    prompt: str | None = None,
) -> str:
    """Return the branch name for a task.

    Issue-linked tasks always use ``fix/<n>``; everything else is
    ``<kind>/<slug of the prompt>``.
    """

    if issue_number is not None:
        return f"fix/{issue_number}"

    kind = TaskKind(task_kind).resolve(prompt)
    slug = slugify(prompt or "") or FALLBACK_SLUG
    return f"{kind.value}/{slug}"


def discover_main_branch(repository: "GitRepository") -> str:
    """Prefer ``main``, then ``master``; default to ``main`` when neither is visible."""

    try:
        branches = repository.list_branches()
    except GitCommandError as exc:
        logger.debug("Branch listing failed, assuming main", extra={"error": str(exc)})
        return DEFAULT_MAIN_BRANCH

    known = {name for name in branches if "/" not in name}
    known.update(name.split("/", 2)[2] for name in branches if name.startswith("remotes/origin/"))
    for candidate in ("main", "master"):
        if candidate in known:
            return candidate
    return DEFAULT_MAIN_BRANCH


def create_task_branch(
    repository: "GitRepository", branch_name: str, *, main_branch: str | None = None
) -> str:
    """Check out a fresh ``branch_name`` from the up-to-date main branch.

    A stale local branch with the same name is deleted first: a repeated task
    replaces its own earlier attempt. This is only safe because at most one
    session runs per checkout.
    """

    main = main_branch or discover_main_branch(repository)
    try:
        repository.checkout(main)
        try:
            repository.pull(main)
        except GitCommandError as exc:
            logger.info("Pull failed, continuing offline", extra={"branch": main, "error": str(exc)})

        if repository.branch_exists(branch_name):
            logger.info("Deleting stale task branch", extra={"branch": branch_name})
            repository.delete_branch(branch_name)

        repository.checkout(branch_name, create=True)
    except GitCommandError as exc:
        raise BranchCreationError(f"Could not create branch {branch_name}: {exc}") from exc
    return branch_name


__all__ = [
    "DEFAULT_MAIN_BRANCH",
    "create_task_branch",
    "derive_branch_name",
    "discover_main_branch",
    "slugify",
]
