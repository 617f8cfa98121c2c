"""Git helpers for task branches and working-tree inspection."""

from .branches import create_task_branch, derive_branch_name, discover_main_branch, slugify
from .repository import GitCommandResult, GitRepository, parse_porcelain

__all__ = [
    "GitCommandResult",
    "GitRepository",
    "create_task_branch",
    "derive_branch_name",
    "discover_main_branch",
    "parse_porcelain",
    "slugify",
]
