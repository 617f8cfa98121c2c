from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from courier.errors import BranchCreationError, GitCommandError
from courier.git import (
    GitRepository,
    create_task_branch,
    derive_branch_name,
    discover_main_branch,
    slugify,
)
from courier.sessions import TaskKind

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def init_repo(path: Path, branch: str = "main") -> GitRepository:
    path.mkdir(parents=True, exist_ok=True)
    commands = [
        ["git", "init", "-q"],
        ["git", "symbolic-ref", "HEAD", f"refs/heads/{branch}"],
        ["git", "config", "user.email", "courier@example.com"],
        ["git", "config", "user.name", "Courier Tests"],
        ["git", "config", "commit.gpgsign", "false"],
    ]
    for command in commands:
        subprocess.run(command, cwd=path, check=True, capture_output=True)
    (path / "README.md").write_text("hello\n", encoding="utf-8")
    subprocess.run(["git", "add", "-A"], cwd=path, check=True, capture_output=True)
    subprocess.run(["git", "commit", "-q", "-m", "init"], cwd=path, check=True, capture_output=True)
    return GitRepository(path)


def test_issue_tasks_always_use_fix_prefix() -> None:
    assert derive_branch_name(issue_number=42) == "fix/42"
    assert derive_branch_name(issue_number=42, task_kind=TaskKind.FEATURE, prompt="add x") == "fix/42"


def test_prompt_tasks_use_kind_and_slug() -> None:
    assert (
        derive_branch_name(task_kind=TaskKind.FEATURE, prompt="Add Dark Mode!")
        == "feature/add-dark-mode"
    )
    assert derive_branch_name(task_kind=TaskKind.FIX, prompt="login   crash") == "fix/login-crash"
    assert derive_branch_name(task_kind=TaskKind.AUTO, prompt="implement caching") == "feature/implement-caching"
    assert derive_branch_name(task_kind=TaskKind.AUTO, prompt="broken header") == "fix/broken-header"


def test_branch_name_is_deterministic() -> None:
    first = derive_branch_name(task_kind=TaskKind.AUTO, prompt="Create the settings page")
    second = derive_branch_name(task_kind=TaskKind.AUTO, prompt="Create the settings page")
    assert first == second


def test_slug_is_truncated_without_trailing_hyphen() -> None:
    slug = slugify("a" * 39 + " tail words here")
    assert len(slug) <= 40
    assert not slug.endswith("-")
    assert slug == "a" * 39


def test_empty_slug_falls_back() -> None:
    assert derive_branch_name(task_kind=TaskKind.FIX, prompt="!!! ???") == "fix/update"


class ListingRepository:
    def __init__(self, branches=None, error: Exception | None = None) -> None:
        self._branches = branches or []
        self._error = error

    def list_branches(self):
        if self._error:
            raise self._error
        return self._branches


def test_discover_main_branch_preferences() -> None:
    assert discover_main_branch(ListingRepository(["master", "main"])) == "main"
    assert discover_main_branch(ListingRepository(["master", "dev"])) == "master"
    assert discover_main_branch(ListingRepository(["dev", "remotes/origin/master"])) == "master"
    assert discover_main_branch(ListingRepository(["dev"])) == "main"
    failing = ListingRepository(error=GitCommandError(("git", "branch", "-a"), 128, "not a repo"))
    assert discover_main_branch(failing) == "main"


@requires_git
def test_create_task_branch_from_master(tmp_path: Path) -> None:
    repository = init_repo(tmp_path / "repo", branch="master")

    assert repository.discover_main_branch() == "master"
    create_task_branch(repository, "fix/7")

    assert repository.current_branch() == "fix/7"


@requires_git
def test_create_task_branch_replaces_stale_branch(tmp_path: Path) -> None:
    repository = init_repo(tmp_path / "repo")
    repository.checkout("fix/7", create=True)
    (repository.path / "stale.txt").write_text("old attempt\n", encoding="utf-8")
    repository.commit_all("stale attempt")
    repository.checkout("main")

    create_task_branch(repository, "fix/7", main_branch="main")

    assert repository.current_branch() == "fix/7"
    assert not (repository.path / "stale.txt").exists()


@requires_git
def test_create_task_branch_wraps_git_failures(tmp_path: Path) -> None:
    repository = init_repo(tmp_path / "repo")

    with pytest.raises(BranchCreationError):
        create_task_branch(repository, "fix/7", main_branch="does-not-exist")
