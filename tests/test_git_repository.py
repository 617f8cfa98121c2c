from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from courier.errors import GitCommandError
from courier.git import GitRepository, parse_porcelain
from courier.git.utils import sanitize_environment

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def init_repo(path: Path) -> GitRepository:
    path.mkdir(parents=True, exist_ok=True)
    for command in (
        ["git", "init", "-q"],
        ["git", "symbolic-ref", "HEAD", "refs/heads/main"],
        ["git", "config", "user.email", "courier@example.com"],
        ["git", "config", "user.name", "Courier Tests"],
        ["git", "config", "commit.gpgsign", "false"],
    ):
        subprocess.run(command, cwd=path, check=True, capture_output=True)
    (path / "app.ts").write_text("export {}\n", encoding="utf-8")
    subprocess.run(["git", "add", "-A"], cwd=path, check=True, capture_output=True)
    subprocess.run(["git", "commit", "-q", "-m", "init"], cwd=path, check=True, capture_output=True)
    return GitRepository(path)


def test_parse_porcelain_handles_renames_and_spaces() -> None:
    output = " M src/app.ts\0R  new name.ts\0old name.ts\0?? notes/todo.md\0"

    assert parse_porcelain(output) == ["src/app.ts", "new name.ts", "notes/todo.md"]
    assert parse_porcelain("") == []


def test_sanitize_environment_strips_git_overrides(monkeypatch) -> None:
    monkeypatch.setenv("GIT_DIR", "/elsewhere/.git")
    monkeypatch.setenv("GIT_WORK_TREE", "/elsewhere")

    env = sanitize_environment({"EXTRA": "1"})

    assert "GIT_DIR" not in env
    assert "GIT_WORK_TREE" not in env
    assert env["GIT_TERMINAL_PROMPT"] == "0"
    assert env["EXTRA"] == "1"


@requires_git
def test_clean_checkout_has_no_changes(tmp_path: Path) -> None:
    repository = init_repo(tmp_path / "repo")

    assert repository.has_changes() is False
    assert repository.changed_files() == []
    assert repository.current_branch() == "main"
    assert repository.remote_url() is None


@requires_git
def test_changed_files_include_untracked_nested_paths(tmp_path: Path) -> None:
    repository = init_repo(tmp_path / "repo")
    (repository.path / "app.ts").write_text("export const x = 1\n", encoding="utf-8")
    (repository.path / "src" / "auth").mkdir(parents=True)
    (repository.path / "src" / "auth" / "login.ts").write_text("login\n", encoding="utf-8")

    assert repository.has_changes() is True
    assert sorted(repository.changed_files()) == ["app.ts", "src/auth/login.ts"]


@requires_git
def test_commit_all_records_message(tmp_path: Path) -> None:
    repository = init_repo(tmp_path / "repo")
    (repository.path / "login.ts").write_text("fixed\n", encoding="utf-8")

    repository.commit_all("Fix #42: Null pointer on login")

    log = repository.run("log", "-1", "--format=%s").stdout.strip()
    assert log == "Fix #42: Null pointer on login"
    assert repository.has_changes() is False


@requires_git
def test_branch_helpers(tmp_path: Path) -> None:
    repository = init_repo(tmp_path / "repo")
    repository.checkout("feature/x", create=True)
    repository.checkout("main")

    assert repository.branch_exists("feature/x")
    assert "feature/x" in repository.list_branches()

    repository.delete_branch("feature/x")
    assert not repository.branch_exists("feature/x")


@requires_git
def test_failed_command_raises_git_command_error(tmp_path: Path) -> None:
    repository = init_repo(tmp_path / "repo")

    with pytest.raises(GitCommandError) as excinfo:
        repository.checkout("missing-branch")

    assert excinfo.value.returncode != 0
    assert "checkout" in str(excinfo.value)


def test_missing_executable_raises_git_command_error(tmp_path: Path) -> None:
    repository = GitRepository(tmp_path, executable=str(tmp_path / "no-git-here"))

    with pytest.raises(GitCommandError):
        repository.has_changes()
