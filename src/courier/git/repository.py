"""Synchronous git operations scoped to one working directory."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from ..errors import GitCommandError
from .branches import discover_main_branch
from .utils import sanitize_environment

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class GitCommandResult:
    """Holds the outcome of a git invocation."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def parse_porcelain(output: str) -> list[str]:
    """Return paths from ``git status --porcelain -z`` output.

    Renames and copies report the destination path only.
    """

    paths: list[str] = []
    entries = output.split("\0")
    index = 0
    while index < len(entries):
        entry = entries[index]
        index += 1
        if len(entry) < 4:
            continue
        status, path = entry[:2], entry[3:]
        if "R" in status or "C" in status:
            index += 1
        paths.append(path)
    return paths


class GitRepository:
    """Run git commands against a single checkout."""

    def __init__(self, path: Path, *, executable: str = "git") -> None:
        self._path = Path(path)
        self._executable = executable

    @property
    def path(self) -> Path:
        return self._path

    def run(self, *args: str, check: bool = True) -> GitCommandResult:
        cmd = (self._executable, *args)
        logger.debug("git %s", " ".join(args), extra={"cwd": str(self._path)})
        try:
            process = subprocess.run(
                cmd,
                cwd=self._path,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                env=sanitize_environment(),
                check=False,
            )
        except OSError as exc:
            raise GitCommandError(cmd, -1, str(exc)) from exc

        result = GitCommandResult(
            args=cmd, returncode=process.returncode, stdout=process.stdout, stderr=process.stderr
        )
        if check and not result.ok:
            raise GitCommandError(cmd, result.returncode, result.stderr or result.stdout)
        return result

    def has_changes(self) -> bool:
        return bool(self.run("status", "--porcelain").stdout.strip())

    def changed_files(self) -> list[str]:
        output = self.run("status", "--porcelain", "-z", "--untracked-files=all").stdout
        return parse_porcelain(output)

    def commit_all(self, message: str) -> None:
        self.run("add", "-A")
        self.run("commit", "-m", message)

    def push(self, branch: str, remote: str = "origin") -> None:
        self.run("push", "-u", remote, branch)

    def pull(self, branch: str, remote: str = "origin") -> None:
        self.run("pull", remote, branch)

    def checkout(self, branch: str, *, create: bool = False) -> None:
        if create:
            self.run("checkout", "-b", branch)
        else:
            self.run("checkout", branch)

    def delete_branch(self, branch: str) -> None:
        self.run("branch", "-D", branch)

    def branch_exists(self, branch: str) -> bool:
        result = self.run("rev-parse", "--verify", "--quiet", f"refs/heads/{branch}", check=False)
        return result.ok

    def list_branches(self) -> list[str]:
        """Return local and remote-tracking branch names as ``git branch -a`` prints them."""

        names: list[str] = []
        for line in self.run("branch", "-a").stdout.splitlines():
            name = line.strip().lstrip("*+").strip()
            if not name or name.startswith("("):
                continue
            names.append(name.split(" -> ", 1)[0])
        return names

    def current_branch(self) -> str:
        return self.run("rev-parse", "--abbrev-ref", "HEAD").stdout.strip()

    def remote_url(self, remote: str = "origin") -> str | None:
        result = self.run("config", "--get", f"remote.{remote}.url", check=False)
        url = result.stdout.strip()
        return url or None

    def discover_main_branch(self) -> str:
        return discover_main_branch(self)


__all__ = ["GitCommandResult", "GitRepository", "parse_porcelain"]
