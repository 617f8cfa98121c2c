"""Parsing of chat task commands."""

from __future__ import annotations

from typing import Iterable

from ..errors import InvalidTaskError
from ..projects import normalize_project_key
from ..sessions import TaskKind, TaskRequest
from .formatter import USAGE

MISSING_PROMPT = (
    "Need a prompt or issue number.\n"
    "E.g.: /fix myproject 23\n"
    "/feat myproject add dark mode"
)


class CommandError(ValueError):
    """Raised with a user-facing reply when a command cannot be parsed."""


def parse_command(text: str | None, task_kind: TaskKind, projects: Iterable[str]) -> TaskRequest:
    """Turn the arguments of /fix, /feat or /code into a task request.

    ``/fix <project> 23`` targets issue #23; anything else after the project
    is the prompt.
    """

    if not text or not text.strip():
        raise CommandError(USAGE)

    words = text.split()
    project = normalize_project_key(words[0])
    known = sorted(projects)
    if project not in known:
        raise CommandError(f"Unknown project: {words[0]}\nAvailable: {', '.join(known)}")

    rest = words[1:]
    if task_kind is TaskKind.FIX and len(rest) == 1 and rest[0].isdigit():
        try:
            return TaskRequest(project=project, task_kind=task_kind, issue_number=int(rest[0]))
        except InvalidTaskError as exc:
            raise CommandError(str(exc)) from exc

    prompt = " ".join(rest)
    if not prompt:
        raise CommandError(MISSING_PROMPT)
    return TaskRequest(project=project, task_kind=task_kind, prompt=prompt)


__all__ = ["CommandError", "MISSING_PROMPT", "parse_command"]
