"""Data models for in-flight task sessions."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from enum import Enum

from ..errors import InvalidTaskError

_FEATURE_KEYWORDS = re.compile(r"\b(add|implement|create)\b", re.IGNORECASE)


class TaskKind(str, Enum):
    FEATURE = "feature"
    FIX = "fix"
    AUTO = "auto"

    def resolve(self, prompt: str | None) -> "TaskKind":
        """Return a concrete kind, inferring ``AUTO`` from keywords in the prompt."""

        if self is not TaskKind.AUTO:
            return self
        if prompt and _FEATURE_KEYWORDS.search(prompt):
            return TaskKind.FEATURE
        return TaskKind.FIX


@dataclass(slots=True, frozen=True)
class TaskRequest:
    """A validated request to run one task against one project."""

    project: str
    task_kind: TaskKind = TaskKind.AUTO
    issue_number: int | None = None
    prompt: str | None = None

    def __post_init__(self) -> None:
        prompt = self.prompt.strip() if self.prompt else None
        object.__setattr__(self, "prompt", prompt or None)
        object.__setattr__(self, "task_kind", TaskKind(self.task_kind))

        if self.issue_number is not None and self.issue_number <= 0:
            raise InvalidTaskError("Issue number must be a positive integer")
        if (self.issue_number is None) == (self.prompt is None):
            raise InvalidTaskError("Provide exactly one of an issue number or a prompt")

    @property
    def label(self) -> str:
        """Short description used in chat and logs."""

        if self.issue_number is not None:
            return f"Fix #{self.issue_number}"
        return self.prompt or ""


class CancellationToken:
    """Cooperative cancellation flag polled by the workflow at checkpoints."""

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(slots=True)
class Session:
    """Mutable record of one in-flight task."""

    project: str
    started_at: float
    task_kind: TaskKind
    issue_number: int | None = None
    branch_name: str | None = None
    pull_request_url: str | None = None
    edited_files: set[str] = field(default_factory=set)
    last_activity: str | None = None
    issue_title: str | None = None
    state: str = "admitted"
    cancellation: CancellationToken = field(default_factory=CancellationToken)


@dataclass(slots=True, frozen=True)
class SessionSnapshot:
    project: str
    elapsed_seconds: int
    edited_file_count: int
    branch_name: str | None
    state: str

    def as_dict(self) -> dict[str, object]:
        return {
            "project": self.project,
            "elapsed_seconds": self.elapsed_seconds,
            "edited_file_count": self.edited_file_count,
            "branch_name": self.branch_name,
            "state": self.state,
        }


__all__ = ["CancellationToken", "Session", "SessionSnapshot", "TaskKind", "TaskRequest"]
