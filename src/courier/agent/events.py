"""Typed events surfaced by the coding agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from ..sessions import CancellationToken

FILE_EDIT_TOOLS = frozenset({"Write", "Edit", "MultiEdit", "NotebookEdit"})


@dataclass(slots=True, frozen=True)
class ToolUse:
    name: str
    file_path: str | None = None

    @property
    def is_file_edit(self) -> bool:
        return self.name in FILE_EDIT_TOOLS and bool(self.file_path)


@dataclass(slots=True, frozen=True)
class Notification:
    message: str


@dataclass(slots=True, frozen=True)
class RunCompleted:
    """Terminal record of an agent run."""

    total_cost_usd: float | None = None
    num_turns: int | None = None
    is_error: bool = False
    subtype: str | None = None


AgentEvent = Union[ToolUse, Notification, RunCompleted]


@dataclass(slots=True)
class AgentRequest:
    """Everything the coding agent needs for one run."""

    instruction: str
    working_directory: Path
    allowed_tools: tuple[str, ...]
    permission_mode: str
    max_turns: int
    max_budget_usd: float
    cancellation: CancellationToken = field(default_factory=CancellationToken)
    model: str | None = None


__all__ = [
    "AgentEvent",
    "AgentRequest",
    "FILE_EDIT_TOOLS",
    "Notification",
    "RunCompleted",
    "ToolUse",
]
