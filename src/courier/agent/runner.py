"""Async adapter around the Claude Agent SDK."""

from __future__ import annotations

import logging
from contextlib import aclosing
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Iterable

from claude_agent_sdk import (
    AssistantMessage,
    ClaudeAgentOptions,
    ClaudeSDKError,
    ResultMessage,
    TextBlock,
    ToolUseBlock,
    query,
)

from ..errors import AgentRunError
from .events import AgentEvent, AgentRequest, Notification, RunCompleted, ToolUse
from .prompts import system_prompt_config

logger = logging.getLogger(__name__)

_NOTIFICATION_LIMIT = 200


def _relative_path(raw: Any, root: Path) -> str | None:
    if not isinstance(raw, str) or not raw.strip():
        return None
    candidate = Path(raw)
    if candidate.is_absolute():
        try:
            return candidate.resolve().relative_to(root.resolve()).as_posix()
        except ValueError:
            return candidate.as_posix()
    return candidate.as_posix()


def _first_line(text: str) -> str | None:
    for line in text.splitlines():
        stripped = line.strip()
        if stripped:
            return stripped[:_NOTIFICATION_LIMIT]
    return None


def translate_message(message: Any, working_directory: Path) -> list[AgentEvent]:
    """Map one SDK message onto Courier's agent events."""

    if isinstance(message, AssistantMessage):
        events: list[AgentEvent] = []
        for block in message.content:
            if isinstance(block, ToolUseBlock):
                tool_input = block.input or {}
                path = tool_input.get("file_path") or tool_input.get("notebook_path")
                events.append(ToolUse(name=block.name, file_path=_relative_path(path, working_directory)))
            elif isinstance(block, TextBlock):
                line = _first_line(block.text)
                if line:
                    events.append(Notification(message=line))
        return events

    if isinstance(message, ResultMessage):
        return [
            RunCompleted(
                total_cost_usd=message.total_cost_usd,
                num_turns=message.num_turns,
                is_error=bool(message.is_error),
                subtype=message.subtype,
            )
        ]

    return []


class AgentRunner:
    """Run the coding agent and stream its activity as typed events."""

    def __init__(self, query_fn: Callable[..., Any] | None = None) -> None:
        self._query = query_fn or query

    @staticmethod
    def build_options(request: AgentRequest) -> ClaudeAgentOptions:
        options = ClaudeAgentOptions(
            cwd=str(request.working_directory),
            system_prompt=system_prompt_config(),
            setting_sources=["project"],
            permission_mode=request.permission_mode,
            allowed_tools=list(request.allowed_tools),
            max_turns=request.max_turns,
            max_budget_usd=request.max_budget_usd,
        )
        if request.model:
            options.model = request.model
        return options

    async def stream(self, request: AgentRequest) -> AsyncIterator[AgentEvent]:
        """Yield events until the agent finishes or cancellation is requested."""

        options = self.build_options(request)
        logger.info(
            "Starting agent run",
            extra={
                "cwd": str(request.working_directory),
                "max_turns": request.max_turns,
                "max_budget_usd": request.max_budget_usd,
            },
        )
        try:
            async with aclosing(self._query(prompt=request.instruction, options=options)) as messages:
                async for message in messages:
                    for event in translate_message(message, request.working_directory):
                        yield event
                    if request.cancellation.cancelled:
                        logger.info("Agent run stopped on cancellation")
                        return
        except ClaudeSDKError as exc:
            raise AgentRunError(f"Agent run failed: {exc}") from exc


class FakeAgentRunner(AgentRunner):
    """Test double that replays scripted agent events."""

    def __init__(
        self,
        events: Iterable[AgentEvent] | None = None,
        *,
        error: Exception | None = None,
        before_event: Callable[[int, AgentEvent], None] | None = None,
    ) -> None:  # type: ignore[override]
        self._events = list(events or [])
        self._error = error
        self._before_event = before_event
        self._requests: list[AgentRequest] = []
        self.delivered = 0

    async def stream(self, request: AgentRequest) -> AsyncIterator[AgentEvent]:  # type: ignore[override]
        self._requests.append(request)
        for index, event in enumerate(self._events):
            if self._before_event is not None:
                self._before_event(index, event)
            self.delivered += 1
            yield event
        if self._error is not None:
            raise self._error

    @property
    def requests(self) -> list[AgentRequest]:
        return self._requests


__all__ = ["AgentRunner", "FakeAgentRunner", "translate_message"]
