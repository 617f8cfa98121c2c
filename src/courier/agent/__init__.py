"""Coding-agent adapter utilities."""

from .events import AgentEvent, AgentRequest, Notification, RunCompleted, ToolUse
from .prompts import build_instruction, system_prompt_config, task_prompt
from .runner import AgentRunner, FakeAgentRunner

__all__ = [
    "AgentEvent",
    "AgentRequest",
    "AgentRunner",
    "FakeAgentRunner",
    "Notification",
    "RunCompleted",
    "ToolUse",
    "build_instruction",
    "system_prompt_config",
    "task_prompt",
]
