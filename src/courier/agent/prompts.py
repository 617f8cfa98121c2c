"""Instruction composition for the coding agent."""

from __future__ import annotations

from typing import Any

from ..github import Issue

SYSTEM_PROMPT_APPEND = """
After completing your work, do NOT commit, push, or create PRs.
Only make the code changes. The orchestrator handles git operations.
Follow existing project patterns. Write production-ready code."""


def system_prompt_config() -> dict[str, Any]:
    """Use the Claude Code preset with Courier's git hand-off rules appended."""

    return {"type": "preset", "preset": "claude_code", "append": SYSTEM_PROMPT_APPEND}


def task_prompt(prompt: str | None, issue_number: int | None, issue: Issue | None) -> str:
    """Return the one-line task statement used for the agent, commits and PRs."""

    if issue_number is not None:
        if issue is not None:
            return f"Fix issue #{issue_number}: {issue.title}"
        return prompt or f"Fix issue #{issue_number}"
    return prompt or ""


def build_instruction(prompt: str, issue: Issue | None) -> str:
    parts = [prompt]

    if issue is not None:
        parts.append(f"\nGitHub Issue #{issue.number}: {issue.title}")
        if issue.body:
            parts.append(f"\nIssue description:\n{issue.body}")
        if issue.labels:
            parts.append(f"Labels: {', '.join(issue.labels)}")

    return "\n".join(parts)


__all__ = ["SYSTEM_PROMPT_APPEND", "build_instruction", "system_prompt_config", "task_prompt"]
