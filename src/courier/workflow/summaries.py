"""Commit messages and pull-request text for finished tasks."""

from __future__ import annotations

from typing import Sequence

from ..github import Issue

PR_TITLE_LIMIT = 72
PARTIAL_NOTE = "Partial changes: the agent run was cancelled before it finished."
FOOTER = "---\n_Automated by Courier_"


def _issue_subject(issue_number: int, issue: Issue | None) -> str:
    if issue is not None and issue.title:
        return f"Fix #{issue_number}: {issue.title}"
    return f"Fix #{issue_number}"


def commit_message(
    prompt: str, issue_number: int | None, issue: Issue | None = None, *, partial: bool = False
) -> str:
    subject = _issue_subject(issue_number, issue) if issue_number is not None else prompt
    if partial:
        return f"{subject}\n\n{PARTIAL_NOTE}"
    return subject


def pull_request_title(prompt: str, issue_number: int | None, issue: Issue | None = None) -> str:
    if issue_number is not None:
        return _issue_subject(issue_number, issue)
    if len(prompt) > PR_TITLE_LIMIT:
        return prompt[: PR_TITLE_LIMIT - 3] + "..."
    return prompt


def pull_request_body(
    files_changed: Sequence[str], issue_number: int | None, *, partial: bool = False
) -> str:
    sections = []
    if issue_number is not None:
        sections.append(f"Closes #{issue_number}")
    sections.append("## Changes")
    sections.append("\n".join(f"- `{path}`" for path in files_changed) or "- (none listed)")
    if partial:
        sections.append(f"> {PARTIAL_NOTE}")
    sections.append(FOOTER)
    return "\n\n".join(sections)


__all__ = ["commit_message", "pull_request_body", "pull_request_title"]
