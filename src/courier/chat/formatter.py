"""Chat message formatting."""

from __future__ import annotations

from typing import Iterable, Sequence

from ..projects import Project
from ..sessions import SessionSnapshot, TaskRequest

USAGE = (
    "Usage: /fix <project> <issue#>\n"
    "/feat <project> <description>\n"
    "/code <project> <prompt>"
)

HELP = "\n".join(
    [
        "Courier commands:",
        "/fix <project> <issue#|description> - fix an issue or bug",
        "/feat <project> <description> - build a feature",
        "/code <project> <prompt> - let the prompt decide",
        "/status - active sessions",
        "/cancel <project> - stop the running task",
        "/projects - configured projects",
    ]
)

NO_CHANGES = "No changes made. Cleaning up branch."


def starting(request: TaskRequest) -> str:
    return f"Starting {request.project}...\nTask: {request.label}"


def branch_created(branch_name: str) -> str:
    return f"Branch: `{branch_name}`"


def format_progress(*, elapsed: int, activity: str | None, files_modified: int) -> str:
    return f"[{elapsed}s] {activity or 'Working...'}\nFiles: {files_modified}"


def complete(
    *,
    project: str,
    branch_name: str,
    pull_request_url: str | None,
    files_modified: int,
    elapsed: int,
    cost: float | None,
    cancelled: bool = False,
) -> str:
    lines = [
        f"{'Cancelled (partial changes kept)' if cancelled else 'Done'}: {project}",
        f"Branch: `{branch_name}`",
        f"Files: {files_modified}",
        f"Time: {elapsed}s | Cost: ${(cost or 0.0):.3f}",
        f"PR: {pull_request_url}" if pull_request_url else "PR: unavailable (branch pushed)",
    ]
    return "\n".join(lines)


def cancelled(project: str) -> str:
    return f"Cancelled {project} before any changes were made."


def error(exc: BaseException | str) -> str:
    return f"Error: {exc}"


def busy(project: str) -> str:
    return f"{project} already has an active session."


def status(active_sessions: Sequence[SessionSnapshot]) -> str:
    if not active_sessions:
        return "No active sessions."
    return "\n".join(
        f"{snapshot.project}: {snapshot.elapsed_seconds}s, {snapshot.edited_file_count} files"
        + (f" ({snapshot.branch_name})" if snapshot.branch_name else "")
        for snapshot in active_sessions
    )


def project_list(projects: Iterable[Project]) -> str:
    lines = []
    for project in projects:
        line = project.key
        if project.description:
            line += f" - {project.description}"
        lines.append(line)
    return "\n".join(lines) if lines else "No projects configured."


def cancel_result(project: str, found: bool) -> str:
    return f"Cancelled {project}." if found else f"No active session for {project}."


__all__ = [
    "HELP",
    "NO_CHANGES",
    "USAGE",
    "branch_created",
    "busy",
    "cancel_result",
    "cancelled",
    "complete",
    "error",
    "format_progress",
    "project_list",
    "starting",
    "status",
]
