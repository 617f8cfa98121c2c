"""Exception taxonomy shared across Courier components."""

from __future__ import annotations


class CourierError(RuntimeError):
    """Base class for Courier errors."""


class AdmissionError(CourierError):
    """Raised when a task is rejected before any side effect."""


class UnknownProjectError(AdmissionError):
    """Raised when a project key does not resolve to a known checkout."""

    def __init__(self, project: str, available: list[str] | None = None) -> None:
        self.project = project
        self.available = sorted(available or [])
        message = f"Unknown project: {project}"
        if self.available:
            message += f"\nAvailable: {', '.join(self.available)}"
        super().__init__(message)


class SessionAlreadyActiveError(AdmissionError):
    """Raised when a project already has an in-flight session."""

    def __init__(self, project: str) -> None:
        self.project = project
        super().__init__(f"{project} already has an active session.")


class InvalidTaskError(AdmissionError):
    """Raised when a task carries neither (or both) an issue number and a prompt."""


class EnrichmentError(CourierError):
    """Raised when issue details cannot be fetched; never fatal to a workflow."""


class GitOperationError(CourierError):
    """Base class for version-control failures."""


class GitCommandError(GitOperationError):
    """Raised when a git command exits non-zero."""

    def __init__(self, args: tuple[str, ...], returncode: int, stderr: str) -> None:
        self.args_ = args
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or f"exit code {returncode}"
        super().__init__(f"{' '.join(args)} failed: {detail}")


class BranchCreationError(GitOperationError):
    """Raised when the task branch cannot be created and checked out."""


class AgentRunError(CourierError):
    """Raised when the coding agent fails."""


class WorkflowCancelled(CourierError):
    """Raised when a workflow observes cancellation before it touched the checkout."""


class WorkflowError(CourierError):
    """Wraps unexpected faults raised inside the workflow pipeline."""


__all__ = [
    "AdmissionError",
    "AgentRunError",
    "BranchCreationError",
    "CourierError",
    "EnrichmentError",
    "GitCommandError",
    "GitOperationError",
    "InvalidTaskError",
    "SessionAlreadyActiveError",
    "UnknownProjectError",
    "WorkflowCancelled",
    "WorkflowError",
]
