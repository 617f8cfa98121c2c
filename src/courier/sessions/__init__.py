"""Session registry and models."""

from .models import CancellationToken, Session, SessionSnapshot, TaskKind, TaskRequest
from .registry import SessionRegistry

__all__ = [
    "CancellationToken",
    "Session",
    "SessionRegistry",
    "SessionSnapshot",
    "TaskKind",
    "TaskRequest",
]
