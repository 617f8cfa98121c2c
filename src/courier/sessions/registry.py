"""Process-wide table of the active session per project."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from ..errors import SessionAlreadyActiveError
from .models import Session, SessionSnapshot, TaskKind

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Holds at most one session per project key.

    Only the workflow running a session mutates it; the registry itself only
    inserts, removes and signals cancellation.
    """

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock or time.monotonic
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    @property
    def clock(self) -> Callable[[], float]:
        return self._clock

    def create(
        self,
        project: str,
        *,
        task_kind: TaskKind = TaskKind.AUTO,
        issue_number: int | None = None,
    ) -> Session:
        """Admit a new session, raising ``SessionAlreadyActiveError`` when busy."""

        with self._lock:
            if project in self._sessions:
                raise SessionAlreadyActiveError(project)
            session = Session(
                project=project,
                started_at=self._clock(),
                task_kind=task_kind,
                issue_number=issue_number,
            )
            self._sessions[project] = session

        logger.info(
            "Session admitted",
            extra={"project": project, "task_kind": task_kind.value, "issue_number": issue_number},
        )
        return session

    def get(self, project: str) -> Session | None:
        return self._sessions.get(project)

    def is_active(self, project: str) -> bool:
        return project in self._sessions

    def remove(self, project: str, session: Session | None = None) -> None:
        """Remove the session for ``project``; absent sessions are ignored.

        When ``session`` is given, only that exact session is removed so a late
        release cannot evict a newer session admitted after a cancel.
        """

        with self._lock:
            current = self._sessions.get(project)
            if current is None:
                return
            if session is not None and current is not session:
                return
            del self._sessions[project]
        logger.debug("Session removed", extra={"project": project})

    def cancel(self, project: str) -> bool:
        """Signal cancellation and drop the session. Returns whether one existed."""

        with self._lock:
            session = self._sessions.pop(project, None)
        if session is None:
            return False
        session.cancellation.cancel()
        logger.info("Session cancelled", extra={"project": project})
        return True

    def list_active(self) -> list[SessionSnapshot]:
        now = self._clock()
        with self._lock:
            sessions = list(self._sessions.values())
        return [
            SessionSnapshot(
                project=session.project,
                elapsed_seconds=int(now - session.started_at),
                edited_file_count=len(session.edited_files),
                branch_name=session.branch_name,
                state=session.state,
            )
            for session in sessions
        ]

    def __len__(self) -> int:
        return len(self._sessions)


__all__ = ["SessionRegistry"]
