"""Rate-limited progress reporting for agent runs."""

from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable

from .agent.events import AgentEvent, Notification, ToolUse
from .chat.formatter import format_progress
from .sessions import Session

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL = 20.0

SendMessage = Callable[[str], Awaitable[object]]


class ProgressNotifier:
    """Fold agent events into the session and emit at most one update per interval.

    One notifier belongs to one workflow invocation; its state is never shared
    between sessions.
    """

    def __init__(
        self,
        send_message: SendMessage,
        *,
        interval: float = PROGRESS_INTERVAL,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._send = send_message
        self._interval = interval
        self._clock = clock or time.monotonic
        self._last_emit = self._clock()
        self.emitted = 0

    @property
    def last_emit(self) -> float:
        return self._last_emit

    async def on_event(self, event: AgentEvent, session: Session) -> str | None:
        """Apply ``event`` to ``session`` and return the status message if one was sent."""

        if isinstance(event, ToolUse):
            if event.is_file_edit:
                session.edited_files.add(event.file_path)
            session.last_activity = event.name
        elif isinstance(event, Notification):
            session.last_activity = event.message
        else:
            return None

        now = self._clock()
        if now - self._last_emit < self._interval:
            return None
        self._last_emit = now

        text = format_progress(
            elapsed=int(now - session.started_at),
            activity=session.last_activity,
            files_modified=len(session.edited_files),
        )
        self.emitted += 1
        try:
            await self._send(text)
        except Exception:
            logger.warning(
                "Progress message delivery failed", extra={"project": session.project}, exc_info=True
            )
        return text


__all__ = ["PROGRESS_INTERVAL", "ProgressNotifier", "SendMessage"]
