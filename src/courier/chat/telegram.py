"""Telegram transport for Courier commands."""

from __future__ import annotations

import logging

from telegram import Update
from telegram.constants import ParseMode
from telegram.error import BadRequest
from telegram.ext import Application, CommandHandler, ContextTypes, filters

from ..errors import AdmissionError, SessionAlreadyActiveError
from ..progress import SendMessage
from ..projects import normalize_project_key
from ..sessions import TaskKind
from ..workflow import WorkflowOrchestrator
from . import formatter
from .commands import CommandError, parse_command

logger = logging.getLogger(__name__)


def make_sender(bot, chat_id: int) -> SendMessage:
    """Return a send callback that falls back to plain text when Markdown is rejected."""

    async def send(text: str) -> None:
        try:
            await bot.send_message(chat_id=chat_id, text=text, parse_mode=ParseMode.MARKDOWN)
        except BadRequest:
            await bot.send_message(chat_id=chat_id, text=text)

    return send


class CourierBot:
    """Serve task commands from a single authorized chat."""

    def __init__(self, token: str, chat_id: str | int, orchestrator: WorkflowOrchestrator) -> None:
        self.chat_id = int(chat_id)
        self.orchestrator = orchestrator
        self.app = Application.builder().token(token).build()
        self._setup_handlers()

    def _setup_handlers(self) -> None:
        only_authorized = filters.Chat(chat_id=self.chat_id)
        handlers = {
            "start": self.cmd_help,
            "help": self.cmd_help,
            "fix": self.cmd_fix,
            "feat": self.cmd_feat,
            "code": self.cmd_code,
            "status": self.cmd_status,
            "cancel": self.cmd_cancel,
            "projects": self.cmd_projects,
        }
        for command, callback in handlers.items():
            self.app.add_handler(CommandHandler(command, callback, filters=only_authorized))

    async def cmd_help(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await update.effective_message.reply_text(formatter.HELP)

    async def cmd_fix(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._handle_task(update, context, TaskKind.FIX)

    async def cmd_feat(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._handle_task(update, context, TaskKind.FEATURE)

    async def cmd_code(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._handle_task(update, context, TaskKind.AUTO)

    async def cmd_status(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        snapshots = self.orchestrator.registry.list_active()
        await update.effective_message.reply_text(formatter.status(snapshots))

    async def cmd_cancel(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        project = " ".join(context.args or []).strip()
        if not project:
            await update.effective_message.reply_text("Usage: /cancel <project>")
            return
        found = self.orchestrator.registry.cancel(normalize_project_key(project))
        await update.effective_message.reply_text(formatter.cancel_result(project, found))

    async def cmd_projects(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await update.effective_message.reply_text(
            formatter.project_list(self.orchestrator.projects.values())
        )

    async def _handle_task(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE, kind: TaskKind
    ) -> None:
        message = update.effective_message
        text = " ".join(context.args or [])
        try:
            request = parse_command(text, kind, self.orchestrator.projects.keys())
        except CommandError as exc:
            await message.reply_text(str(exc))
            return

        send = make_sender(context.bot, update.effective_chat.id)
        try:
            self.orchestrator.launch(request, send)
        except SessionAlreadyActiveError as exc:
            await message.reply_text(formatter.busy(exc.project))
        except AdmissionError as exc:
            logger.info("Task rejected", extra={"project": request.project, "error": str(exc)})
            await message.reply_text(formatter.error(exc))

    async def start(self) -> None:
        """Start long polling, dropping updates that queued while offline."""

        await self.app.initialize()
        await self.app.start()
        await self.app.updater.start_polling(drop_pending_updates=True)
        logger.info(
            "Telegram bot started", extra={"projects": self.orchestrator.projects.keys()}
        )

    async def stop(self) -> None:
        if self.app.updater.running:
            await self.app.updater.stop()
        if self.app.running:
            await self.app.stop()
        await self.app.shutdown()


__all__ = ["CourierBot", "make_sender"]
