"""Courier entry point: Telegram bot plus a FastMCP status surface."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

from fastmcp import FastMCP

from . import __version__
from .agent import AgentRunner
from .config import CourierSettings, get_settings
from .github import GitHubClient, GitHubGateway
from .projects import ProjectCatalog, ProjectLoadError, ProjectLoader
from .sessions import SessionRegistry
from .workflow import WorkflowOrchestrator


def configure_logging(level: str) -> None:
    """Configure root logging for Courier."""

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )
    # httpx logs every long-poll request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def build_status_payload(registry: SessionRegistry, projects: ProjectCatalog) -> dict[str, Any]:
    """Return the read-only status document used for health checks."""

    return {
        "status": "running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "server_version": __version__,
        "activeSessions": [snapshot.as_dict() for snapshot in registry.list_active()],
        "knownProjects": projects.keys(),
    }


def create_server(
    settings: Optional[CourierSettings] = None,
    *,
    registry: SessionRegistry,
    projects: ProjectCatalog,
) -> FastMCP:
    """Instantiate the FastMCP status server."""

    settings = settings or get_settings()

    server = FastMCP(
        name="Courier",
        version=__version__,
        instructions=(
            "Courier runs a coding agent per project from chat commands. These "
            "read-only tools report active sessions and configured projects."
        ),
    )

    def _status_resource() -> str:
        payload = build_status_payload(registry, projects)
        payload["log_level"] = settings.log_level
        return json.dumps(payload)

    def _list_active_sessions() -> list[dict[str, Any]]:
        """List in-flight sessions with elapsed time and edited file counts."""

        return [snapshot.as_dict() for snapshot in registry.list_active()]

    def _list_projects() -> list[dict[str, Any]]:
        """List configured projects and whether their checkout exists."""

        return [
            {
                "key": project.key,
                "path": str(project.path),
                "description": project.description,
                "checkout_present": project.exists,
                "active": registry.is_active(project.key),
            }
            for project in projects.values()
        ]

    server.resource(
        "resource://courier/status",
        name="courier_status",
        description="Active sessions and known projects for the Courier service.",
        mime_type="application/json",
        tags={"status", "health"},
    )(_status_resource)

    server.tool(
        name="list_active_sessions",
        description="List Courier sessions that are currently running.",
    )(_list_active_sessions)

    server.tool(
        name="list_projects",
        description="List configured Courier projects and their checkout paths.",
    )(_list_projects)

    setattr(server, "registry", registry)
    setattr(server, "projects", projects)
    setattr(server, "courier_status", _status_resource)
    setattr(server, "list_active_sessions", _list_active_sessions)
    setattr(server, "list_projects", _list_projects)
    return server


def build_orchestrator(
    settings: CourierSettings, projects: ProjectCatalog, registry: SessionRegistry
) -> WorkflowOrchestrator:
    gateway: GitHubGateway | None = None
    if settings.github_token:
        overrides = {
            str(project.path): project.github_repo
            for project in projects.values()
            if project.github_repo
        }
        gateway = GitHubGateway(
            GitHubClient(settings.github_token, base_url=settings.github_api_url),
            repo_overrides=overrides,
        )
    else:
        logging.getLogger(__name__).warning(
            "GITHUB_TOKEN not set; issue lookup and pull requests are disabled"
        )

    return WorkflowOrchestrator(
        registry=registry,
        projects=projects,
        agent=AgentRunner(),
        github=gateway,
        settings=settings,
    )


async def serve(settings: CourierSettings, projects: ProjectCatalog) -> None:
    from .chat.telegram import CourierBot

    registry = SessionRegistry()
    orchestrator = build_orchestrator(settings, projects, registry)
    bot = CourierBot(settings.telegram_bot_token, settings.telegram_chat_id, orchestrator)
    server = create_server(settings, registry=registry, projects=projects)

    await bot.start()
    try:
        await server.run_async(
            transport="http", host=settings.status_host, port=settings.status_port
        )
    finally:
        try:
            await bot.stop()
        finally:
            if orchestrator.github is not None:
                orchestrator.github.close()


def main() -> None:
    """Entry point for running Courier via CLI."""

    settings = get_settings()
    configure_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    missing = [
        name
        for name, value in (
            ("TELEGRAM_BOT_TOKEN", settings.telegram_bot_token),
            ("TELEGRAM_CHAT_ID", settings.telegram_chat_id),
        )
        if not value
    ]
    if missing:
        print(f"Missing env vars: {', '.join(missing)}", file=sys.stderr)
        raise SystemExit(1)

    try:
        projects = ProjectCatalog.load(ProjectLoader(settings.project_paths))
    except ProjectLoadError as exc:
        print(f"Invalid project configuration: {exc}", file=sys.stderr)
        raise SystemExit(1)
    if not len(projects):
        print("No projects configured: set PROJECT_* vars or add YAML files", file=sys.stderr)
        raise SystemExit(1)

    logger.info(
        "Launching Courier",
        extra={
            "version": __version__,
            "log_level": settings.log_level,
            "projects": projects.keys(),
            "status_port": settings.status_port,
        },
    )
    try:
        asyncio.run(serve(settings, projects))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
