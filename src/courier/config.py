"""Configuration management for Courier."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated
import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_ALLOWED_TOOLS = ("Read", "Edit", "Write", "Glob", "Grep", "Bash", "Task")
PERMISSION_MODES = {"default", "acceptEdits", "plan", "bypassPermissions"}


class CourierSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    telegram_bot_token: str | None = Field(default=None, validation_alias="TELEGRAM_BOT_TOKEN")
    telegram_chat_id: str | None = Field(default=None, validation_alias="TELEGRAM_CHAT_ID")
    github_token: str | None = Field(default=None, validation_alias="GITHUB_TOKEN")
    github_api_url: str = Field(
        default="https://api.github.com", validation_alias="GITHUB_API_URL"
    )
    project_paths: Annotated[tuple[Path, ...], NoDecode] = Field(
        default=(Path("projects"),), validation_alias="COURIER_PROJECT_PATHS"
    )
    log_level: str = Field(default="INFO", validation_alias="COURIER_LOG_LEVEL")
    progress_interval: float = Field(default=20.0, validation_alias="COURIER_PROGRESS_INTERVAL")
    agent_max_turns: int = Field(default=50, validation_alias="COURIER_AGENT_MAX_TURNS")
    agent_max_budget_usd: float = Field(
        default=5.0, validation_alias="COURIER_AGENT_MAX_BUDGET_USD"
    )
    agent_allowed_tools: Annotated[tuple[str, ...], NoDecode] = Field(
        default=DEFAULT_ALLOWED_TOOLS, validation_alias="COURIER_AGENT_ALLOWED_TOOLS"
    )
    agent_permission_mode: str = Field(
        default="bypassPermissions", validation_alias="COURIER_AGENT_PERMISSION_MODE"
    )
    agent_model: str | None = Field(default=None, validation_alias="COURIER_AGENT_MODEL")
    status_host: str = Field(default="127.0.0.1", validation_alias="COURIER_STATUS_HOST")
    status_port: int = Field(default=3000, validation_alias="PORT")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "COURIER_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("telegram_chat_id", mode="before")
    @classmethod
    def _normalize_chat_id(cls, value):
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("project_paths", mode="before")
    @classmethod
    def _parse_project_paths(cls, value):
        if value is None or value == "":
            return (Path("projects"),)
        if isinstance(value, (list, tuple)):
            return tuple(Path(str(item)) for item in value)
        if isinstance(value, str):
            parts = [part.strip() for part in value.split(os.pathsep) if part.strip()]
            return tuple(Path(part) for part in parts) or (Path("projects"),)
        raise TypeError("COURIER_PROJECT_PATHS must be a list of paths or a path-separated string")

    @field_validator("agent_allowed_tools", mode="before")
    @classmethod
    def _parse_allowed_tools(cls, value):
        if value is None or value == "":
            return DEFAULT_ALLOWED_TOOLS
        if isinstance(value, str):
            return tuple(part.strip() for part in value.split(",") if part.strip())
        if isinstance(value, (list, tuple)):
            return tuple(str(item).strip() for item in value if str(item).strip())
        raise TypeError("COURIER_AGENT_ALLOWED_TOOLS must be a comma-separated string")

    @field_validator("agent_permission_mode")
    @classmethod
    def _validate_permission_mode(cls, value: str) -> str:
        if value not in PERMISSION_MODES:
            raise ValueError(
                f"COURIER_AGENT_PERMISSION_MODE must be one of {sorted(PERMISSION_MODES)}"
            )
        return value

    @field_validator("progress_interval", "agent_max_budget_usd")
    @classmethod
    def _validate_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("COURIER_PROGRESS_INTERVAL and COURIER_AGENT_MAX_BUDGET_USD must be > 0")
        return value

    @field_validator("agent_max_turns")
    @classmethod
    def _validate_max_turns(cls, value: int) -> int:
        if value < 1:
            raise ValueError("COURIER_AGENT_MAX_TURNS must be >= 1")
        return value


@lru_cache(maxsize=1)
def get_settings() -> CourierSettings:
    """Return cached settings instance."""

    settings = CourierSettings()
    settings.project_paths = tuple(path.expanduser().resolve() for path in settings.project_paths)
    return settings


__all__ = ["CourierSettings", "DEFAULT_ALLOWED_TOOLS", "get_settings"]
