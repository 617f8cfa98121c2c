"""Project models describing the checkouts Courier may operate on."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator


def normalize_project_key(value: str) -> str:
    """Lowercase a project key and use hyphens as word separators."""

    return value.strip().lower().replace("_", "-")


class Project(BaseModel):
    """A named local checkout that tasks can be run against."""

    key: str = Field(..., description="Stable identifier used in chat commands.")
    path: Path = Field(..., description="Local path of the git checkout.")
    description: str | None = Field(
        default=None, description="Optional human-friendly summary shown in /projects."
    )
    github_repo: str | None = Field(
        default=None,
        description="Optional owner/repo override; otherwise parsed from the origin remote.",
    )

    @field_validator("key")
    @classmethod
    def _normalize_key(cls, value: str) -> str:
        normalized = normalize_project_key(value)
        if not normalized:
            raise ValueError("Project key must not be empty")
        if any(char.isspace() for char in normalized):
            raise ValueError("Project key must not contain whitespace")
        return normalized

    @field_validator("path", mode="before")
    @classmethod
    def _expand_path(cls, value):
        if value is None or str(value).strip() == "":
            raise ValueError("Project path must not be empty")
        return Path(str(value).strip()).expanduser()

    @field_validator("github_repo")
    @classmethod
    def _validate_repo(cls, value: str | None) -> str | None:
        if value is None:
            return None
        slug = value.strip().strip("/")
        if slug.count("/") != 1:
            raise ValueError("github_repo must use the owner/repo format")
        return slug

    @property
    def exists(self) -> bool:
        return self.path.is_dir()


__all__ = ["Project", "normalize_project_key"]
