"""Project loading utilities."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Mapping

import yaml
from pydantic import ValidationError

from ..errors import UnknownProjectError
from .models import Project, normalize_project_key

ENV_PREFIX = "PROJECT_"


class ProjectLoadError(RuntimeError):
    """Raised when one or more project definitions cannot be parsed."""


def projects_from_environment(environ: Mapping[str, str] | None = None) -> dict[str, Project]:
    """Build projects from ``PROJECT_<NAME>=<path>`` variables.

    ``PROJECT_TRADING_BOT=/src/bot`` yields the key ``trading-bot``.
    """

    source = os.environ if environ is None else environ
    projects: dict[str, Project] = {}
    errors: list[str] = []
    for name, value in sorted(source.items()):
        if not name.startswith(ENV_PREFIX) or name == ENV_PREFIX:
            continue
        key = normalize_project_key(name[len(ENV_PREFIX):])
        try:
            project = Project(key=key, path=value)
        except ValidationError as exc:
            errors.append(f"Project validation error in ${name}: {exc}")
            continue
        projects[project.key] = project

    if errors:
        raise ProjectLoadError("; ".join(errors))
    return projects


class ProjectLoader:
    """Loads project definitions from the environment and YAML files on disk."""

    def __init__(
        self,
        search_paths: Iterable[Path] | None = None,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        paths = [Path(path) for path in (search_paths or [])]
        self._search_paths: list[Path] = [path for path in paths if path.exists()]
        self._environ = environ

    @property
    def search_paths(self) -> list[Path]:
        """Return the normalized search paths."""

        return list(self._search_paths)

    def load_all(self) -> dict[str, Project]:
        """Load projects from the environment, then from every search path.

        YAML definitions override environment ones, and later search paths
        override earlier ones when keys collide.
        """

        projects = projects_from_environment(self._environ)
        errors: list[str] = []

        for base in self._search_paths:
            for path in sorted(base.glob("*.yml")) + sorted(base.glob("*.yaml")):
                try:
                    document = yaml.safe_load(path.read_text(encoding="utf-8"))
                except yaml.YAMLError as exc:  # pragma: no cover - library type
                    errors.append(f"Failed to parse YAML in {path}: {exc}")
                    continue

                if document is None:
                    continue

                if isinstance(document, dict) and "key" not in document:
                    document = {**document, "key": path.stem}

                try:
                    project = Project.model_validate(document)
                except ValidationError as exc:
                    errors.append(f"Project validation error in {path}: {exc}")
                    continue

                projects[project.key] = project

        if errors:
            raise ProjectLoadError("; ".join(errors))

        return projects

    def get(self, key: str) -> Project:
        """Return a single project by key."""

        projects = self.load_all()
        normalized = normalize_project_key(key)
        try:
            return projects[normalized]
        except KeyError as exc:
            raise UnknownProjectError(key, list(projects)) from exc


class ProjectCatalog:
    """Resolved, immutable view of the configured projects."""

    def __init__(self, projects: Mapping[str, Project]) -> None:
        self._projects = dict(projects)

    @classmethod
    def load(cls, loader: ProjectLoader) -> "ProjectCatalog":
        return cls(loader.load_all())

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and normalize_project_key(key) in self._projects

    def __len__(self) -> int:
        return len(self._projects)

    def keys(self) -> list[str]:
        return sorted(self._projects)

    def values(self) -> list[Project]:
        return [self._projects[key] for key in self.keys()]

    def resolve(self, key: str) -> Project:
        """Return the project for ``key`` or raise ``UnknownProjectError``.

        A project whose checkout directory is missing counts as unknown.
        """

        project = self._projects.get(normalize_project_key(key))
        if project is None:
            raise UnknownProjectError(key, self.keys())
        if not project.exists:
            raise UnknownProjectError(f"{key} (checkout missing at {project.path})", self.keys())
        return project


__all__ = [
    "ProjectCatalog",
    "ProjectLoadError",
    "ProjectLoader",
    "projects_from_environment",
]
