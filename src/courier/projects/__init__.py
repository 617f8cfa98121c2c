"""Project models and loader exports."""

from .loader import ProjectCatalog, ProjectLoadError, ProjectLoader, projects_from_environment
from .models import Project, normalize_project_key

__all__ = [
    "Project",
    "ProjectCatalog",
    "ProjectLoadError",
    "ProjectLoader",
    "normalize_project_key",
    "projects_from_environment",
]
