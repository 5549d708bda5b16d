"""Read-only access to the per-project ``.jfrog/projects`` configuration files."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

import yaml

from core.config_loader import find_in_parents, load_yaml_mapping

from .errors import ConfigFileReadError

PROJECTS_DIR = Path(".jfrog") / "projects"


class ProjectType(str, Enum):
    BUILD = "build"

    @property
    def file_name(self) -> str:
        return f"{self.value}.yaml"


@dataclass(slots=True)
class ProjectConfig:
    path: Path
    data: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path) -> "ProjectConfig":
        try:
            data = load_yaml_mapping(path)
        except (OSError, UnicodeDecodeError, yaml.YAMLError, TypeError) as exc:
            raise ConfigFileReadError(path, str(exc)) from exc
        return cls(path=path, data=data)

    def get_string(self, key: str) -> str:
        value = self.data.get(key)
        if value is None:
            return ""
        return str(value).strip()


def find_project_config(project_type: ProjectType, working_dir: Path) -> Path | None:
    """Locate the configuration for ``project_type`` in ``working_dir`` or a parent."""

    return find_in_parents(working_dir, PROJECTS_DIR / project_type.file_name)


def read_build_config(working_dir: Path) -> ProjectConfig | None:
    path = find_project_config(ProjectType.BUILD, working_dir)
    if path is None:
        return None
    return ProjectConfig.load(path)


__all__ = [
    "PROJECTS_DIR",
    "ProjectConfig",
    "ProjectType",
    "find_project_config",
    "read_build_config",
]
