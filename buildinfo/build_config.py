"""Layered resolution of the build name, number, module and project.

Each field is looked up in a fixed order: the value passed on the command
line, then a ``JFROG_CLI_*`` environment variable, then (for build name and
number only) the ``build.yaml`` project configuration found in the working
directory or one of its parents.  Non-empty results are memoized in the
instance; empty results are not, so the next lookup walks the chain again.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Mapping, Sequence
import os

from .errors import BuildParamsError
from .project_config import ProjectConfig, read_build_config

BUILD_NAME_ENV = "JFROG_CLI_BUILD_NAME"
BUILD_NUMBER_ENV = "JFROG_CLI_BUILD_NUMBER"
BUILD_PROJECT_ENV = "JFROG_CLI_BUILD_PROJECT"

LATEST_BUILD_NUMBER = "LATEST"
"""Build number sentinel meaning the most recent build at use time."""


class BuildField(str, Enum):
    BUILD_NAME = "build_name"
    BUILD_NUMBER = "build_number"
    MODULE = "module"
    PROJECT = "project"


class ValueSource(str, Enum):
    PARAM = "param"
    ENV = "env"
    FILE = "file"
    ABSENT = "absent"


@dataclass(frozen=True, slots=True)
class Resolution:
    value: str
    source: ValueSource


ABSENT = Resolution("", ValueSource.ABSENT)

Resolver = Callable[[BuildField], "Resolution | None"]


class BuildConfiguration:
    """Build identifying parameters for a single CLI invocation.

    ``environ`` is read at lookup time and defaults to the live process
    environment; ``working_dir`` defaults to the current directory at lookup
    time.  Instances are not safe to share between threads.
    """

    def __init__(
        self,
        build_name: str = "",
        build_number: str = "",
        module: str = "",
        project: str = "",
        *,
        environ: Mapping[str, str] | None = None,
        working_dir: Path | None = None,
    ) -> None:
        self._values: Dict[BuildField, str] = {}
        self._sources: Dict[BuildField, ValueSource] = {}
        self._environ = environ
        self._working_dir = working_dir
        self.loaded_from_config_file = False

        self._assign(BuildField.BUILD_NAME, build_name)
        self._assign(BuildField.BUILD_NUMBER, build_number)
        self._assign(BuildField.MODULE, module)
        self._assign(BuildField.PROJECT, project)

        self._resolvers: Dict[BuildField, Sequence[Resolver]] = {
            BuildField.BUILD_NAME: (
                self._from_memory,
                self._from_env(BUILD_NAME_ENV),
                self._build_name_from_file,
            ),
            BuildField.BUILD_NUMBER: (
                self._from_memory,
                self._from_env(BUILD_NUMBER_ENV),
                self._build_number_from_file,
            ),
            BuildField.PROJECT: (
                self._from_memory,
                self._from_env(BUILD_PROJECT_ENV),
            ),
            BuildField.MODULE: (self._from_memory,),
        }

    # Setters

    def _assign(self, build_field: BuildField, value: str | None) -> None:
        text = value or ""
        self._values[build_field] = text
        self._sources[build_field] = ValueSource.PARAM if text else ValueSource.ABSENT

    def set_build_name(self, build_name: str) -> "BuildConfiguration":
        self._assign(BuildField.BUILD_NAME, build_name)
        return self

    def set_build_number(self, build_number: str) -> "BuildConfiguration":
        self._assign(BuildField.BUILD_NUMBER, build_number)
        return self

    def set_module(self, module: str) -> "BuildConfiguration":
        self._assign(BuildField.MODULE, module)
        return self

    def set_project(self, project: str) -> "BuildConfiguration":
        self._assign(BuildField.PROJECT, project)
        return self

    # Getters

    def get_build_name(self) -> str:
        return self._resolve(BuildField.BUILD_NAME)

    def get_build_number(self) -> str:
        return self._resolve(BuildField.BUILD_NUMBER)

    def get_project(self) -> str:
        return self._resolve(BuildField.PROJECT)

    def get_module(self) -> str:
        return self._resolve(BuildField.MODULE)

    def is_loaded_from_config_file(self) -> bool:
        return self.loaded_from_config_file

    def source_of(self, build_field: BuildField | str) -> ValueSource:
        return self._sources[BuildField(build_field)]

    def is_collect_build_info(self) -> bool:
        """Return True when name, number, module and project are all known."""

        build_name = self.get_build_name()
        build_number = self.get_build_number()
        module = self.get_module()
        project = self.get_project()
        return all((build_name, build_number, module, project))

    def validate_build_and_module_params(self) -> None:
        build_name = self.get_build_name()
        build_number = self.get_build_number()
        if bool(build_name) != bool(build_number):
            raise BuildParamsError("the build-name and build-number options cannot be provided separately")
        if self.get_module() and not build_name:
            raise BuildParamsError(
                "the build-name and build-number options are mandatory when the module option is provided"
            )

    # Resolution

    def _resolve(self, build_field: BuildField) -> str:
        resolution = ABSENT
        for resolver in self._resolvers[build_field]:
            candidate = resolver(build_field)
            if candidate is not None and candidate.value:
                resolution = candidate
                break

        self._sources[build_field] = resolution.source
        if resolution.value:
            self._values[build_field] = resolution.value
        if resolution.source is ValueSource.FILE:
            self.loaded_from_config_file = True
        return resolution.value

    def _environment(self) -> Mapping[str, str]:
        return os.environ if self._environ is None else self._environ

    def _current_dir(self) -> Path:
        return self._working_dir if self._working_dir is not None else Path.cwd()

    def _read_build_config(self) -> ProjectConfig | None:
        return read_build_config(self._current_dir())

    def _from_memory(self, build_field: BuildField) -> Resolution | None:
        value = self._values[build_field]
        if not value:
            return None
        return Resolution(value, self._sources[build_field])

    def _from_env(self, variable: str) -> Resolver:
        def resolver(build_field: BuildField) -> Resolution | None:
            value = self._environment().get(variable, "")
            return Resolution(value, ValueSource.ENV) if value else None

        return resolver

    def _build_name_from_file(self, build_field: BuildField) -> Resolution | None:
        config = self._read_build_config()
        if config is None:
            return None
        return Resolution(config.get_string("name"), ValueSource.FILE)

    def _build_number_from_file(self, build_field: BuildField) -> Resolution | None:
        # Once any build name was loaded from the file, the file also owns the number.
        self.get_build_name()
        if not self.loaded_from_config_file:
            return None
        config = self._read_build_config()
        number = config.get_string("number") if config is not None else ""
        return Resolution(number or LATEST_BUILD_NUMBER, ValueSource.FILE)


__all__ = [
    "BUILD_NAME_ENV",
    "BUILD_NUMBER_ENV",
    "BUILD_PROJECT_ENV",
    "LATEST_BUILD_NUMBER",
    "BuildConfiguration",
    "BuildField",
    "Resolution",
    "ValueSource",
]
