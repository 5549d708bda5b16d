"""Build information resolution and .NET toolchain helpers."""
from __future__ import annotations

from .build_config import (
    BUILD_NAME_ENV,
    BUILD_NUMBER_ENV,
    BUILD_PROJECT_ENV,
    LATEST_BUILD_NUMBER,
    BuildConfiguration,
    BuildField,
    ValueSource,
)
from .dotnet import DotnetCoreCliCommand, is_dotnet_version_above_min
from .errors import BuildInfoError, BuildParamsError, ConfigFileReadError, ExternalCommandError
from .version import Version

__all__ = [
    "BUILD_NAME_ENV",
    "BUILD_NUMBER_ENV",
    "BUILD_PROJECT_ENV",
    "LATEST_BUILD_NUMBER",
    "BuildConfiguration",
    "BuildField",
    "BuildInfoError",
    "BuildParamsError",
    "ConfigFileReadError",
    "DotnetCoreCliCommand",
    "ExternalCommandError",
    "ValueSource",
    "Version",
    "is_dotnet_version_above_min",
]
