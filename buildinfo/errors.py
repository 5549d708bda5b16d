"""Exception types raised by the buildinfo package."""
from __future__ import annotations

from pathlib import Path
from typing import Sequence

from core.command_runner import CommandResult


class BuildInfoError(RuntimeError):
    """Base class for buildinfo failures."""


class ExternalCommandError(BuildInfoError):
    """Raised when an external toolchain cannot be run or its output cannot be used."""

    def __init__(
        self,
        message: str,
        *,
        command: Sequence[str] = (),
        result: CommandResult | None = None,
    ) -> None:
        super().__init__(message)
        self.command = list(command)
        self.result = result


class ConfigFileReadError(BuildInfoError):
    """Raised when a project configuration file exists but cannot be decoded."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Failed to read project configuration '{path}': {reason}")
        self.path = path


class BuildParamsError(BuildInfoError):
    """Raised for inconsistent build name, number and module parameters."""


__all__ = [
    "BuildInfoError",
    "BuildParamsError",
    "ConfigFileReadError",
    "ExternalCommandError",
]
