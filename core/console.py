"""Tagged console output for the buildinfo command line."""
from __future__ import annotations

from typing import Mapping, TextIO
import os
import sys

LOG_LEVEL_ENV = "BUILDINFO_LOG_LEVEL"


class Console:
    """Prints ``[ERROR]`` lines to stderr and ``[DEBUG]``/``[DRY]`` lines to stdout.

    Levels: none < error < debug. Unknown level names mean 'none'.
    """

    LEVELS = {"none": 0, "error": 1, "debug": 2}

    def __init__(self, level: str = "none", dry_run: bool = False):
        self.level_name = level if level in self.LEVELS else "none"
        self.dry_run = dry_run

    @classmethod
    def from_verbosity(
        cls,
        verbose: bool,
        *,
        dry_run: bool = False,
        environ: Mapping[str, str] | None = None,
    ) -> "Console":
        env = os.environ if environ is None else environ
        override = env.get(LOG_LEVEL_ENV, "").strip().lower()
        if override in cls.LEVELS:
            return cls(override, dry_run=dry_run)
        return cls("debug" if verbose else "error", dry_run=dry_run)

    def _enabled(self, level: str) -> bool:
        return self.LEVELS[self.level_name] >= self.LEVELS[level]

    @staticmethod
    def _emit(tag: str, message: str, stream: TextIO | None = None) -> None:
        print(f"[{tag}] {message}", file=stream or sys.stdout)

    def error(self, message: str) -> None:
        if self._enabled("error"):
            self._emit("ERROR", message, sys.stderr)

    def debug(self, message: str) -> None:
        if self._enabled("debug"):
            self._emit("DEBUG", message)

    def dry(self, message: str) -> None:
        if self.dry_run:
            self._emit("DRY", message)


__all__ = ["Console", "LOG_LEVEL_ENV"]
