"""Dotted version strings compared component by component."""
from __future__ import annotations

from dataclasses import dataclass
from functools import total_ordering
import re

_COMPONENT_RE = re.compile(r"^(\d+)(.*)$")


@dataclass(frozen=True, slots=True)
class VersionComponent:
    number: int
    suffix: str = ""

    @classmethod
    def parse(cls, text: str) -> "VersionComponent":
        match = _COMPONENT_RE.match(text)
        if match is None:
            raise ValueError(f"Version component '{text}' does not start with a number")
        return cls(number=int(match.group(1)), suffix=match.group(2))

    def sort_key(self) -> tuple[int, int, str]:
        # A suffixed component is a pre-release of the plain number.
        return (self.number, 0 if self.suffix else 1, self.suffix)


@total_ordering
@dataclass(frozen=True, slots=True, eq=False)
class Version:
    """A parsed ``major.minor.patch...`` version.

    Missing trailing components compare as zero, so ``3.1`` equals ``3.1.0``.
    """

    components: tuple[VersionComponent, ...]
    raw: str = ""

    @classmethod
    def parse(cls, text: str) -> "Version":
        cleaned = text.strip()
        if not cleaned:
            raise ValueError("Version string is empty")
        parts = cleaned.split(".")
        return cls(components=tuple(VersionComponent.parse(part) for part in parts), raw=cleaned)

    def _keys(self, length: int) -> list[tuple[int, int, str]]:
        keys = [component.sort_key() for component in self.components]
        keys.extend([(0, 1, "")] * (length - len(keys)))
        return keys

    def _compare(self, other: "Version") -> int:
        length = max(len(self.components), len(other.components))
        mine = self._keys(length)
        theirs = other._keys(length)
        if mine == theirs:
            return 0
        return -1 if mine < theirs else 1

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._compare(other) == 0

    def __lt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._compare(other) < 0

    def __hash__(self) -> int:
        keys = [component.sort_key() for component in self.components]
        while keys and keys[-1] == (0, 1, ""):
            keys.pop()
        return hash(tuple(keys))

    def at_least(self, minimum: "Version | str") -> bool:
        if isinstance(minimum, str):
            minimum = Version.parse(minimum)
        return self >= minimum

    def __str__(self) -> str:
        if self.raw:
            return self.raw
        return ".".join(f"{component.number}{component.suffix}" for component in self.components)


__all__ = ["Version", "VersionComponent"]
