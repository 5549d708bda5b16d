"""Locating and decoding YAML configuration files."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml

YAML_SUFFIXES = frozenset({".yaml", ".yml"})


def load_yaml_mapping(path: Path) -> Mapping[str, Any]:
    """Decode ``path`` as YAML; an empty document is an empty mapping."""

    if path.suffix.lower() not in YAML_SUFFIXES:
        raise ValueError(f"Expected a YAML file, got '{path.name}'")
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise TypeError(f"Configuration file '{path}' must contain a mapping at the root")
    return data


def find_in_parents(start: Path, relative: Path) -> Path | None:
    """Return ``relative`` under ``start`` or its closest ancestor, if it exists."""

    directory = start.resolve()
    for candidate_dir in (directory, *directory.parents):
        candidate = candidate_dir / relative
        if candidate.is_file():
            return candidate
    return None


__all__ = ["YAML_SUFFIXES", "find_in_parents", "load_yaml_mapping"]
