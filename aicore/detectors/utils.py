"""Shared helper utilities for detector implementations."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Set


def list_root(root: Path) -> Set[str]:
    """Return the names of the entries directly under the workspace root."""
    return {entry.name for entry in root.iterdir()}


def has_suffix(names: Set[str], suffixes: tuple[str, ...]) -> bool:
    return any(Path(name).suffix in suffixes for name in names)


def read_text(path: Path) -> str:
    """Return file contents, or an empty string when the file cannot be read."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return ""


def load_json(path: Path) -> Dict[str, object]:
    """Return the parsed JSON mapping stored at *path* or an empty dict."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return {}
    if isinstance(data, dict):
        return data
    return {}


def merged_dependencies(manifest: Dict[str, object], *keys: str) -> Dict[str, object]:
    """Merge the dependency mappings found under *keys* of a package manifest."""
    deps: Dict[str, object] = {}
    for key in keys:
        section = manifest.get(key)
        if isinstance(section, dict):
            deps.update(section)
    return deps


def dedupe(items: List[str]) -> List[str]:
    """Drop repeated entries while keeping first-seen order."""
    return list(dict.fromkeys(items))
