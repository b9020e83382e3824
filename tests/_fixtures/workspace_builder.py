"""Helper utilities for constructing temporary workspaces in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Mapping

from aicore.models import WorkspaceDescriptor
from aicore.scanner import WorkspaceScanner


class WorkspaceBuilder:
    """Writes files into a throwaway workspace and rescans it on demand."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "workspace"
        self.root.mkdir()
        self._scanner = WorkspaceScanner()

    def write(self, files: Mapping[str, str]) -> "WorkspaceBuilder":
        """Write `path -> contents` entries into the workspace."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
        return self

    def touch(self, *relatives: str) -> "WorkspaceBuilder":
        """Create empty files (or directories, for names ending in '/')."""
        for relative in relatives:
            path = self.root / relative
            if relative.endswith("/"):
                path.mkdir(parents=True, exist_ok=True)
                continue
            path.parent.mkdir(parents=True, exist_ok=True)
            path.touch()
        return self

    def scan(self) -> WorkspaceDescriptor:
        return self._scanner.scan(self.root)

    def path(self) -> Path:
        return self.root


__all__ = ["WorkspaceBuilder"]
