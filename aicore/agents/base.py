"""Base classes for agent plugins."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Dict, FrozenSet, Iterator, Optional, Tuple, Union

from ..llm import ChatClient
from ..models import Diagnostic, ExecutionResult

_SKIPPED_DIRS = {"node_modules", ".git", "dist", "build", "coverage", "__pycache__", ".venv", "venv"}


@dataclass
class AgentContext:
    """Everything an agent receives for one invocation."""

    workspace_path: Path
    metadata: Dict[str, Any] = field(default_factory=dict)
    user_intent: str = ""
    agent_rules: str = ""
    llm: Optional[ChatClient] = None

    @property
    def language(self) -> str:
        return str(self.metadata.get("language") or "unknown")


class Agent(ABC):
    """Contract for agents dispatched by the orchestrator.

    ``run`` may be a plain method or a coroutine function; the orchestrator
    awaits awaitable results before moving to the next plan entry.
    """

    agent_id: str = ""
    description: str = ""
    supported_languages: FrozenSet[str] = frozenset()
    keywords: Tuple[str, ...] = ()
    capabilities: Tuple[str, ...] = ()

    def supports(self, language: str) -> bool:
        return language in self.supported_languages

    @abstractmethod
    def run(self, context: AgentContext) -> Union[ExecutionResult, Awaitable[ExecutionResult]]:
        """Analyse the workspace and report diagnostics and proposed changes."""


def iter_workspace_files(root: Path, limit: int | None = None) -> Iterator[str]:
    """Yield workspace-relative POSIX paths, skipping vendored and generated folders."""
    emitted = 0
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in _SKIPPED_DIRS)
        current = Path(dirpath)
        rel_dir = current.relative_to(root).as_posix() if current != root else ""
        for filename in sorted(filenames):
            if limit is not None and emitted >= limit:
                return
            emitted += 1
            yield f"{rel_dir}/{filename}" if rel_dir else filename


def diagnostic(severity: str, message: str, file: str = "", line: int = 0) -> Diagnostic:
    return Diagnostic(severity=severity, message=message, file=file, line=line)


__all__ = ["Agent", "AgentContext", "diagnostic", "iter_workspace_files"]
