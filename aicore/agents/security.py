"""Security agent: hard-coded secrets, risky calls and exposed environment files."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional

from ..detectors.utils import list_root, load_json, merged_dependencies, read_text
from ..models import Diagnostic, ExecutionResult
from .base import Agent, AgentContext, diagnostic, iter_workspace_files

MAX_FILES_TO_SCAN = 100

_ENV_LOOKUPS = ("process.env", "os.environ", "os.getenv", "getenv(")
_LINE_RULES = (
    (re.compile(r"password\s*=\s*['\"][^'\"]+['\"]", re.IGNORECASE), "Potential hardcoded password found"),
    (re.compile(r"api[_-]?key\s*=\s*['\"][^'\"]+['\"]", re.IGNORECASE), "Potential hardcoded API key found"),
    (re.compile(r"private[_-]?key\s*=\s*['\"]", re.IGNORECASE), "Potential hardcoded private key found"),
)
_SQL_CONCAT = (
    re.compile(r"query\s*\(\s*['\"`].* \+ ", re.IGNORECASE),
    re.compile(r"execute\s*\(\s*['\"`].*\+", re.IGNORECASE),
)
_JWT_PACKAGES = {"jsonwebtoken", "jwt", "pyjwt", "python-jose"}


def scan_lines(rel_path: str, content: str) -> List[Diagnostic]:
    found: List[Diagnostic] = []
    for index, line in enumerate(content.splitlines(), start=1):
        reads_env = any(lookup in line for lookup in _ENV_LOOKUPS)
        for pattern, message in _LINE_RULES:
            if pattern.search(line) and not reads_env:
                found.append(diagnostic("error", message, rel_path, index))
        if any(pattern.search(line) for pattern in _SQL_CONCAT):
            found.append(
                diagnostic(
                    "error", "Potential SQL injection risk - use parameterized queries", rel_path, index
                )
            )
        if "eval(" in line:
            found.append(diagnostic("error", "eval() is dangerous - consider alternatives", rel_path, index))
    return found


def _jwt_manifest(root: Path, names: set[str]) -> Optional[str]:
    """Return the manifest declaring a JWT library, if any."""
    if "package.json" in names:
        deps = merged_dependencies(load_json(root / "package.json"), "dependencies", "devDependencies")
        if _JWT_PACKAGES.intersection(deps):
            return "package.json"
    if "requirements.txt" in names:
        lowered = read_text(root / "requirements.txt").lower()
        if any(package in lowered for package in ("pyjwt", "python-jose")):
            return "requirements.txt"
    return None


class SecurityAgent(Agent):
    agent_id = "security"
    description = "Checks for hard-coded secrets, risky calls and unprotected credentials"
    supported_languages = frozenset(
        {"javascript", "typescript", "python", "go", "rust", "php", "csharp"}
    )
    keywords = (
        "security",
        "secure",
        "jwt",
        "auth",
        "vulnerab",
        "secret",
        "password",
        "credential",
        "crypto",
    )
    capabilities = ("api", "auth")

    def run(self, context: AgentContext) -> ExecutionResult:
        root = context.workspace_path
        diagnostics: List[Diagnostic] = []

        for rel_path in iter_workspace_files(root, MAX_FILES_TO_SCAN):
            content = read_text(root / rel_path)
            if content:
                diagnostics.extend(scan_lines(rel_path, content))

        names = list_root(root)
        manifest = _jwt_manifest(root, names)
        if manifest:
            diagnostics.append(
                diagnostic("info", "JWT library detected - ensure tokens have expiration", manifest)
            )
        if ".env" in names and ".gitignore" not in names:
            diagnostics.append(
                diagnostic(
                    "warning", ".env found but no .gitignore - sensitive data may be committed", ".env"
                )
            )

        return ExecutionResult(
            success=True,
            diagnostics=diagnostics,
            summary=f"Security analysis complete. Found {len(diagnostics)} security issues.",
        )


__all__ = ["SecurityAgent", "scan_lines"]
