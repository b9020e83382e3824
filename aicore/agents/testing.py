"""Test agent: test presence, test frameworks, coverage and CI configuration."""

from __future__ import annotations

from pathlib import Path
from typing import List

from ..detectors.utils import list_root, load_json, merged_dependencies, read_text
from ..models import Diagnostic, ExecutionResult
from .base import Agent, AgentContext, diagnostic

_JS_LANGUAGES = {"javascript", "typescript"}
_JS_TEST_PACKAGES = {"jest", "mocha", "vitest", "@testing-library/react", "cypress"}
_JS_COVERAGE_FILES = {"jest.config.js", "jest.config.ts", "vitest.config.js", "vitest.config.ts", ".nycrc"}
_CI_MARKERS = {".github", ".gitlab-ci.yml", "Jenkinsfile"}


def _has_tests(names: set[str]) -> bool:
    return any(
        "test" in name or "__tests__" in name or ".spec." in name for name in names
    )


def setup_diagnostics(root: Path, names: set[str], language: str) -> List[Diagnostic]:
    found: List[Diagnostic] = []
    has_tests = _has_tests(names)
    if not has_tests:
        found.append(diagnostic("warning", "No test files found - consider adding tests"))

    if language in _JS_LANGUAGES and "package.json" in names:
        deps = merged_dependencies(load_json(root / "package.json"), "dependencies", "devDependencies")
        if not _JS_TEST_PACKAGES.intersection(deps) and not has_tests:
            found.append(
                diagnostic("warning", "No test framework found in package.json", "package.json")
            )

    if language == "python" and ("requirements.txt" in names or "pyproject.toml" in names):
        content = read_text(root / "requirements.txt") + read_text(root / "pyproject.toml")
        if "pytest" not in content and "unittest" not in content and not has_tests:
            found.append(
                diagnostic(
                    "warning", "No Python test framework found (pytest, unittest)", "requirements.txt"
                )
            )
    return found


def coverage_diagnostics(names: set[str], language: str) -> List[Diagnostic]:
    found: List[Diagnostic] = []
    if language in _JS_LANGUAGES and not _JS_COVERAGE_FILES.intersection(names):
        found.append(diagnostic("info", "No test coverage configuration found"))
    if not _CI_MARKERS.intersection(names):
        found.append(
            diagnostic("info", "No CI/CD configuration found - consider adding automated tests")
        )
    return found


class TestAgent(Agent):
    __test__ = False  # keep pytest from collecting this class

    agent_id = "test"
    description = "Reviews test setup, frameworks, coverage and CI"
    supported_languages = frozenset(
        {"javascript", "typescript", "python", "go", "rust", "php", "csharp"}
    )
    keywords = ("test", "spec", "coverage", "unit", "verify", "pytest", "jest")
    capabilities = ()

    def run(self, context: AgentContext) -> ExecutionResult:
        root = context.workspace_path
        names = list_root(root)
        diagnostics = setup_diagnostics(root, names, context.language)
        diagnostics.extend(coverage_diagnostics(names, context.language))
        return ExecutionResult(
            success=True,
            diagnostics=diagnostics,
            summary=f"Test analysis complete. Found {len(diagnostics)} issues.",
        )


__all__ = ["TestAgent", "coverage_diagnostics", "setup_diagnostics"]
