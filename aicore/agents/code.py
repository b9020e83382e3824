"""Code agent: marker comments, oversized files, empty handlers and manifest gaps."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, List, Tuple

from ..detectors.utils import list_root, read_text
from ..llm import ChatClient
from ..logging import get_logger
from ..models import Diagnostic, ExecutionResult
from .base import Agent, AgentContext, diagnostic, iter_workspace_files

MAX_FILES_TO_ANALYZE = 20
LARGE_FILE_LINES = 500

_EXTENSIONS: Dict[str, Tuple[str, ...]] = {
    "javascript": (".js", ".jsx", ".mjs", ".cjs"),
    "typescript": (".ts", ".tsx", ".mts", ".cts"),
    "python": (".py",),
    "php": (".php",),
    "go": (".go",),
    "rust": (".rs",),
}
_JS_SUFFIXES = (".js", ".ts", ".jsx", ".tsx")
_REVIEW_PROMPT = (
    "You review code for a developer. Given their request and the findings of a static "
    "pass, reply with at most three short, concrete suggestions."
)

logger = get_logger("agents.code")


def analyze_content(rel_path: str, content: str) -> List[Diagnostic]:
    """Return line-level findings for one source file."""
    found: List[Diagnostic] = []
    lines = content.splitlines()
    for index, line in enumerate(lines, start=1):
        if rel_path.endswith(_JS_SUFFIXES) and "console.log" in line and "//" not in line:
            found.append(diagnostic("info", "Consider removing console.log statement", rel_path, index))
        if "TODO" in line or "FIXME" in line:
            marker = "TODO" if "TODO" in line else "FIXME"
            found.append(diagnostic("info", f"Found {marker} comment", rel_path, index))
        if "catch" in line and index < len(lines) and lines[index].strip() == "}":
            found.append(
                diagnostic("warning", "Empty catch block - errors are silently ignored", rel_path, index)
            )
        if line.strip() == "except:" or (
            line.strip().startswith("except") and index < len(lines) and lines[index].strip() == "pass"
        ):
            found.append(
                diagnostic("warning", "Exception handler silently ignores errors", rel_path, index)
            )
    if len(lines) > LARGE_FILE_LINES:
        found.append(
            diagnostic("warning", f"Large file ({len(lines)} lines) - consider splitting it", rel_path)
        )
    return found


def project_diagnostics(names: set[str], language: str) -> List[Diagnostic]:
    found: List[Diagnostic] = []
    if ".gitignore" not in names:
        found.append(diagnostic("info", "No .gitignore file found - consider adding one", ".gitignore"))
    if language in {"javascript", "typescript"} and "package.json" not in names:
        found.append(diagnostic("warning", "No package.json found", "package.json"))
    if language == "python" and not {"requirements.txt", "pyproject.toml"} & names:
        found.append(
            diagnostic("warning", "No dependency file found (requirements.txt or pyproject.toml)")
        )
    if language == "go" and "go.mod" not in names:
        found.append(diagnostic("warning", "No go.mod found - run go mod init", "go.mod"))
    return found


def source_diagnostics(root: Path, language: str) -> List[Diagnostic]:
    extensions = _EXTENSIONS.get(language, ())
    sources: List[str] = []
    if extensions:
        sources = [path for path in iter_workspace_files(root) if path.endswith(extensions)]
    if not sources:
        return [diagnostic("info", f"No {language} code files found")]

    found: List[Diagnostic] = []
    for rel_path in sources[:MAX_FILES_TO_ANALYZE]:
        found.extend(analyze_content(rel_path, read_text(root / rel_path)))
    if len(sources) > MAX_FILES_TO_ANALYZE:
        found.append(
            diagnostic("info", f"Analyzed {MAX_FILES_TO_ANALYZE} of {len(sources)} files")
        )
    return found


class CodeAgent(Agent):
    agent_id = "code"
    description = "Analyzes source files for quality issues and improvements"
    supported_languages = frozenset({"javascript", "typescript", "python", "php", "go", "rust"})
    keywords = ("code", "refactor", "fix", "bug", "implement", "clean", "quality", "lint")
    capabilities = ("cli",)

    async def run(self, context: AgentContext) -> ExecutionResult:
        root = context.workspace_path
        language = context.language
        diagnostics = source_diagnostics(root, language)
        diagnostics.extend(project_diagnostics(list_root(root), language))

        if context.llm is not None and context.user_intent:
            diagnostics.append(await self._review(context.llm, context, diagnostics))

        framework = context.metadata.get("framework") or "no-framework"
        return ExecutionResult(
            success=True,
            diagnostics=diagnostics,
            summary=(
                f"Code analysis complete. Found {len(diagnostics)} issues "
                f"for {language}/{framework} project."
            ),
        )

    @staticmethod
    async def _review(
        llm: ChatClient, context: AgentContext, findings: List[Diagnostic]
    ) -> Diagnostic:
        listed = "\n".join(
            f"- {item.severity}: {item.message} {item.file}".rstrip() for item in findings[:10]
        )
        prompt = f"Request: {context.user_intent}\nFindings:\n{listed or '- none'}"
        if context.agent_rules:
            prompt += f"\nProject rules:\n{context.agent_rules}"
        response = await asyncio.to_thread(llm.chat_with_system, _REVIEW_PROMPT, prompt)
        if not response.success:
            logger.info("Model review skipped: %s", response.error)
            return diagnostic("info", f"Model review unavailable: {response.error}")
        return diagnostic("info", f"Model review: {response.content}")


__all__ = ["CodeAgent", "analyze_content", "project_diagnostics", "source_diagnostics"]
