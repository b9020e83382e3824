"""Sequential execution of dispatch plans."""

from __future__ import annotations

import asyncio
import inspect
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Awaitable, List, Optional

from .agents import Agent, AgentContext, AgentRegistry
from .llm import ChatClient
from .logging import get_logger
from .models import (
    AgentPlanEntry,
    AgentsContext,
    Diagnostic,
    ExecutionResult,
    OrchestrationOutcome,
    RoutePlan,
    WorkspaceDescriptor,
)
from .tracker import TaskTracker


def _failure(agent_id: str, severity: str, message: str, summary: str) -> ExecutionResult:
    return ExecutionResult(
        success=False,
        diagnostics=[Diagnostic(severity=severity, message=message)],
        summary=summary,
        agent_id=agent_id,
    )


async def _await(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


def _wait_for(awaitable: Awaitable[Any]) -> Any:
    """Drive *awaitable* to completion from synchronous code.

    Inside a running event loop the awaitable gets its own loop on a worker
    thread, since that loop cannot be re-entered.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(_await(awaitable))
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="aicore-agent") as pool:
        return pool.submit(asyncio.run, _await(awaitable)).result()


class Orchestrator:
    """Runs plan entries one at a time, isolating each entry's failure."""

    def __init__(
        self,
        registry: AgentRegistry,
        task_tracker: TaskTracker | None = None,
        llm: ChatClient | None = None,
    ) -> None:
        self.registry = registry
        self.task_tracker = task_tracker
        self.llm = llm
        self.logger = get_logger("orchestrator")

    def orchestrate(
        self,
        workspace_path: str | Path,
        metadata: WorkspaceDescriptor,
        plan: RoutePlan,
        user_intent: str,
        agents_context: Optional[AgentsContext] = None,
    ) -> OrchestrationOutcome:
        """Execute *plan* in order and aggregate the per-agent results.

        Never raises for agent failures: a missing agent, an unsupported
        language or an exception inside an agent each become a failed
        :class:`ExecutionResult` and the next entry still runs.
        """
        root = Path(workspace_path)
        project_id = agents_context.project_id if agents_context else None
        rules = agents_context.rules if agents_context else ""
        if project_id:
            self.logger.info("Knowledge base active for project %s", project_id)

        results: List[ExecutionResult] = []
        for entry in plan.agents:
            result = self._run_entry(entry, root, metadata, user_intent, rules)
            results.append(result)
            if result.success and project_id:
                self._notify_tracker(project_id, entry.agent_id, user_intent, result)

        succeeded = sum(1 for result in results if result.success)
        summary = f"{succeeded}/{len(results)} agents succeeded"
        if project_id:
            summary += f" [knowledge-base: {project_id}]"
        return OrchestrationOutcome(results=results, summary=summary)

    def _run_entry(
        self,
        entry: AgentPlanEntry,
        root: Path,
        metadata: WorkspaceDescriptor,
        user_intent: str,
        rules: str,
    ) -> ExecutionResult:
        agent_id = entry.agent_id
        agent: Optional[Agent] = self.registry.get(agent_id)
        if agent is None:
            return _failure(
                agent_id, "error", f"Agent not found: {agent_id}", f"Skipped: agent {agent_id} not found"
            )

        language = metadata.language
        if not agent.supports(language):
            return _failure(
                agent_id,
                "info",
                f"Agent {agent_id} does not support language: {language}",
                f"Skipped: {agent_id} does not support {language}",
            )

        context = AgentContext(
            workspace_path=root,
            metadata={**metadata.to_dict(), **entry.config},
            user_intent=user_intent,
            agent_rules=rules,
            llm=self.llm,
        )
        self.logger.debug("Running agent %s", agent_id)
        try:
            outcome = agent.run(context)
            if inspect.isawaitable(outcome):
                outcome = _wait_for(outcome)
            if not isinstance(outcome, ExecutionResult):
                raise TypeError(f"agent returned {type(outcome).__name__}, not ExecutionResult")
        except Exception as exc:
            self._log_exception(f"Agent {agent_id} failed", exc)
            return _failure(agent_id, "error", f"Agent execution failed: {exc}", f"Error: {exc}")

        outcome.agent_id = agent_id
        return outcome

    def _notify_tracker(
        self, project_id: str, agent_id: str, user_intent: str, result: ExecutionResult
    ) -> None:
        if self.task_tracker is None:
            return
        task = {
            "title": f"{agent_id}: {user_intent}"[:100],
            "description": result.summary or user_intent,
            "agent_used": agent_id,
            "status": "done",
            "notes": f"Executed by aicore. Changes: {len(result.changes)} files",
        }
        try:
            self.task_tracker.record_task(project_id, task)
        except Exception as exc:
            self.logger.warning("Task update failed for %s (ignored): %s", project_id, exc)

    def _log_exception(self, message: str, exc: Exception) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.exception("%s: %s", message, exc)
        else:
            self.logger.error("%s: %s", message, exc)


__all__ = ["Orchestrator"]
