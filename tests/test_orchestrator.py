"""Tests for sequential plan execution."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import pytest

from aicore.agents import Agent, AgentRegistry
from aicore.models import (
    AgentPlanEntry,
    AgentsContext,
    Change,
    Diagnostic,
    ExecutionResult,
    RoutePlan,
    WorkspaceDescriptor,
)
from aicore.orchestrator import Orchestrator
from aicore.tracker import JsonTaskTracker

PYTHON = WorkspaceDescriptor(language="python", project_type="cli")


class RecordingAgent(Agent):
    supported_languages = frozenset({"python"})

    def __init__(self, agent_id: str, calls: list) -> None:
        self.agent_id = agent_id
        self.calls = calls

    def run(self, context):
        self.calls.append((self.agent_id, context))
        return ExecutionResult(
            success=True,
            diagnostics=[Diagnostic(severity="info", message=f"{self.agent_id} ran")],
            changes=[Change(type="update", file="app.py", description="tidy")],
            summary=f"{self.agent_id} done",
        )


class AsyncAgent(RecordingAgent):
    async def run(self, context):
        self.calls.append((self.agent_id, context))
        return ExecutionResult(success=True, summary="async done")


class ExplodingAgent(RecordingAgent):
    def run(self, context):
        self.calls.append((self.agent_id, context))
        raise RuntimeError("disk on fire")


class SloppyAgent(RecordingAgent):
    def run(self, context):
        return {"success": True}


class GoOnlyAgent(RecordingAgent):
    supported_languages = frozenset({"go"})


class FailingTracker:
    def __init__(self) -> None:
        self.attempts = 0

    def record_task(self, project_id, task):
        self.attempts += 1
        raise OSError("tracker offline")


def _plan(*agent_ids: str, config=None) -> RoutePlan:
    return RoutePlan(
        agents=[AgentPlanEntry(agent_id=agent_id, config=dict(config or {})) for agent_id in agent_ids],
        reason="test",
    )


@pytest.fixture
def calls() -> list:
    return []


@pytest.fixture
def registry(calls) -> AgentRegistry:
    return AgentRegistry(
        [
            RecordingAgent("ok", calls),
            AsyncAgent("async", calls),
            ExplodingAgent("boom", calls),
            SloppyAgent("sloppy", calls),
            GoOnlyAgent("gopher", calls),
        ]
    )


def test_empty_plan(tmp_path: Path, registry: AgentRegistry) -> None:
    outcome = Orchestrator(registry).orchestrate(tmp_path, PYTHON, _plan(), "anything")

    assert outcome.results == []
    assert outcome.summary == "0/0 agents succeeded"
    assert outcome.status == "empty"


def test_failures_are_isolated_per_entry(tmp_path: Path, registry: AgentRegistry, calls) -> None:
    plan = _plan("missing", "boom", "gopher", "ok", "async", "sloppy")

    outcome = Orchestrator(registry).orchestrate(tmp_path, PYTHON, plan, "tidy up")

    assert [result.agent_id for result in outcome.results] == [
        "missing",
        "boom",
        "gopher",
        "ok",
        "async",
        "sloppy",
    ]
    assert [result.success for result in outcome.results] == [False, False, False, True, True, False]
    assert outcome.summary == "2/6 agents succeeded"
    assert outcome.status == "partial"
    assert [agent_id for agent_id, _ in calls] == ["boom", "ok", "async"]

    missing, boom, gopher, _, _, sloppy = outcome.results
    assert (missing.diagnostics[0].severity, missing.diagnostics[0].message) == (
        "error",
        "Agent not found: missing",
    )
    assert missing.summary == "Skipped: agent missing not found"
    assert boom.diagnostics[0].message == "Agent execution failed: disk on fire"
    assert boom.summary == "Error: disk on fire"
    assert (gopher.diagnostics[0].severity, gopher.diagnostics[0].message) == (
        "info",
        "Agent gopher does not support language: python",
    )
    assert gopher.summary == "Skipped: gopher does not support python"
    assert sloppy.diagnostics[0].message.startswith("Agent execution failed: agent returned dict")


def test_all_failures_report_failed_status(tmp_path: Path, registry: AgentRegistry) -> None:
    outcome = Orchestrator(registry).orchestrate(tmp_path, PYTHON, _plan("boom", "nope"), "x")

    assert outcome.status == "failed"
    assert outcome.summary == "0/2 agents succeeded"


def test_agent_context_carries_request_details(tmp_path: Path, registry: AgentRegistry, calls) -> None:
    plan = _plan("ok", config={"project_type": "saas", "framework": "flask"})

    Orchestrator(registry).orchestrate(
        tmp_path,
        PYTHON,
        plan,
        "add login",
        AgentsContext(project_id=None, rules="Use snake_case."),
    )

    [(_, context)] = calls
    assert context.workspace_path == tmp_path
    assert context.user_intent == "add login"
    assert context.agent_rules == "Use snake_case."
    assert context.language == "python"
    assert context.metadata["project_type"] == "saas"
    assert context.metadata["framework"] == "flask"


def test_raising_agent_is_logged(
    tmp_path: Path, registry: AgentRegistry, aicore_caplog: pytest.LogCaptureFixture
) -> None:
    with aicore_caplog.at_level(logging.INFO, logger="aicore.orchestrator"):
        Orchestrator(registry).orchestrate(tmp_path, PYTHON, _plan("boom"), "x")

    errors = [r for r in aicore_caplog.records if r.levelno == logging.ERROR]
    assert [r.getMessage() for r in errors] == ["Agent boom failed: disk on fire"]


def test_knowledge_base_summary_and_tracker(tmp_path: Path, registry: AgentRegistry) -> None:
    tracker = JsonTaskTracker(tmp_path / "tasks")
    orchestrator = Orchestrator(registry, task_tracker=tracker)

    outcome = orchestrator.orchestrate(
        tmp_path,
        PYTHON,
        _plan("ok", "boom"),
        "refactor the parser module",
        AgentsContext(project_id="kb-7"),
    )

    assert outcome.summary == "1/2 agents succeeded [knowledge-base: kb-7]"
    data = json.loads(tracker.tasks_path("kb-7").read_text(encoding="utf-8"))
    [task] = data["tasks"]
    assert task["title"] == "ok: refactor the parser module"
    assert task["agent_used"] == "ok"
    assert task["description"] == "ok done"
    assert task["notes"] == "Executed by aicore. Changes: 1 files"
    assert data["done_count"] == 1


def test_tracker_failures_do_not_change_outcome(tmp_path: Path, registry: AgentRegistry) -> None:
    tracker = FailingTracker()

    outcome = Orchestrator(registry, task_tracker=tracker).orchestrate(
        tmp_path, PYTHON, _plan("ok", "async"), "x", AgentsContext(project_id="kb-1")
    )

    assert tracker.attempts == 2
    assert outcome.status == "succeeded"
    assert outcome.summary == "2/2 agents succeeded [knowledge-base: kb-1]"


def test_tracker_is_skipped_without_project(tmp_path: Path, registry: AgentRegistry) -> None:
    tracker = FailingTracker()

    Orchestrator(registry, task_tracker=tracker).orchestrate(tmp_path, PYTHON, _plan("ok"), "x")

    assert tracker.attempts == 0


def test_async_agent_runs_when_called_from_an_event_loop(
    tmp_path: Path, registry: AgentRegistry, calls
) -> None:
    async def caller():
        return Orchestrator(registry).orchestrate(tmp_path, PYTHON, _plan("async", "ok"), "x")

    outcome = asyncio.run(caller())

    assert outcome.summary == "2/2 agents succeeded"
    assert outcome.results[0].summary == "async done"
    assert [agent_id for agent_id, _ in calls] == ["async", "ok"]
