"""End-to-end request handling: scan, classify, route, decide, execute, record."""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import Optional

from .agents import AgentRegistry, default_registry
from .config import AICoreConfig, load_config_or_default
from .detectors import discover_detectors
from .llm import ChatClient
from .logging import get_logger
from .models import AgentsContext, PipelineResult
from .orchestrator import Orchestrator
from .phase import PhaseClassifier
from .router import FallbackOptions, Router
from .scanner import WorkspaceScanner, resolve_workspace
from .stores import RunHistory
from .telemetry import TelemetrySink, build_sink
from .tracker import JsonTaskTracker

logger = get_logger("pipeline")


class Pipeline:
    """Wires the components for one configuration and runs requests through them."""

    def __init__(
        self,
        config: AICoreConfig,
        *,
        scanner: WorkspaceScanner | None = None,
        classifier: PhaseClassifier | None = None,
        registry: AgentRegistry | None = None,
        telemetry: TelemetrySink | None = None,
        history: RunHistory | None = None,
        orchestrator: Orchestrator | None = None,
    ) -> None:
        self.config = config
        self.scanner = scanner or WorkspaceScanner(
            discover_detectors(config.detectors or None)
        )
        self.classifier = classifier or PhaseClassifier()
        self.registry = registry or default_registry(config.agents or None)
        self.history = history
        if self.history is None and config.memory.enabled:
            self.history = RunHistory.from_config(config.memory)
        self.router = Router(
            self.registry,
            config,
            telemetry if telemetry is not None else build_sink(config.telemetry),
            self.history,
        )
        if orchestrator is None:
            tracker = JsonTaskTracker(config.tracker_dir) if config.tracker_dir else None
            llm = ChatClient.from_config(config.llm) if config.llm else None
            orchestrator = Orchestrator(self.registry, task_tracker=tracker, llm=llm)
        self.orchestrator = orchestrator

    @classmethod
    def for_workspace(cls, workspace_path: str | Path) -> "Pipeline":
        """Build a pipeline from the workspace's ``.aicore.yml`` (or defaults)."""
        root = resolve_workspace(workspace_path)
        return cls(load_config_or_default(root))

    def run(
        self,
        workspace_path: str | Path,
        user_intent: str,
        *,
        prompt_id: Optional[str] = None,
        force_phase: Optional[str] = None,
        agents_context: Optional[AgentsContext] = None,
    ) -> PipelineResult:
        """Handle one request. ``InvalidPath`` is the only error surfaced to callers."""
        root = resolve_workspace(workspace_path)
        prompt_id = prompt_id or uuid.uuid4().hex[:12]

        descriptor = self.scanner.scan(root)
        phase = self.classifier.detect_phase(root, force_phase=force_phase)
        plan = self.router.route(descriptor, user_intent, root)
        signals = self.router.score_signals(descriptor, user_intent, plan, root)
        decision = self.router.apply_fallback_rules(
            FallbackOptions(signals=signals, prompt_id=prompt_id, user_intent=user_intent)
        )
        outcome = self.orchestrator.orchestrate(
            root, descriptor, plan, user_intent, agents_context=agents_context
        )
        logger.info("%s (%s, route %s)", outcome.summary, prompt_id, decision.route)

        memory_reference = ""
        if self.history is not None:
            memory_reference = self.history.save_run(
                root,
                agent_ids=plan.agent_ids,
                user_intent=user_intent,
                success=outcome.succeeded > 0,
                summary="; ".join(result.summary for result in outcome.results if result.summary),
                extra={"prompt_id": prompt_id, "route": decision.route, "score": decision.score},
            )

        return PipelineResult(
            summary=outcome.summary,
            diagnostics=[item for result in outcome.results for item in result.diagnostics],
            changes=[item for result in outcome.results for item in result.changes],
            memory_reference=memory_reference,
            status=outcome.status,
            descriptor=descriptor,
            route_plan=plan,
            decision=decision,
            phase=phase,
        )


def run_pipeline(
    workspace_path: str | Path,
    user_intent: str,
    *,
    config: AICoreConfig | None = None,
    prompt_id: Optional[str] = None,
    force_phase: Optional[str] = None,
    agents_context: Optional[AgentsContext] = None,
) -> PipelineResult:
    """Convenience wrapper building a :class:`Pipeline` for a single request."""
    pipeline = Pipeline(config) if config is not None else Pipeline.for_workspace(workspace_path)
    return pipeline.run(
        workspace_path,
        user_intent,
        prompt_id=prompt_id,
        force_phase=force_phase,
        agents_context=agents_context,
    )


__all__ = ["Pipeline", "run_pipeline"]
