"""Core data models shared across aicore components."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional

PROJECT_TYPES = ("api", "ml", "cli", "landing", "saas", "unknown")
PHASES = ("discovery", "build", "ship")
LEVELS = ("high", "medium", "low")
ROUTES = ("candidate_auto_apply", "fallback_llm", "clarify_needed")
SEVERITIES = ("info", "warning", "error")


@dataclass
class DetectorResult:
    """Partial workspace classification emitted by a single detector."""

    language: str
    framework: Optional[str] = None
    signals: List[str] = field(default_factory=list)
    capabilities: List[str] = field(default_factory=list)
    detector: str = ""


@dataclass(frozen=True)
class WorkspaceDescriptor:
    """Unified snapshot of a workspace produced by one scan."""

    language: str = "unknown"
    framework: Optional[str] = None
    capabilities: FrozenSet[str] = frozenset()
    signals: FrozenSet[str] = frozenset()
    project_type: str = "unknown"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "language": self.language,
            "framework": self.framework,
            "capabilities": sorted(self.capabilities),
            "signals": sorted(self.signals),
            "project_type": self.project_type,
        }


@dataclass(frozen=True)
class PhaseSignals:
    """Independently measurable facts used to infer the lifecycle phase."""

    file_count: int = 0
    test_count: int = 0
    has_ci: bool = False
    has_container: bool = False
    has_deploy_config: bool = False
    has_complete_readme: bool = False
    dependency_count: int = 0
    commit_count: int = 0


@dataclass
class PhaseVerdict:
    """Lifecycle phase classification for a workspace."""

    phase: str
    confidence: float
    scores: Dict[str, int]
    signals: PhaseSignals
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ScoreBreakdown:
    """Confidence score with its tier and weighted components."""

    score: float
    level: str
    breakdown: Dict[str, float]


@dataclass
class RouteDecision:
    """Automation route chosen for a request from its confidence score."""

    score: float
    level: str
    route: str
    label: str
    breakdown: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AgentPlanEntry:
    """One agent invocation in a dispatch plan."""

    agent_id: str
    config: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RoutePlan:
    """Ordered dispatch plan and the reasoning behind it."""

    agents: List[AgentPlanEntry]
    reason: str
    detection_method: str = "none"
    project_type: str = "unknown"

    @property
    def agent_ids(self) -> List[str]:
        return [entry.agent_id for entry in self.agents]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Diagnostic:
    """Problem or note reported by an agent."""

    severity: str
    message: str
    file: str = ""
    line: int = 0


@dataclass
class Change:
    """File change proposed by an agent."""

    type: str
    file: str
    description: str
    diff: str = ""


@dataclass
class ExecutionResult:
    """Outcome of a single agent invocation."""

    success: bool
    diagnostics: List[Diagnostic] = field(default_factory=list)
    changes: List[Change] = field(default_factory=list)
    summary: str = ""
    agent_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class OrchestrationOutcome:
    """Aggregated results of executing a dispatch plan."""

    results: List[ExecutionResult]
    summary: str

    @property
    def succeeded(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def status(self) -> str:
        if not self.results:
            return "empty"
        if self.succeeded == len(self.results):
            return "succeeded"
        if self.succeeded == 0:
            return "failed"
        return "partial"


@dataclass
class PipelineResult:
    """Response returned for one scan, route and orchestrate request."""

    summary: str
    diagnostics: List[Diagnostic]
    changes: List[Change]
    memory_reference: str
    status: str = "empty"
    descriptor: Optional[WorkspaceDescriptor] = None
    route_plan: Optional[RoutePlan] = None
    decision: Optional[RouteDecision] = None
    phase: Optional[PhaseVerdict] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "diagnostics": [asdict(item) for item in self.diagnostics],
            "changes": [asdict(item) for item in self.changes],
            "memory_reference": self.memory_reference,
            "status": self.status,
            "metadata": self.descriptor.to_dict() if self.descriptor else None,
            "plan": self.route_plan.to_dict() if self.route_plan else None,
            "decision": self.decision.to_dict() if self.decision else None,
            "phase": self.phase.to_dict() if self.phase else None,
        }


@dataclass
class AgentsContext:
    """Knowledge-base context attached to a run by an external project tracker."""

    project_id: Optional[str] = None
    project_name: Optional[str] = None
    rules: str = ""
    rule_files: List[str] = field(default_factory=list)
