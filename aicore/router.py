"""Agent selection and confidence-based route decisions.

Selection and confidence are independent paths. :meth:`Router.route` builds an
ordered dispatch plan from the request text and the workspace descriptor;
:meth:`Router.apply_fallback_rules` scores the request and maps the score onto
one of three automation routes, emitting one telemetry event per decision.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .agents import AgentRegistry
from .config import AICoreConfig, RoutingConfig
from .logging import get_logger
from .models import AgentPlanEntry, RouteDecision, RoutePlan, WorkspaceDescriptor
from .scoring import ScoreSignals, compute_score
from .stores import RunHistory
from .telemetry import NullTelemetrySink, TelemetrySink, build_event

MIN_INTENT_FOR_TYPE = 10

# Ordered: the first project type with a matching phrase wins.
PROJECT_TYPE_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("landing", ("landing", "one page", "brochure", "catalog", "static site", "no backend")),
    ("saas", ("saas", "multi-user", "multi-tenant", "tenant", "dashboard", "subscription")),
    ("ecommerce", ("ecommerce", "e-commerce", "shop", "cart", "checkout", "payment", "stripe")),
    ("api", ("rest api", "api rest", "backend only", "microservice", "graphql", "crud")),
    ("erp", ("erp", "enterprise resource", "inventory", "invoicing", "payroll")),
    ("blog", ("blog", "wordpress", "cms", "content management", "articles", "news")),
)

PROJECT_TYPE_AGENTS: Dict[str, Tuple[str, ...]] = {
    "landing": ("frontend", "seo"),
    "saas": ("frontend", "backend", "security"),
    "ecommerce": ("frontend", "backend", "security"),
    "blog": ("frontend", "seo"),
    "erp": ("backend", "security"),
    "api": ("backend", "security"),
    "ml": ("code", "test"),
    "library": ("code", "test"),
    "cli": ("code", "test"),
}

FRAMEWORK_AGENTS: Dict[str, Tuple[str, ...]] = {
    "react": ("frontend",),
    "nextjs": ("frontend", "seo"),
    "vue": ("frontend",),
    "nuxt": ("frontend", "seo"),
    "svelte": ("frontend",),
    "angular": ("frontend",),
    "express": ("backend",),
    "fastify": ("backend",),
    "django": ("backend",),
    "flask": ("backend",),
    "fastapi": ("backend",),
    "laravel": ("backend",),
    "gin": ("backend",),
}

LANGUAGE_AGENTS: Dict[str, Tuple[str, ...]] = {
    "javascript": ("frontend", "code"),
    "typescript": ("frontend", "code"),
    "python": ("backend", "code"),
    "go": ("code",),
    "rust": ("code",),
    "php": ("backend", "code"),
}

# Ordered: the first verb found in the request decides.
ACTION_VERBS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("improve", ("code", "frontend")),
    ("add", ("code", "frontend")),
    ("create", ("code", "frontend")),
    ("build", ("frontend", "backend")),
    ("make", ("frontend", "code")),
    ("fix", ("code",)),
    ("optimize", ("code", "seo")),
    ("secure", ("security",)),
    ("protect", ("security",)),
    ("test", ("test",)),
    ("verify", ("test",)),
    ("deploy", ("backend",)),
    ("setup", ("code",)),
    ("configure", ("code",)),
)
IMPROVEMENT_WORDS = ("better", "faster", "modern", "update", "upgrade", "enhance", "boost")

ROUTE_LABELS = {
    "candidate_auto_apply": "High confidence - auto-apply candidate",
    "fallback_llm": "Medium confidence - LLM fallback recommended",
    "clarify_needed": "Low confidence - user clarification needed",
}

logger = get_logger("router")


@dataclass
class FallbackOptions:
    """Inputs for one route decision."""

    signals: ScoreSignals = field(default_factory=ScoreSignals)
    prompt_id: str = "unknown"
    user_intent: str = ""


def infer_project_type(user_intent: str) -> Optional[str]:
    """Guess a project type from the request text, for workspaces that do not reveal one."""
    if not user_intent or len(user_intent) < MIN_INTENT_FOR_TYPE:
        return None
    lowered = user_intent.lower()
    for project_type, phrases in PROJECT_TYPE_KEYWORDS:
        if any(phrase in lowered for phrase in phrases):
            return project_type
    return None


def implied_agents(user_intent: str) -> Tuple[Tuple[str, ...], str]:
    """Agents implied by action verbs or generic improvement wording."""
    lowered = user_intent.lower()
    for verb, agents in ACTION_VERBS:
        if verb in lowered:
            return agents, f"Action verb implies: {verb}"
    if any(word in lowered for word in IMPROVEMENT_WORDS):
        return ("code", "frontend"), "General improvement request"
    return (), ""


def default_agents(project_type: str, framework: Optional[str], language: str) -> List[str]:
    """Fallback agents for the project type, then framework, then language."""
    defaults: List[str] = []
    defaults.extend(PROJECT_TYPE_AGENTS.get(project_type, ()))
    if framework:
        defaults.extend(FRAMEWORK_AGENTS.get(framework, ()))
    defaults.extend(LANGUAGE_AGENTS.get(language, ()))
    return list(dict.fromkeys(defaults))


def determine_route(score: float, routing: RoutingConfig) -> Tuple[str, str]:
    """Map a score to ``(route, label)``; a score equal to a threshold takes the higher route."""
    if score >= routing.auto_apply_threshold:
        route = "candidate_auto_apply"
    elif score >= routing.llm_fallback_threshold:
        route = "fallback_llm"
    else:
        route = "clarify_needed"
    return route, ROUTE_LABELS[route]


class Router:
    """Builds dispatch plans and route decisions for incoming requests."""

    def __init__(
        self,
        registry: AgentRegistry,
        config: AICoreConfig | None = None,
        telemetry: TelemetrySink | None = None,
        history: RunHistory | None = None,
    ) -> None:
        self.registry = registry
        self.config = config or AICoreConfig(root=Path.cwd())
        self.telemetry = telemetry or NullTelemetrySink()
        self.history = history

    # ------------------------------------------------------------------
    # Agent selection

    def keyword_hits(self, agent_id: str, user_intent: str) -> int:
        agent = self.registry.get(agent_id)
        if agent is None:
            return 0
        lowered = user_intent.lower()
        return sum(1 for keyword in agent.keywords if keyword in lowered)

    def rank_by_keywords(
        self, metadata: WorkspaceDescriptor, user_intent: str
    ) -> List[Tuple[str, int]]:
        """Return ``(agent_id, relevance)`` for matching agents, most relevant first.

        Relevance is the number of declared keywords found in the request, plus
        one when the agent declares a capability the workspace has. Equal
        relevance keeps registration order.
        """
        ranked: List[Tuple[str, int]] = []
        for agent in self.registry:
            hits = self.keyword_hits(agent.agent_id, user_intent)
            if not hits:
                continue
            bonus = 1 if metadata.capabilities.intersection(agent.capabilities) else 0
            ranked.append((agent.agent_id, hits + bonus))
        ranked.sort(key=lambda item: -item[1])
        return ranked

    def route(
        self,
        metadata: WorkspaceDescriptor,
        user_intent: str,
        workspace_path: str | Path | None = None,
    ) -> RoutePlan:
        """Select agents for the request; an empty plan is a valid outcome."""
        project_type = metadata.project_type
        if project_type == "unknown":
            inferred = infer_project_type(user_intent)
            if inferred:
                logger.debug("Project type inferred from request: %s", inferred)
                project_type = inferred

        selected: List[str] = []
        reasons: List[str] = []
        method = "none"

        for agent_id, relevance in self.rank_by_keywords(metadata, user_intent):
            selected.append(agent_id)
            reasons.append(f"Keyword: {agent_id} ({relevance})")
        if selected:
            method = "keyword"

        if not selected:
            implied, why = implied_agents(user_intent)
            for agent_id in implied:
                if agent_id in self.registry and agent_id not in selected:
                    selected.append(agent_id)
                    reasons.append(f"Context: {why}")
            if selected:
                method = "context"

        if not selected:
            subject = metadata.framework or project_type or metadata.language
            for agent_id in default_agents(project_type, metadata.framework, metadata.language):
                if agent_id in self.registry:
                    selected.append(agent_id)
                    reasons.append(f"Default for {subject}")
            if selected:
                method = "default"

        config = {
            "language": metadata.language,
            "framework": metadata.framework,
            "capabilities": sorted(metadata.capabilities),
            "project_type": project_type,
        }
        plan = RoutePlan(
            agents=[AgentPlanEntry(agent_id=agent_id, config=dict(config)) for agent_id in selected],
            reason="; ".join(dict.fromkeys(reasons)) or "No matching agents",
            detection_method=method,
            project_type=project_type,
        )
        logger.debug("Routed %s via %s: %s", workspace_path or "request", method, plan.agent_ids)
        return plan

    # ------------------------------------------------------------------
    # Confidence

    def score_signals(
        self,
        metadata: WorkspaceDescriptor,
        user_intent: str,
        plan: RoutePlan,
        workspace_path: str | Path | None = None,
    ) -> ScoreSignals:
        """Derive the four normalised scoring inputs for a planned request."""
        agent_ids = plan.agent_ids

        best_hits = max((self.keyword_hits(agent_id, user_intent) for agent_id in agent_ids), default=0)
        keywords_score = min(1.0, best_hits / 2)

        profile_match = 0.0
        if agent_ids:
            agents = [self.registry.get(agent_id) for agent_id in agent_ids]
            supported = sum(
                1 for agent in agents if agent is not None and agent.supports(metadata.language)
            )
            expected = set(default_agents(plan.project_type, metadata.framework, metadata.language))
            overlap = sum(1 for agent_id in agent_ids if agent_id in expected)
            profile_match = 0.5 * supported / len(agent_ids) + 0.5 * overlap / len(agent_ids)

        historical = 0.5
        if self.history is not None and workspace_path is not None:
            rate = self.history.success_rate(workspace_path, agent_ids)
            if rate is not None:
                historical = rate

        words = len(user_intent.split())
        complexity = 0.5 * min(1.0, words / 50)
        if len(agent_ids) > 2:
            complexity += 0.5
        elif len(agent_ids) == 2:
            complexity += 0.25

        return ScoreSignals(
            keywords_score=keywords_score,
            profile_match_score=round(profile_match, 6),
            historical_success_score=historical,
            complexity_estimate=round(1.0 - complexity, 6),
        )

    def apply_fallback_rules(self, options: FallbackOptions) -> RouteDecision:
        """Score the request, pick its route and emit exactly one telemetry event."""
        routing = self.config.routing
        result = compute_score(
            options.signals,
            self.config.scoring.weights,
            routing,
            prompt_id=options.prompt_id,
            log_scores=self.config.scoring.log_scores,
        )
        route, label = determine_route(result.score, routing)
        self.telemetry.emit(
            build_event(
                "route_decision",
                prompt_id=options.prompt_id,
                score=result.score,
                route=route,
                user_intent=options.user_intent,
                level=result.level,
            )
        )
        return RouteDecision(
            score=result.score,
            level=result.level,
            route=route,
            label=label,
            breakdown=result.breakdown,
        )


__all__ = [
    "FallbackOptions",
    "ROUTE_LABELS",
    "Router",
    "default_agents",
    "determine_route",
    "implied_agents",
    "infer_project_type",
]
