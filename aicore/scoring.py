"""Confidence scoring for routing decisions."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Dict

from .config import RoutingConfig, ScoringWeights
from .logging import get_logger
from .models import ScoreBreakdown

logger = get_logger("scoring")


@dataclass(frozen=True)
class ScoreSignals:
    """Caller-normalised inputs, each expected in [0, 1]."""

    keywords_score: float = 0.0
    profile_match_score: float = 0.0
    historical_success_score: float = 0.5
    # Weighted as given: 1.0 means easiest. Router.score_signals supplies 1 - complexity.
    complexity_estimate: float = 0.0


@dataclass(frozen=True)
class RecommendedAction:
    action: str
    message: str


def level_for(score: float, thresholds: RoutingConfig) -> str:
    """Map a score to its confidence tier; boundaries belong to the higher tier."""
    if score >= thresholds.auto_apply_threshold:
        return "high"
    if score >= thresholds.llm_fallback_threshold:
        return "medium"
    return "low"


def compute_score(
    signals: ScoreSignals,
    weights: ScoringWeights | None = None,
    thresholds: RoutingConfig | None = None,
    *,
    prompt_id: str = "unknown",
    log_scores: bool = False,
) -> ScoreBreakdown:
    """Combine the four inputs into a weighted score and confidence tier.

    Inputs are not range-checked: values outside [0, 1] flow straight into the
    weighted sum.
    """
    weights = weights or ScoringWeights()
    thresholds = thresholds or RoutingConfig()

    breakdown: Dict[str, float] = {
        "keywords": signals.keywords_score * weights.keywords,
        "profile_match": signals.profile_match_score * weights.profile_match,
        "historical_success": signals.historical_success_score * weights.historical_success,
        "complexity": signals.complexity_estimate * weights.complexity,
    }
    score = round(sum(breakdown.values()), 6)
    result = ScoreBreakdown(score=score, level=level_for(score, thresholds), breakdown=breakdown)

    if log_scores:
        logger.info(
            "[SCORING] %s",
            json.dumps(
                {
                    "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
                    "prompt_id": prompt_id,
                    "score": result.score,
                    "level": result.level,
                    "breakdown": breakdown,
                    "input": asdict(signals),
                }
            ),
        )
    return result


def should_fallback_to_llm(
    score: float, thresholds: RoutingConfig | None = None, *, force: bool = False
) -> bool:
    if force:
        return True
    thresholds = thresholds or RoutingConfig()
    return score < thresholds.llm_fallback_threshold


def recommended_action(score: float, thresholds: RoutingConfig | None = None) -> RecommendedAction:
    """Translate a score into a human-facing next step."""
    level = level_for(score, thresholds or RoutingConfig())
    if level == "high":
        return RecommendedAction(
            "proceed", "High confidence - proceed with deterministic proposals"
        )
    if level == "medium":
        return RecommendedAction(
            "proceed_with_warning", "Medium confidence - consider LLM fallback for complex cases"
        )
    return RecommendedAction("fallback", "Low confidence - recommend LLM or user clarification")


__all__ = [
    "RecommendedAction",
    "ScoreSignals",
    "compute_score",
    "level_for",
    "recommended_action",
    "should_fallback_to_llm",
]
