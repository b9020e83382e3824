"""Configuration loading for aicore (.aicore.yml)."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

import yaml

from .errors import ConfigError
from .logging import get_logger

CONFIG_FILENAME = ".aicore.yml"

logger = get_logger("config")


@dataclass(frozen=True)
class RoutingConfig:
    """Score thresholds separating the three automation routes."""

    auto_apply_threshold: float = 0.7
    llm_fallback_threshold: float = 0.4


@dataclass(frozen=True)
class ScoringWeights:
    """Linear weights applied to the four normalised scoring inputs."""

    keywords: float = 0.5
    profile_match: float = 0.3
    historical_success: float = 0.15
    complexity: float = 0.05

    def as_dict(self) -> Dict[str, float]:
        return {
            "keywords": self.keywords,
            "profile_match": self.profile_match,
            "historical_success": self.historical_success,
            "complexity": self.complexity,
        }


@dataclass(frozen=True)
class ScoringConfig:
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    log_scores: bool = False


@dataclass(frozen=True)
class TelemetryConfig:
    """Route decision telemetry settings."""

    enabled: bool = True
    sink: str = "log"
    path: Optional[Path] = None


@dataclass(frozen=True)
class MemoryConfig:
    """Run-history store settings."""

    enabled: bool = True
    directory: Optional[Path] = None
    max_file_size: int = 10 * 1024 * 1024
    ttl_days: int = 30


@dataclass(frozen=True)
class LLMConfig:
    """Remote inference settings used by agents."""

    model: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    request_timeout: Optional[float] = None


@dataclass(frozen=True)
class AICoreConfig:
    """Represents the high-level settings defined in .aicore.yml."""

    root: Path
    routing: RoutingConfig = field(default_factory=RoutingConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)
    memory: MemoryConfig = field(default_factory=MemoryConfig)
    detectors: Tuple[str, ...] = ()
    agents: Tuple[str, ...] = ()
    llm: Optional[LLMConfig] = None
    tracker_dir: Optional[Path] = None


def load_config(config_path: Path) -> AICoreConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(Path(config_path))
    root = config_file.parent.resolve()

    if not config_file.exists():
        return AICoreConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    routing_data = _as_dict(data.get("routing"))
    defaults = RoutingConfig()
    routing = RoutingConfig(
        auto_apply_threshold=_require_float(
            routing_data, "auto_apply_threshold", defaults.auto_apply_threshold, "routing"
        ),
        llm_fallback_threshold=_require_float(
            routing_data, "llm_fallback_threshold", defaults.llm_fallback_threshold, "routing"
        ),
    )
    _validate_routing(routing)

    scoring_data = _as_dict(data.get("scoring"))
    weights_data = _as_dict(scoring_data.get("weights"))
    default_weights = ScoringWeights()
    weights = ScoringWeights(
        **{
            name: _require_float(weights_data, name, default, "scoring.weights")
            for name, default in default_weights.as_dict().items()
        }
    )
    _validate_weights(weights)
    scoring = ScoringConfig(
        weights=weights,
        log_scores=_as_bool(scoring_data.get("log_scores")) or False,
    )

    telemetry_data = _as_dict(data.get("telemetry"))
    telemetry_path = _as_str(telemetry_data.get("path"))
    enabled = _as_bool(telemetry_data.get("enabled"))
    telemetry = TelemetryConfig(
        enabled=True if enabled is None else enabled,
        sink=_as_str(telemetry_data.get("sink")) or "log",
        path=root / telemetry_path if telemetry_path else None,
    )
    if telemetry.sink not in {"log", "jsonl"}:
        raise ConfigError(f"Unknown telemetry sink: {telemetry.sink}")

    memory_data = _as_dict(data.get("memory"))
    memory_dir = _as_str(memory_data.get("dir"))
    memory_enabled = _as_bool(memory_data.get("enabled"))
    memory = MemoryConfig(
        enabled=True if memory_enabled is None else memory_enabled,
        directory=Path(memory_dir).expanduser() if memory_dir else None,
        max_file_size=_as_int(memory_data.get("max_file_size")) or MemoryConfig.max_file_size,
        ttl_days=_as_int(memory_data.get("ttl_days")) or MemoryConfig.ttl_days,
    )

    llm_data = _as_dict(data.get("llm"))
    llm = None
    if llm_data:
        llm = LLMConfig(
            model=_as_str(llm_data.get("model")),
            base_url=_as_str(llm_data.get("base_url")),
            api_key=_as_str(llm_data.get("api_key")),
            temperature=_as_float(llm_data.get("temperature")),
            max_tokens=_as_int(llm_data.get("max_tokens")),
            request_timeout=_as_float(llm_data.get("request_timeout")),
        )

    tracker_data = _as_dict(data.get("tracker"))
    tracker_dir = _as_str(tracker_data.get("dir"))

    return AICoreConfig(
        root=root,
        routing=routing,
        scoring=scoring,
        telemetry=telemetry,
        memory=memory,
        detectors=tuple(_as_str_list(_as_dict(data.get("detectors")).get("enabled"))),
        agents=tuple(_as_str_list(_as_dict(data.get("agents")).get("enabled"))),
        llm=llm,
        tracker_dir=root / tracker_dir if tracker_dir else None,
    )


def load_config_or_default(config_path: Path) -> AICoreConfig:
    """Load configuration, falling back to defaults when the file is unusable."""
    try:
        return load_config(config_path)
    except (ConfigError, OSError) as exc:
        logger.warning("Could not load configuration (%s); using defaults", exc)
        resolved = _resolve_config_path(Path(config_path))
        return AICoreConfig(root=resolved.parent.resolve())


def _validate_routing(routing: RoutingConfig) -> None:
    if routing.auto_apply_threshold <= routing.llm_fallback_threshold:
        raise ConfigError(
            "routing.auto_apply_threshold must be greater than routing.llm_fallback_threshold"
        )


def _validate_weights(weights: ScoringWeights) -> None:
    values = weights.as_dict()
    non_positive = [name for name, value in values.items() if value <= 0]
    if non_positive:
        raise ConfigError(f"Scoring weights must be positive: {', '.join(non_positive)}")
    total = sum(values.values())
    if not math.isclose(total, 1.0, abs_tol=1e-6):
        raise ConfigError(f"Scoring weights must sum to 1 (got {total:.4f})")


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.suffix not in {".yml", ".yaml"}:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ConfigError(f"Failed to decode {path.name} as UTF-8: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _require_float(data: Dict[str, Any], key: str, default: float, section: str) -> float:
    if key not in data:
        return default
    value = _as_float(data.get(key))
    if value is None:
        raise ConfigError(f"Expected a number for {section}.{key}")
    return value


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []
