"""Tests for aicore.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from aicore.config import (
    AICoreConfig,
    LLMConfig,
    RoutingConfig,
    ScoringWeights,
    load_config,
    load_config_or_default,
)
from aicore.errors import ConfigError


def _write_config(root: Path, text: str) -> Path:
    config_file = root / ".aicore.yml"
    config_file.write_text(text, encoding="utf-8")
    return config_file


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, AICoreConfig)
    assert config.root == tmp_path.resolve()
    assert config.routing == RoutingConfig()
    assert config.scoring.weights == ScoringWeights()
    assert config.scoring.log_scores is False
    assert config.telemetry.enabled is True
    assert config.telemetry.sink == "log"
    assert config.memory.enabled is True
    assert config.memory.ttl_days == 30
    assert config.detectors == ()
    assert config.agents == ()
    assert config.llm is None
    assert config.tracker_dir is None


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = _write_config(
        tmp_path,
        """
routing:
  auto_apply_threshold: 0.8
  llm_fallback_threshold: 0.3
scoring:
  log_scores: true
  weights:
    keywords: 0.4
    profile_match: 0.4
    historical_success: 0.1
    complexity: 0.1
telemetry:
  sink: jsonl
  path: logs/telemetry.jsonl
memory:
  enabled: "no"
  dir: "~/runs"
  max_file_size: 2048
  ttl_days: 7
detectors:
  enabled: [python, go]
agents:
  enabled: security
llm:
  model: "llama3:8b-instruct"
  base_url: "http://localhost:12434/engines/v1"
  temperature: 0.15
  max_tokens: 256
  request_timeout: 60
tracker:
  dir: .aicore/tasks
""",
    )

    config = load_config(config_file)

    assert config.routing == RoutingConfig(auto_apply_threshold=0.8, llm_fallback_threshold=0.3)
    assert config.scoring.log_scores is True
    assert config.scoring.weights.keywords == pytest.approx(0.4)
    assert config.telemetry.sink == "jsonl"
    assert config.telemetry.path == tmp_path.resolve() / "logs" / "telemetry.jsonl"
    assert config.memory.enabled is False
    assert config.memory.directory == Path("~/runs").expanduser()
    assert config.memory.max_file_size == 2048
    assert config.memory.ttl_days == 7
    assert config.detectors == ("python", "go")
    assert config.agents == ("security",)
    assert isinstance(config.llm, LLMConfig)
    assert config.llm.model == "llama3:8b-instruct"
    assert config.llm.temperature == pytest.approx(0.15)
    assert config.llm.max_tokens == 256
    assert config.llm.request_timeout == pytest.approx(60.0)
    assert config.tracker_dir == tmp_path.resolve() / ".aicore" / "tasks"


def test_load_config_accepts_file_or_directory(tmp_path: Path) -> None:
    _write_config(tmp_path, "agents:\n  enabled: [code]\n")

    assert load_config(tmp_path).agents == ("code",)
    assert load_config(tmp_path / ".aicore.yml").agents == ("code",)


def test_empty_config_file_uses_defaults(tmp_path: Path) -> None:
    _write_config(tmp_path, "   \n")

    assert load_config(tmp_path).routing == RoutingConfig()


def test_load_config_rejects_inverted_thresholds(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        "routing:\n  auto_apply_threshold: 0.4\n  llm_fallback_threshold: 0.4\n",
    )

    with pytest.raises(ConfigError, match="auto_apply_threshold"):
        load_config(tmp_path)


def test_load_config_rejects_weights_not_summing_to_one(tmp_path: Path) -> None:
    _write_config(tmp_path, "scoring:\n  weights:\n    keywords: 0.9\n")

    with pytest.raises(ConfigError, match="sum to 1"):
        load_config(tmp_path)


def test_load_config_rejects_negative_weights(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
scoring:
  weights:
    keywords: 0.7
    profile_match: 0.3
    historical_success: 0.05
    complexity: -0.05
""",
    )

    with pytest.raises(ConfigError, match="complexity"):
        load_config(tmp_path)


def test_load_config_rejects_non_numeric_threshold(tmp_path: Path) -> None:
    _write_config(tmp_path, "routing:\n  auto_apply_threshold: high\n")

    with pytest.raises(ConfigError, match="routing.auto_apply_threshold"):
        load_config(tmp_path)


def test_load_config_rejects_unknown_sink(tmp_path: Path) -> None:
    _write_config(tmp_path, "telemetry:\n  sink: kafka\n")

    with pytest.raises(ConfigError, match="kafka"):
        load_config(tmp_path)


def test_load_config_rejects_non_mapping_root(tmp_path: Path) -> None:
    _write_config(tmp_path, "- just\n- a list\n")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_reports_yaml_errors(tmp_path: Path) -> None:
    _write_config(tmp_path, "routing: [unclosed\n")

    with pytest.raises(ConfigError, match="Failed to parse"):
        load_config(tmp_path)


def test_load_config_or_default_falls_back(tmp_path: Path) -> None:
    _write_config(tmp_path, "routing: [unclosed\n")

    config = load_config_or_default(tmp_path)

    assert config == AICoreConfig(root=tmp_path.resolve())


def test_load_config_rejects_undecodable_bytes(tmp_path: Path) -> None:
    (tmp_path / ".aicore.yml").write_bytes(b"routing:\n  auto_apply_threshold: 0.8\xff\n")

    with pytest.raises(ConfigError, match="UTF-8"):
        load_config(tmp_path)


def test_load_config_or_default_falls_back_on_undecodable_bytes(tmp_path: Path) -> None:
    (tmp_path / ".aicore.yml").write_bytes(b"routing:\n  auto_apply_threshold: 0.8\xff\n")

    config = load_config_or_default(tmp_path)

    assert config == AICoreConfig(root=tmp_path.resolve())
