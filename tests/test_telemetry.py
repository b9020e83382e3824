"""Tests for telemetry sinks."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from aicore.config import TelemetryConfig
from aicore.telemetry import (
    JsonlTelemetrySink,
    LoggingTelemetrySink,
    MemoryTelemetrySink,
    NullTelemetrySink,
    build_event,
    build_sink,
)


def test_build_event_stamps_name_and_time() -> None:
    event = build_event("route_decision", score=0.5, route="fallback_llm")

    assert event["event"] == "route_decision"
    assert event["timestamp"].endswith("Z")
    assert event["score"] == 0.5
    assert event["route"] == "fallback_llm"


def test_logging_sink_writes_telemetry_line(aicore_caplog: pytest.LogCaptureFixture) -> None:
    with aicore_caplog.at_level(logging.INFO, logger="aicore.telemetry"):
        LoggingTelemetrySink().emit({"event": "route_decision", "score": 0.9})

    [record] = aicore_caplog.records
    assert record.name == "aicore.telemetry"
    assert record.getMessage() == '[TELEMETRY] {"event": "route_decision", "score": 0.9}'


def test_jsonl_sink_appends_events(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "telemetry.jsonl"
    sink = JsonlTelemetrySink(path)

    sink.emit({"event": "a"})
    sink.emit({"event": "b"})

    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["event"] for line in lines] == ["a", "b"]


def test_jsonl_sink_logs_write_failures(
    tmp_path: Path, aicore_caplog: pytest.LogCaptureFixture
) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    sink = JsonlTelemetrySink(blocker / "telemetry.jsonl")

    with aicore_caplog.at_level(logging.WARNING, logger="aicore.telemetry"):
        sink.emit({"event": "lost"})

    assert any("Failed to write telemetry" in r.getMessage() for r in aicore_caplog.records)


def test_memory_sink_collects_events() -> None:
    sink = MemoryTelemetrySink()

    sink.emit({"event": "one"})

    assert sink.events == [{"event": "one"}]


def test_build_sink_follows_configuration(tmp_path: Path) -> None:
    assert isinstance(build_sink(TelemetryConfig(enabled=False)), NullTelemetrySink)
    assert isinstance(build_sink(TelemetryConfig()), LoggingTelemetrySink)

    jsonl = build_sink(TelemetryConfig(sink="jsonl", path=tmp_path / "events.jsonl"))
    assert isinstance(jsonl, JsonlTelemetrySink)
    assert jsonl.path == tmp_path / "events.jsonl"

    default_path = build_sink(TelemetryConfig(sink="jsonl"))
    assert default_path.path == Path(".aicore") / "telemetry.jsonl"
