"""Telemetry sinks for routing decisions."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict, List, Protocol

from .config import TelemetryConfig
from .logging import get_logger

logger = get_logger("telemetry")


class TelemetrySink(Protocol):
    def emit(self, event: Dict[str, Any]) -> None:
        ...


def build_event(name: str, **fields: Any) -> Dict[str, Any]:
    """Return a JSON-ready event stamped with the current UTC time."""
    event: Dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        "event": name,
    }
    event.update(fields)
    return event


class NullTelemetrySink:
    """Discards every event; used when telemetry is disabled."""

    def emit(self, event: Dict[str, Any]) -> None:
        return None


class LoggingTelemetrySink:
    """Writes one ``[TELEMETRY] <json>`` record per event to the aicore.telemetry logger."""

    def emit(self, event: Dict[str, Any]) -> None:
        logger.info("[TELEMETRY] %s", json.dumps(event, sort_keys=True))


class JsonlTelemetrySink:
    """Appends events to a JSON Lines file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def emit(self, event: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(event, sort_keys=True) + "\n")
        except OSError as exc:
            logger.warning("Failed to write telemetry event to %s: %s", self.path, exc)


class MemoryTelemetrySink:
    """Keeps events in memory; handy for embedding and tests."""

    def __init__(self) -> None:
        self.events: List[Dict[str, Any]] = []

    def emit(self, event: Dict[str, Any]) -> None:
        self.events.append(event)


def build_sink(config: TelemetryConfig) -> TelemetrySink:
    """Return the sink selected by configuration."""
    if not config.enabled:
        return NullTelemetrySink()
    if config.sink == "jsonl":
        path = config.path or Path(".aicore") / "telemetry.jsonl"
        return JsonlTelemetrySink(path)
    return LoggingTelemetrySink()


__all__ = [
    "JsonlTelemetrySink",
    "LoggingTelemetrySink",
    "MemoryTelemetrySink",
    "NullTelemetrySink",
    "TelemetrySink",
    "build_event",
    "build_sink",
]
