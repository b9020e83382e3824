"""Tests for the agent registry and plugin discovery."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from aicore.agents import Agent, AgentRegistry, CodeAgent, SecurityAgent, default_registry
from aicore.errors import ConfigError
from aicore.models import ExecutionResult


class DocsAgent(Agent):
    agent_id = "docs"
    supported_languages = frozenset({"python"})
    keywords = ("docs", "readme")

    def run(self, context):  # pragma: no cover - unused
        return ExecutionResult(success=True)


def _patch_entry_points(monkeypatch: pytest.MonkeyPatch, *entries: SimpleNamespace) -> None:
    class DummyEntryPoints(list):
        def select(self, **kwargs):
            if kwargs.get("group") == "aicore.agents":
                return self
            return []

    monkeypatch.setattr(
        "aicore.plugins.metadata.entry_points",
        lambda: DummyEntryPoints(entries),
        raising=False,
    )


def test_default_registry_holds_builtins_in_order(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_entry_points(monkeypatch)

    registry = default_registry()

    assert registry.ids() == ["security", "test", "code"]
    assert len(registry) == 3
    assert "code" in registry
    assert isinstance(registry.get("security"), SecurityAgent)
    assert registry.get("frontend") is None


def test_default_registry_respects_enabled_filter() -> None:
    registry = default_registry(["code"])

    assert [type(agent) for agent in registry] == [CodeAgent]


def test_default_registry_loads_entry_points(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_entry_points(monkeypatch, SimpleNamespace(name="docs", load=lambda: DocsAgent))

    registry = default_registry()

    assert registry.ids() == ["security", "test", "code", "docs"]


def test_default_registry_skips_non_agent_plugins(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_entry_points(monkeypatch, SimpleNamespace(name="bogus", load=lambda: "not an agent"))

    registry = default_registry()

    assert registry.ids() == ["security", "test", "code"]


def test_default_registry_skips_plugins_reusing_a_builtin_id(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _patch_entry_points(monkeypatch, SimpleNamespace(name="security-plus", load=SecurityAgent))

    registry = default_registry()

    assert registry.ids() == ["security", "test", "code"]


def test_default_registry_raises_for_unknown_name() -> None:
    with pytest.raises(ConfigError, match="does-not-exist"):
        default_registry(["security", "does-not-exist"])


def test_registry_rejects_duplicate_ids() -> None:
    registry = AgentRegistry([SecurityAgent()])

    with pytest.raises(ValueError, match="already registered"):
        registry.register(SecurityAgent())


def test_registry_rejects_agents_without_id() -> None:
    agent = DocsAgent()
    agent.agent_id = ""

    with pytest.raises(ValueError):
        AgentRegistry([agent])
