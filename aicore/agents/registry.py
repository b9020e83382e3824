"""Ordered agent registry and plugin discovery."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence

from ..logging import get_logger
from ..plugins import load_plugins
from .base import Agent
from .code import CodeAgent
from .security import SecurityAgent
from .testing import TestAgent

_ENTRY_POINT_GROUP = "aicore.agents"

# Registration order breaks ties between equally relevant agents.
_BUILTIN_FACTORIES: dict[str, Callable[[], Agent]] = {
    "security": SecurityAgent,
    "test": TestAgent,
    "code": CodeAgent,
}

logger = get_logger("agents")


class AgentRegistry:
    """Agents keyed by id, iterated in registration order."""

    def __init__(self, agents: Iterable[Agent] = ()) -> None:
        self._agents: Dict[str, Agent] = {}
        for agent in agents:
            self.register(agent)

    def register(self, agent: Agent) -> None:
        if not agent.agent_id:
            raise ValueError(f"Agent {type(agent).__name__} has no agent_id")
        if agent.agent_id in self._agents:
            raise ValueError(f"Agent already registered: {agent.agent_id}")
        self._agents[agent.agent_id] = agent

    def get(self, agent_id: str) -> Optional[Agent]:
        return self._agents.get(agent_id)

    def ids(self) -> List[str]:
        return list(self._agents)

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._agents

    def __iter__(self) -> Iterator[Agent]:
        return iter(list(self._agents.values()))

    def __len__(self) -> int:
        return len(self._agents)


def default_registry(enabled: Sequence[str] | None = None) -> AgentRegistry:
    """Return a registry holding the built-in agents followed by installed plugins."""
    registry = AgentRegistry()
    for agent in load_plugins(
        _ENTRY_POINT_GROUP, _BUILTIN_FACTORIES, Agent, id_attr="agent_id", enabled=enabled
    ):
        if agent.agent_id in registry:
            logger.warning("Skipping agent plugin '%s': id already registered", agent.agent_id)
            continue
        registry.register(agent)
    return registry


__all__ = ["AgentRegistry", "default_registry"]
