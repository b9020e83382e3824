"""Agent contract, built-in agents and registry."""

from .base import Agent, AgentContext
from .code import CodeAgent
from .registry import AgentRegistry, default_registry
from .security import SecurityAgent
from .testing import TestAgent

__all__ = [
    "Agent",
    "AgentContext",
    "AgentRegistry",
    "CodeAgent",
    "SecurityAgent",
    "TestAgent",
    "default_registry",
]
