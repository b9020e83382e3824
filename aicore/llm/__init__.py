"""Local inference client used by agents."""

from .client import ChatClient, ChatRequest, ChatResponse

__all__ = ["ChatClient", "ChatRequest", "ChatResponse"]
