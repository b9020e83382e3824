"""Chat client for OpenAI-compatible local inference endpoints."""

from __future__ import annotations

import ipaddress
import json
import os
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

from ..config import LLMConfig
from ..logging import get_logger

Message = Dict[str, str]

logger = get_logger("llm")


@dataclass
class ChatRequest:
    """A single chat completion call."""

    messages: List[Message]
    model: str
    base_url: str
    api_key: Optional[str]
    temperature: Optional[float]
    max_tokens: Optional[int]
    request_timeout: float


@dataclass
class ChatResponse:
    content: str = ""
    success: bool = True
    error: Optional[str] = None


class ChatClient:
    """Sends chat messages to a local model runtime.

    Failures are reported through :class:`ChatResponse` rather than raised, so
    agents can degrade to their deterministic checks.
    """

    DEFAULT_MODEL = "ai/smollm2:360M-Q4_K_M"
    DEFAULT_BASE_URL = "http://localhost:12434/engines/v1"
    ENV_MODEL_KEYS = ("AICORE_LLM_MODEL", "OPENAI_MODEL")
    ENV_BASE_URL_KEYS = ("AICORE_LLM_BASE_URL", "OPENAI_BASE_URL")
    ENV_API_KEY_KEYS = ("AICORE_LLM_API_KEY", "OPENAI_API_KEY")

    def __init__(
        self,
        model: str | None = None,
        *,
        base_url: str | None = None,
        api_key: str | None = None,
        temperature: Optional[float] = 0.2,
        max_tokens: Optional[int] = None,
        request_timeout: Optional[float] = 60.0,
        transport: Callable[[ChatRequest], str] | None = None,
    ) -> None:
        self.model = model or self._first_env_value(self.ENV_MODEL_KEYS) or self.DEFAULT_MODEL
        self.base_url = self._ensure_local_url(
            base_url or self._first_env_value(self.ENV_BASE_URL_KEYS) or self.DEFAULT_BASE_URL
        )
        self.api_key = api_key or self._first_env_value(self.ENV_API_KEY_KEYS)
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.request_timeout = request_timeout or 60.0
        self._transport = transport or self._http_transport

    @classmethod
    def from_config(cls, config: LLMConfig) -> "ChatClient":
        kwargs: Dict[str, object] = {}
        if config.temperature is not None:
            kwargs["temperature"] = config.temperature
        if config.request_timeout is not None:
            kwargs["request_timeout"] = config.request_timeout
        return cls(
            config.model,
            base_url=config.base_url,
            api_key=config.api_key,
            max_tokens=config.max_tokens,
            **kwargs,  # type: ignore[arg-type]
        )

    def chat(
        self,
        messages: Sequence[Message],
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ChatResponse:
        request = ChatRequest(
            messages=list(messages),
            model=self.model,
            base_url=self.base_url,
            api_key=self.api_key,
            temperature=self.temperature if temperature is None else temperature,
            max_tokens=self.max_tokens if max_tokens is None else max_tokens,
            request_timeout=self.request_timeout,
        )
        try:
            content = self._transport(request)
        except RuntimeError as exc:
            logger.warning("Chat request failed: %s", exc)
            return ChatResponse(success=False, error=str(exc))
        return ChatResponse(content=content)

    def chat_with_system(self, system: str, prompt: str, **kwargs: Optional[float]) -> ChatResponse:
        return self.chat(
            [{"role": "system", "content": system}, {"role": "user", "content": prompt}],
            **kwargs,  # type: ignore[arg-type]
        )

    @staticmethod
    def _http_transport(request: ChatRequest) -> str:
        endpoint = f"{request.base_url}/chat/completions"
        payload: dict[str, object] = {"model": request.model, "messages": request.messages}
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens

        headers = {"Content-Type": "application/json"}
        if request.api_key:
            headers["Authorization"] = f"Bearer {request.api_key}"
        http_request = Request(
            endpoint, data=json.dumps(payload).encode("utf-8"), headers=headers, method="POST"
        )

        try:
            with urlopen(http_request, timeout=request.request_timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:  # pragma: no cover - depends on runtime
            detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
            message = detail.strip() or exc.reason
            raise RuntimeError(f"Chat endpoint failed with status {exc.code}: {message}") from exc
        except (URLError, TimeoutError) as exc:  # pragma: no cover - depends on runtime
            reason = getattr(exc, "reason", exc)
            raise RuntimeError(f"Chat endpoint unreachable: {reason}") from exc

        try:
            response_payload = json.loads(raw.decode("utf-8"))
        except json.JSONDecodeError as exc:
            raise RuntimeError("Chat endpoint returned invalid JSON") from exc

        content = ChatClient._extract_content(response_payload)
        if not content:
            raise RuntimeError("Chat endpoint returned an empty response")
        return content.strip()

    @staticmethod
    def _extract_content(payload: object) -> str:
        if not isinstance(payload, dict):
            return ""
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        first = choices[0]
        if not isinstance(first, dict):
            return ""
        message = first.get("message")
        if isinstance(message, dict) and isinstance(message.get("content"), str):
            return message["content"]
        text = first.get("text")
        return text if isinstance(text, str) else ""

    @staticmethod
    def _first_env_value(keys: Sequence[str]) -> str | None:
        for key in keys:
            value = os.getenv(key)
            if value:
                return value
        return None

    @classmethod
    def _ensure_local_url(cls, url: str) -> str:
        normalized = url.rstrip("/")
        host = urlparse(normalized).hostname
        if host is None or cls._is_local_host(host):
            return normalized
        raise ValueError(f"Remote base_url '{url}' is not permitted. Configure a local model runtime.")

    @staticmethod
    def _is_local_host(host: str) -> bool:
        lowered = host.lower()
        if lowered in {"localhost", "127.0.0.1", "0.0.0.0", "::1", "model-runner.docker.internal"}:
            return True
        if lowered.endswith((".local", ".localdomain")):
            return True
        try:
            return ipaddress.ip_address(lowered).is_loopback
        except ValueError:
            return False


__all__ = ["ChatClient", "ChatRequest", "ChatResponse", "Message"]
