"""Service layer exposing text and embedding generation to the orchestrator."""
from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from itertools import islice
from typing import Any, List, Mapping, Optional, Sequence

from Axon_Cognitive.core.errors import EmbeddingError, GenerationError
from .context_manager import ContextManager, TokenCounter
from .llm_client import ChatModelConfig, LLMCallError, OpenAICompatibleClient


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class LlmServiceConfig:
    api_key: str = ""
    base_url: str = "http://localhost:1234/v1"
    model: str = "qwen/qwen3-4b-2507"
    embedding_model: str = "text-embedding-nomic-embed-text-v1.5"
    temperature: float = 0.7
    max_tokens: Optional[int] = None
    request_timeout: float = 300.0
    max_context_tokens: Optional[int] = None
    buffer_tokens: int = 2000

    @classmethod
    def from_mapping(cls, cfg: Mapping[str, Any]) -> "LlmServiceConfig":
        """Build from a full configuration (``llm`` and ``context`` sections)."""
        llm = dict(cfg.get("llm") or {})
        ctx = dict(cfg.get("context") or {})
        defaults = cls()
        max_tokens = llm.get("max_tokens")
        max_ctx = ctx.get("max_context_tokens")
        return cls(
            api_key=str(llm.get("api_key") or ""),
            base_url=str(llm.get("base_url") or defaults.base_url),
            model=str(llm.get("model") or defaults.model),
            embedding_model=str(llm.get("embedding_model") or defaults.embedding_model),
            temperature=float(llm.get("temperature", defaults.temperature)),
            max_tokens=int(max_tokens) if max_tokens else None,
            request_timeout=float(llm.get("request_timeout", defaults.request_timeout)),
            max_context_tokens=int(max_ctx) if max_ctx else None,
            buffer_tokens=int(ctx.get("buffer_tokens", defaults.buffer_tokens)),
        )

    def model_config(self) -> ChatModelConfig:
        return ChatModelConfig(
            name=self.model,
            embedding_model=self.embedding_model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            request_timeout=self.request_timeout,
        )


@dataclass(frozen=True)
class LLMCallRecord:
    """Trace the outcome of one generation call for diagnostics."""

    kind: str
    status: str
    timestamp: float
    duration: float
    message: Optional[str] = None


class LlmService:
    """``generate_text`` / ``generate_embedding`` over an OpenAI-compatible server.

    When ``max_context_tokens`` is configured the user prompt is trimmed so
    that system prompt, user prompt and the reserved buffer fit the window.
    """

    def __init__(
        self,
        config: Optional[LlmServiceConfig] = None,
        *,
        client: Optional[OpenAICompatibleClient] = None,
        activity_size: int = 200,
    ) -> None:
        self.config = config or LlmServiceConfig()
        self._client = client or OpenAICompatibleClient(
            base_url=self.config.base_url,
            api_key=self.config.api_key,
        )
        self._model = self.config.model_config()
        self.token_counter = TokenCounter()
        self.context_manager: Optional[ContextManager] = None
        if self.config.max_context_tokens:
            self.context_manager = ContextManager(self.config.max_context_tokens, self.config.buffer_tokens)
        self._activity: deque[LLMCallRecord] = deque(maxlen=activity_size)
        self._activity_lock = threading.Lock()

    def generate_text(self, system_prompt: str, user_prompt: str) -> str:
        managed_prompt = self._fit_user_prompt(system_prompt, user_prompt)
        started = time.time()
        try:
            text = self._client.chat(
                self._model,
                [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": managed_prompt},
                ],
            )
        except LLMCallError as exc:
            self._record("text", "error", started, str(exc))
            LOGGER.error("Text generation failed: %s", exc)
            raise GenerationError(f"Text generation failed: {exc}", cause=exc) from exc
        self._record("text", "success", started)
        return text

    def generate_embedding(self, text: str) -> List[float]:
        started = time.time()
        try:
            vector = self._client.embed(self._model, text)
        except LLMCallError as exc:
            self._record("embedding", "error", started, str(exc))
            LOGGER.error("Embedding generation failed: %s", exc)
            raise EmbeddingError(f"Embedding generation failed: {exc}", cause=exc) from exc
        self._record("embedding", "success", started)
        return vector

    def check_connection(self) -> bool:
        try:
            models = self._client.list_models()
        except LLMCallError as exc:
            LOGGER.warning("LLM server at %s not reachable: %s", self.config.base_url, exc)
            return False
        if not models:
            LOGGER.warning("LLM server at %s reachable but no model loaded", self.config.base_url)
            return False
        LOGGER.info("LLM server connected (models: %s)", ", ".join(models[:5]))
        return True

    def get_recent_activity(self, limit: int = 20) -> Sequence[LLMCallRecord]:
        """Most recent calls first."""
        with self._activity_lock:
            if limit is None or limit <= 0:
                limit = len(self._activity)
            return tuple(islice(self._activity, 0, limit))

    # ------------------------------------------------------------------
    def _fit_user_prompt(self, system_prompt: str, user_prompt: str) -> str:
        if self.context_manager is None:
            return user_prompt
        available = self.context_manager.get_available_tokens(system_prompt)
        user_tokens = self.token_counter.count_tokens(user_prompt)
        if user_tokens <= available:
            return user_prompt
        LOGGER.info(
            "User prompt exceeds available context window (%d > %d tokens). Truncating...",
            user_tokens,
            available,
        )
        return self.token_counter.truncate_text(user_prompt, available)

    def _record(self, kind: str, status: str, started: float, message: Optional[str] = None) -> None:
        record = LLMCallRecord(
            kind=kind,
            status=status,
            timestamp=started,
            duration=time.time() - started,
            message=message.strip() if isinstance(message, str) else message,
        )
        with self._activity_lock:
            self._activity.appendleft(record)


__all__ = [
    "LLMCallRecord",
    "LlmService",
    "LlmServiceConfig",
]
