"""HTTP client for OpenAI-compatible servers (LM Studio, vLLM, llama.cpp...)."""

from __future__ import annotations

import http.client
import json
import logging
import socket
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, MutableMapping, Optional, Sequence
from urllib import error as urlerror
from urllib import request as urlrequest


@dataclass(frozen=True)
class ChatModelConfig:
    """Model parameters for one chat/embedding endpoint pair."""

    name: str
    embedding_model: str
    temperature: float = 0.7
    max_tokens: Optional[int] = None
    request_timeout: float = 300.0


class LLMCallError(RuntimeError):
    """Raised when the HTTP call fails or returns malformed data."""


TransportCallable = Callable[[str, bytes, float], tuple[int, bytes]]


class OpenAICompatibleClient:
    """Minimal client for ``/chat/completions`` and ``/embeddings``."""

    def __init__(
        self,
        *,
        base_url: str = "http://localhost:1234/v1",
        api_key: Optional[str] = None,
        transport: Optional[TransportCallable] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        # local servers usually ignore the key but some proxies require the header
        self.api_key = api_key or "dummy-key"
        self._transport = transport or self._http_transport
        self._logger = logger or logging.getLogger(__name__)

    def chat(
        self,
        model: ChatModelConfig,
        messages: Sequence[Mapping[str, str]],
    ) -> str:
        payload: MutableMapping[str, Any] = {
            "model": model.name,
            "messages": [dict(m) for m in messages],
            "temperature": model.temperature,
            "stream": False,
        }
        if model.max_tokens:
            payload["max_tokens"] = int(model.max_tokens)

        data = self._post_json("/chat/completions", payload, timeout=model.request_timeout)
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            raise LLMCallError("Invalid chat payload: missing 'choices'")
        message = choices[0].get("message") if isinstance(choices[0], Mapping) else None
        content = message.get("content") if isinstance(message, Mapping) else None
        if content is None:
            return ""
        if not isinstance(content, str):
            raise LLMCallError("Invalid chat payload: message content is not text")
        return content

    def embed(self, model: ChatModelConfig, text: str) -> List[float]:
        payload = {"model": model.embedding_model, "input": text}
        data = self._post_json("/embeddings", payload, timeout=model.request_timeout)
        items = data.get("data")
        if not isinstance(items, list) or not items or not isinstance(items[0], Mapping):
            raise LLMCallError("Invalid embedding payload: missing 'data'")
        vector = items[0].get("embedding")
        if not isinstance(vector, list) or not vector:
            raise LLMCallError("Invalid embedding payload: empty vector")
        try:
            return [float(v) for v in vector]
        except (TypeError, ValueError) as exc:
            raise LLMCallError("Invalid embedding payload: non numeric component") from exc

    def list_models(self, *, timeout: float = 5.0) -> List[str]:
        status, body = self._send("/models", b"", timeout)
        if status < 200 or status >= 300:
            raise LLMCallError(f"Unexpected HTTP status {status} while listing models")
        try:
            data = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise LLMCallError("Failed to decode models listing") from exc
        return [str(m.get("id")) for m in data.get("data", []) if isinstance(m, Mapping) and m.get("id")]

    # -----------------
    # Internal helpers
    # -----------------
    def _http_transport(self, path: str, data: bytes, timeout: float) -> tuple[int, bytes]:
        url = f"{self.base_url}{path}"
        headers = {"Content-Type": "application/json", "Authorization": f"Bearer {self.api_key}"}
        method = "POST" if data else "GET"
        request = urlrequest.Request(url, data=data or None, headers=headers, method=method)
        try:
            with urlrequest.urlopen(request, timeout=timeout) as response:
                status = response.getcode()
                body = response.read()
                return status, body
        except urlerror.HTTPError as exc:  # pragma: no cover - simple passthrough
            body = exc.read() if hasattr(exc, "read") else b""
            raise LLMCallError(f"HTTP error {exc.code}: {body.decode('utf-8', errors='ignore')}") from exc
        except urlerror.URLError as exc:  # pragma: no cover - network failure
            raise LLMCallError(f"Connection error: {exc.reason}") from exc
        except socket.timeout as exc:  # pragma: no cover - timeout
            raise LLMCallError("Connection timed out") from exc
        except TimeoutError as exc:  # pragma: no cover - timeout
            raise LLMCallError("Connection timed out") from exc
        except (OSError, http.client.HTTPException) as exc:
            raise LLMCallError(f"Connection error: {type(exc).__name__}: {exc}") from exc

    def _send(self, path: str, data: bytes, timeout: float) -> tuple[int, bytes]:
        try:
            return self._transport(path, data, timeout)
        except (OSError, http.client.HTTPException) as exc:
            raise LLMCallError(f"Connection error: {type(exc).__name__}: {exc}") from exc

    def _post_json(self, path: str, payload: Mapping[str, Any], *, timeout: float) -> Mapping[str, Any]:
        encoded = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        status, body = self._send(path, encoded, timeout)
        if status < 200 or status >= 300:
            raise LLMCallError(f"Unexpected HTTP status {status}: {body.decode('utf-8', errors='ignore')}")
        try:
            decoded = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise LLMCallError("Failed to decode server response JSON") from exc
        if not isinstance(decoded, Mapping):
            raise LLMCallError("Server response is not a JSON object")
        return decoded


__all__ = [
    "ChatModelConfig",
    "LLMCallError",
    "OpenAICompatibleClient",
    "TransportCallable",
]
