"""Top-level facade wiring configuration, LLM service and orchestrator."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional

from Axon_Cognitive.core.config import create_config, validate_config
from Axon_Cognitive.core.errors import ConfigError, ErrorReport
from Axon_Cognitive.core.telemetry import Telemetry
from Axon_Cognitive.core.workspace import Workspace, WorkspaceConfig
from Axon_Cognitive.orchestration.orchestrator import (
    CognitiveResult,
    Orchestrator,
    OrchestratorConfig,
)
from Axon_Cognitive.retrieval.vector_store import VectorStore
from Axon_Cognitive.utils.embedding_service import EmbeddingService
from Axon_Cognitive.utils.llm_service import LlmService, LlmServiceConfig


LOGGER = logging.getLogger(__name__)

EVENTS = (
    "processing_started",
    "processing_completed",
    "cycle_completed",
    "broadcast",
    "agent_thought",
    "error",
)


class Axon:
    """Entry point: ``Axon(config).process("prompt")``.

    Listeners registered with :meth:`on` receive lifecycle events. The
    streaming events (``cycle_completed``, ``broadcast``, ``agent_thought``)
    are only emitted by :meth:`process_with_streaming`.
    """

    def __init__(
        self,
        config: Optional[Mapping[str, Any]] = None,
        *,
        llm_service: Optional[Any] = None,
        telemetry: Optional[Telemetry] = None,
    ) -> None:
        self.config = create_config(config)
        validate_config(self.config)
        self.telemetry = telemetry or Telemetry()
        self._custom_llm = llm_service
        self._listeners: Dict[str, List[Callable[..., Any]]] = {event: [] for event in EVENTS}
        self._lock = threading.Lock()
        self._vector_store: Optional[VectorStore] = None
        self._build()

    def _build(self) -> None:
        self.llm_service = self._custom_llm or LlmService(LlmServiceConfig.from_mapping(self.config))
        self.embedding_service = EmbeddingService(self.llm_service)
        self.workspace_config = WorkspaceConfig.from_mapping(self.config["workspace"])
        self.orchestrator_config = OrchestratorConfig.from_mapping(self.config["orchestrator"])
        self.orchestrator = self._new_orchestrator(streaming=False)

    def _new_orchestrator(self, *, streaming: bool) -> Orchestrator:
        hooks: Dict[str, Any] = {}
        if streaming:
            hooks = {
                "on_cycle_completed": lambda index: self.emit("cycle_completed", index),
                "on_broadcast": lambda text: self.emit("broadcast", text),
                "on_agent_thought": lambda agent_id, thought: self.emit("agent_thought", agent_id, thought),
            }
        return Orchestrator(
            self.llm_service,
            self.orchestrator_config,
            workspace_config=self.workspace_config,
            telemetry=self.telemetry,
            **hooks,
        )

    # ------------------------------------------------------------------
    # Events
    def on(self, event: str, listener: Callable[..., Any]) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown event: {event!r}")
        with self._lock:
            self._listeners[event].append(listener)

    def off(self, event: str, listener: Callable[..., Any]) -> None:
        with self._lock:
            listeners = self._listeners.get(event, [])
            if listener in listeners:
                listeners.remove(listener)

    def emit(self, event: str, *args: Any) -> None:
        with self._lock:
            listeners = list(self._listeners.get(event, ()))
        for listener in listeners:
            try:
                listener(*args)
            except Exception:
                LOGGER.exception("Listener for %s failed", event)

    # ------------------------------------------------------------------
    # Processing
    def process(self, prompt: str, verbose: bool = False, *, max_cycles: Optional[int] = None) -> CognitiveResult:
        return self._process(prompt, verbose=verbose, streaming=False, max_cycles=max_cycles)

    def process_with_streaming(
        self,
        prompt: str,
        verbose: bool = False,
        *,
        max_cycles: Optional[int] = None,
    ) -> CognitiveResult:
        return self._process(prompt, verbose=verbose, streaming=True, max_cycles=max_cycles)

    def _process(self, prompt: str, *, verbose: bool, streaming: bool, max_cycles: Optional[int]) -> CognitiveResult:
        self.orchestrator = self._new_orchestrator(streaming=streaming)
        self.emit("processing_started", prompt)
        if verbose:
            LOGGER.info("Processing prompt: %s", prompt)
        try:
            result = self.orchestrator.run(prompt, max_cycles=max_cycles)
        except Exception as exc:
            LOGGER.error("Error processing prompt: %s", exc)
            self.telemetry.log(
                "processing_failed",
                "axon",
                {"prompt": prompt},
                level="error",
                run_id=self.orchestrator.run_id,
                error=ErrorReport.from_exception(exc),
            )
            self.emit("error", exc)
            raise
        if self.config["vector_store"].get("enabled"):
            try:
                self._persist(result)
            except Exception as exc:
                LOGGER.exception("Could not persist embeddings to the vector store")
                self.telemetry.log(
                    "persistence_failed",
                    "axon",
                    {"path": self.config["vector_store"].get("path")},
                    level="error",
                    run_id=result.run_id,
                    error=ErrorReport.from_exception(exc),
                )
                self.emit("error", exc)
        if verbose:
            LOGGER.info(
                "Processing completed: %d cycles, %d broadcasts, %d thoughts",
                result.cycles_executed,
                len(result.broadcasts),
                len(result.thoughts),
            )
        self.emit("processing_completed", result)
        return result

    def _persist(self, result: CognitiveResult) -> None:
        store = self.get_vector_store()
        added = sum(1 for chunk in result.thoughts if chunk.has_embedding and store.add_chunk(chunk))
        store.save()
        LOGGER.info("Persisted %d embeddings to vector store", added)

    # ------------------------------------------------------------------
    # Accessors
    def get_workspace(self) -> Workspace:
        return self.orchestrator.workspace

    def get_llm_service(self) -> Any:
        return self.llm_service

    def get_embedding_service(self) -> EmbeddingService:
        return self.embedding_service

    def get_vector_store(self) -> VectorStore:
        if self._vector_store is None:
            store = VectorStore.from_config(self.config)
            store.load()
            self._vector_store = store
        return self._vector_store

    def update_config(self, overrides: Mapping[str, Any]) -> None:
        merged = create_config(self.config)
        for section, values in (overrides or {}).items():
            if section not in merged:
                raise ConfigError(f"Unknown configuration section: {section!r}")
            merged[section].update(values or {})
        validate_config(merged)
        self.config = merged
        self._vector_store = None
        self._build()


__all__ = ["Axon", "EVENTS"]
