"""Cognitive-cycle orchestrator.

A run walks through ``INITIALIZING -> DEFINING_SPECIALISTS -> CYCLING ->
COMPLETED``. Each cycle fans the most active chunks out to every specialist
on a thread pool, writes their outputs back into the workspace, decays the
whole workspace once every specialist has finished, and synthesizes a
broadcast when a lineage cluster crosses the activation threshold.

Only a failure to obtain specialist definitions aborts a run
(:class:`FatalDefinitionError`). Specialist, embedding and synthesis failures
are logged, recorded on the cycle result and the run carries on.
"""

from __future__ import annotations

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from Axon_Cognitive.agents.agent import Agent, build_meta_agent, build_specialist
from Axon_Cognitive.agents.definitions import parse_specialist_definitions
from Axon_Cognitive.core.errors import (
    AxonError,
    BroadcastSynthesisError,
    ErrorReport,
    FatalDefinitionError,
    GenerationError,
)
from Axon_Cognitive.core.telemetry import Telemetry
from Axon_Cognitive.core.thought_chunk import BROADCAST_SOURCE, USER_SOURCE, ThoughtChunk
from Axon_Cognitive.core.workspace import Workspace, WorkspaceConfig


LOGGER = logging.getLogger(__name__)

INITIAL_CHUNK_ENERGY = 5.0
META_CHUNK_ENERGY = 3.0
BROADCAST_BOOST = 5.0
ACTIVE_CHUNK_LIMIT = 10

BROADCAST_FAILURE_TEXT = "Error during broadcast synthesis"

SYNTHESIS_SYSTEM_PROMPT = (
    "You are a consciousness synthesizer that integrates multiple thoughts into a coherent whole. "
    "Your output should be concise, clear, and represent the most important aspects of the input thoughts."
)

SYNTHESIS_PROMPT_TEMPLATE = """You are the Global Workspace of a cognitive system. You've received these high-activation thoughts:

{cluster_content}

Your task is to synthesize these thoughts into a single, coherent summary that represents the current "conscious" state of the system.
Focus on integrating the most important insights while maintaining clarity and coherence."""


class OrchestratorState(Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    DEFINING_SPECIALISTS = "defining_specialists"
    CYCLING = "cycling"
    COMPLETED = "completed"


@dataclass(frozen=True)
class OrchestratorConfig:
    max_cycles: int = 10
    broadcast_threshold: float = 10.0
    max_workers: Optional[int] = None
    active_chunk_limit: int = ACTIVE_CHUNK_LIMIT

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "OrchestratorConfig":
        data = dict(data or {})
        workers = data.get("max_workers")
        return cls(
            max_cycles=int(data.get("max_cycles", cls.max_cycles)),
            broadcast_threshold=float(data.get("broadcast_threshold", cls.broadcast_threshold)),
            max_workers=int(workers) if workers else None,
            active_chunk_limit=int(data.get("active_chunk_limit", cls.active_chunk_limit)),
        )


@dataclass
class CycleResult:
    index: int
    active_chunk_ids: List[str] = field(default_factory=list)
    new_chunk_ids: List[str] = field(default_factory=list)
    failures: List[ErrorReport] = field(default_factory=list)
    broadcast: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "active_chunk_ids": list(self.active_chunk_ids),
            "new_chunk_ids": list(self.new_chunk_ids),
            "failures": [
                {"code": f.code, "message": f.message, "details": f.details or {}} for f in self.failures
            ],
            "broadcast": self.broadcast,
        }


@dataclass
class RunStats:
    start_time: datetime
    end_time: datetime
    total_agents: int

    @property
    def duration(self) -> float:
        return (self.end_time - self.start_time).total_seconds()


@dataclass
class CognitiveResult:
    final_broadcast: str
    broadcasts: List[str]
    cycles_executed: int
    thoughts: List[ThoughtChunk]
    stats: RunStats
    cycles: List[CycleResult] = field(default_factory=list)
    run_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "final_broadcast": self.final_broadcast,
            "broadcasts": list(self.broadcasts),
            "cycles_executed": self.cycles_executed,
            "thoughts": [chunk.to_dict() for chunk in self.thoughts],
            "stats": {
                "start_time": self.stats.start_time.isoformat(),
                "end_time": self.stats.end_time.isoformat(),
                "total_agents": self.stats.total_agents,
                "duration": self.stats.duration,
            },
            "cycles": [cycle.to_dict() for cycle in self.cycles],
        }


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_agent_id() -> str:
    return str(uuid.uuid4())


class Orchestrator:
    """Drives one run at a time over a freshly built workspace."""

    def __init__(
        self,
        llm_service: Any,
        config: Optional[OrchestratorConfig] = None,
        *,
        workspace_config: Optional[WorkspaceConfig] = None,
        workspace_factory: Optional[Callable[[], Workspace]] = None,
        on_cycle_completed: Optional[Callable[[int], None]] = None,
        on_broadcast: Optional[Callable[[str], None]] = None,
        on_agent_thought: Optional[Callable[[str, str], None]] = None,
        telemetry: Optional[Telemetry] = None,
        id_factory: Callable[[], str] = _new_agent_id,
    ) -> None:
        self.llm_service = llm_service
        self.config = config or OrchestratorConfig()
        self.workspace_config = workspace_config or WorkspaceConfig()
        self._workspace_factory = workspace_factory or (lambda: Workspace(self.workspace_config))
        self.on_cycle_completed = on_cycle_completed
        self.on_broadcast = on_broadcast
        self.on_agent_thought = on_agent_thought
        self.telemetry = telemetry
        self._id_factory = id_factory

        self.meta_agent: Agent = build_meta_agent(self._id_factory(), llm_service)
        self.specialists: Dict[str, Agent] = {}
        self.workspace: Workspace = self._workspace_factory()
        self.state = OrchestratorState.IDLE
        self.cycles_executed = 0
        self.run_id: Optional[str] = None

    # ------------------------------------------------------------------
    # Run
    def run(self, user_prompt: str, *, max_cycles: Optional[int] = None) -> CognitiveResult:
        cycles_target = self.config.max_cycles if max_cycles is None else max(0, int(max_cycles))
        start_time = _now()

        self.state = OrchestratorState.INITIALIZING
        self.run_id = uuid.uuid4().hex
        self.cycles_executed = 0
        self.specialists = {}
        self.workspace = self._workspace_factory()
        LOGGER.info("Starting cognitive process with user prompt: %s", user_prompt)
        self._log("run_started", {"prompt": user_prompt, "max_cycles": cycles_target})

        initial_chunk = ThoughtChunk(
            content=user_prompt,
            activation_energy=INITIAL_CHUNK_ENERGY,
            source_id=USER_SOURCE,
            parent_ids=(),
        )
        self.workspace.add_chunk(initial_chunk)

        self._define_specialists(initial_chunk)

        self.state = OrchestratorState.CYCLING
        broadcasts: List[str] = []
        cycles: List[CycleResult] = []
        while self.cycles_executed < cycles_target:
            index = self.cycles_executed + 1
            LOGGER.info("--- Beginning Cognitive Cycle %d ---", index)
            cycle = self._run_cognitive_cycle(index)
            cycles.append(cycle)
            if cycle.broadcast is not None:
                broadcasts.append(cycle.broadcast)
            self.cycles_executed = index
            self._log("cycle_completed", {**cycle.to_dict(), "workspace_energy": self.workspace.total_energy()})
            self._notify(self.on_cycle_completed, index)

        self.state = OrchestratorState.COMPLETED
        LOGGER.info("Completed %d cognitive cycles", self.cycles_executed)
        result = CognitiveResult(
            final_broadcast=broadcasts[-1] if broadcasts else "",
            broadcasts=broadcasts,
            cycles_executed=self.cycles_executed,
            thoughts=self.workspace.get_all_chunks(),
            stats=RunStats(
                start_time=start_time,
                end_time=_now(),
                total_agents=len(self.specialists) + 1,
            ),
            cycles=cycles,
            run_id=self.run_id,
        )
        self._log(
            "run_completed",
            {
                "cycles_executed": result.cycles_executed,
                "broadcasts": len(broadcasts),
                "thoughts": len(result.thoughts),
            },
        )
        return result

    start = run

    # ------------------------------------------------------------------
    # Specialist definition
    def _define_specialists(self, initial_chunk: ThoughtChunk) -> None:
        self.state = OrchestratorState.DEFINING_SPECIALISTS
        LOGGER.info("Meta-agent analyzing problem and defining specialists...")
        try:
            meta_response = self.meta_agent.process([initial_chunk])
        except GenerationError as exc:
            LOGGER.error("Error defining specialists: %s", exc)
            self._log("definition_failed", {"reason": "generation"}, level="error", error=exc.to_report())
            raise FatalDefinitionError("Failed to define specialists", cause=exc) from exc

        self.workspace.add_chunk(
            ThoughtChunk(
                content=meta_response,
                activation_energy=META_CHUNK_ENERGY,
                source_id=self.meta_agent.id,
                parent_ids=(initial_chunk.id,),
            )
        )

        definitions = parse_specialist_definitions(meta_response)
        if definitions is None:
            LOGGER.error("Meta-agent response: %s", meta_response)
            error = FatalDefinitionError("Failed to parse specialist definitions")
            self._log("definition_failed", {"reason": "parse"}, level="error", error=error.to_report())
            raise error

        for definition in definitions:
            agent_id = self._id_factory()
            self.specialists[agent_id] = build_specialist(agent_id, definition, self.llm_service)
            LOGGER.info("Created specialist agent: %s (%s)", definition.role, agent_id)
        LOGGER.info("Defined %d specialist agents", len(definitions))
        self._log(
            "specialists_defined",
            {"roles": [agent.role for agent in self.specialists.values()]},
        )

    # ------------------------------------------------------------------
    # Cycle
    def _run_cognitive_cycle(self, index: int) -> CycleResult:
        active_chunks = self.workspace.get_most_active_chunks(self.config.active_chunk_limit)
        cycle = CycleResult(index=index, active_chunk_ids=[chunk.id for chunk in active_chunks])
        if not active_chunks:
            LOGGER.info("No active chunks in workspace, ending cycle")
            return cycle

        specialists = list(self.specialists.values())
        if specialists:
            self._fan_out(specialists, active_chunks, cycle)

        # every specialist has returned before the workspace decays
        self.workspace.decay_activations()

        cluster = self.workspace.find_high_energy_cluster()
        if cluster:
            LOGGER.info("Found high-energy cluster with %d chunks - initiating broadcast", len(cluster))
            broadcast, failure = self._process_broadcast(cluster)
            if failure is not None:
                cycle.failures.append(failure)
            cycle.broadcast = broadcast
            self._notify(self.on_broadcast, broadcast)
        else:
            LOGGER.info("No high-energy clusters found this cycle")
        return cycle

    def _fan_out(self, specialists: Sequence[Agent], active_chunks: Sequence[ThoughtChunk], cycle: CycleResult) -> None:
        parent_ids = [chunk.id for chunk in active_chunks]
        workers = self.config.max_workers or len(specialists)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="axon-specialist") as pool:
            futures = [
                (agent, pool.submit(self._run_specialist, agent, active_chunks, parent_ids))
                for agent in specialists
            ]
            for agent, future in futures:
                try:
                    chunk = future.result()
                except AxonError as exc:
                    LOGGER.warning("Error processing with agent %s: %s", agent.role, exc)
                    self._record_failure(cycle, exc, agent)
                except Exception as exc:
                    LOGGER.exception("Unexpected error processing with agent %s", agent.role)
                    self._record_failure(cycle, exc, agent)
                else:
                    cycle.new_chunk_ids.append(chunk.id)

    def _run_specialist(
        self,
        agent: Agent,
        active_chunks: Sequence[ThoughtChunk],
        parent_ids: Sequence[str],
    ) -> ThoughtChunk:
        thought = agent.process(active_chunks)
        embedding = self._try_embedding(thought, agent.role)
        chunk = self.workspace.create_chunk(thought, embedding, agent.id, parent_ids)
        LOGGER.info("Agent %s contributed a new thought (energy: %.2f)", agent.role, chunk.activation_energy)
        self._notify(self.on_agent_thought, agent.id, thought)
        return chunk

    def _record_failure(self, cycle: CycleResult, exc: BaseException, agent: Agent) -> None:
        report = ErrorReport.from_exception(exc, agent_id=agent.id, role=agent.role, cycle=cycle.index)
        cycle.failures.append(report)
        self._log("specialist_failed", {"agent_id": agent.id, "role": agent.role}, level="warn", error=report)

    # ------------------------------------------------------------------
    # Broadcast
    def _process_broadcast(self, cluster: Sequence[ThoughtChunk]) -> Tuple[str, Optional[ErrorReport]]:
        cluster_content = "\n\n".join(f"[{chunk.source_id}]: {chunk.content}" for chunk in cluster)
        prompt = SYNTHESIS_PROMPT_TEMPLATE.format(cluster_content=cluster_content)
        try:
            synthesis = self.llm_service.generate_text(SYNTHESIS_SYSTEM_PROMPT, prompt)
            embedding = self._try_embedding(synthesis, BROADCAST_SOURCE)
            broadcast_chunk = self.workspace.create_chunk(
                synthesis,
                embedding,
                BROADCAST_SOURCE,
                [chunk.id for chunk in cluster],
            )
        except AxonError as exc:
            LOGGER.error("Error during broadcast synthesis: %s", exc)
            return BROADCAST_FAILURE_TEXT, self._broadcast_failure(exc, cluster)
        except Exception as exc:
            LOGGER.exception("Unexpected error during broadcast synthesis")
            return BROADCAST_FAILURE_TEXT, self._broadcast_failure(exc, cluster)

        broadcast_chunk.boost(BROADCAST_BOOST)
        LOGGER.info("=== BROADCAST ===\n%s", synthesis)
        self._log(
            "broadcast",
            {"chunk_id": broadcast_chunk.id, "cluster": [chunk.id for chunk in cluster], "text": synthesis},
        )
        return synthesis, None

    def _broadcast_failure(self, exc: BaseException, cluster: Sequence[ThoughtChunk]) -> ErrorReport:
        message = str(exc) if isinstance(exc, AxonError) else f"{type(exc).__name__}: {exc}"
        report = BroadcastSynthesisError(message, cause=exc).to_report(cluster_size=len(cluster))
        self._log("broadcast_failed", {"cluster_size": len(cluster)}, level="error", error=report)
        return report

    # ------------------------------------------------------------------
    # Helpers
    def _try_embedding(self, text: str, label: str) -> Optional[List[float]]:
        try:
            return self.llm_service.generate_embedding(text)
        except GenerationError as exc:
            LOGGER.warning("Could not generate embedding for thought from %s: %s", label, exc)
            return None
        except Exception:
            LOGGER.warning("Unexpected error embedding thought from %s", label, exc_info=True)
            return None

    def _notify(self, hook: Optional[Callable[..., Any]], *args: Any) -> None:
        if hook is None:
            return
        try:
            hook(*args)
        except Exception:
            LOGGER.exception("Lifecycle hook %r failed", getattr(hook, "__name__", hook))

    def _log(self, event_type: str, data: Dict[str, Any], level: str = "info", error: Optional[ErrorReport] = None) -> None:
        if self.telemetry is None:
            return
        self.telemetry.log(event_type, "orchestrator", data, level=level, run_id=self.run_id, error=error)


__all__ = [
    "BROADCAST_BOOST",
    "BROADCAST_FAILURE_TEXT",
    "CognitiveResult",
    "CycleResult",
    "INITIAL_CHUNK_ENERGY",
    "META_CHUNK_ENERGY",
    "Orchestrator",
    "OrchestratorConfig",
    "OrchestratorState",
    "RunStats",
    "SYNTHESIS_PROMPT_TEMPLATE",
    "SYNTHESIS_SYSTEM_PROMPT",
]
