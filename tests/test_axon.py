import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from Axon_Cognitive.axon import Axon  # noqa: E402
from Axon_Cognitive.core.errors import ConfigError, FatalDefinitionError, InvalidInputError  # noqa: E402
from Axon_Cognitive.orchestration.orchestrator import SYNTHESIS_SYSTEM_PROMPT  # noqa: E402
from Axon_Cognitive.utils import EmbeddingService  # noqa: E402


class DummyLLM:
    def __init__(self, meta_reply=None, embedding=(1.0, 0.0)):
        self.meta_reply = meta_reply or json.dumps(
            [{"role": "Navigator", "systemPrompt": "You explain how animals find their way."}]
        )
        self.embedding = list(embedding)

    def generate_text(self, system_prompt, user_prompt):
        if "meta-cognitive agent" in system_prompt:
            return self.meta_reply
        if system_prompt == SYNTHESIS_SYSTEM_PROMPT:
            return "bees combine the sun compass with landmarks"
        return "polarized light helps on cloudy days"

    def generate_embedding(self, text):
        return list(self.embedding)


def _axon(cycles=2, llm=None, **sections):
    config = {"orchestrator": {"max_cycles": cycles}}
    config.update(sections)
    return Axon(config, llm_service=llm or DummyLLM())


def test_process_emits_lifecycle_events_only():
    axon = _axon()
    events = []
    for name in ("processing_started", "processing_completed", "broadcast", "cycle_completed", "agent_thought"):
        axon.on(name, lambda *args, _name=name: events.append(_name))

    result = axon.process("How do bees navigate?")

    assert events == ["processing_started", "processing_completed"]
    assert result.cycles_executed == 2
    assert axon.get_workspace() is axon.orchestrator.workspace
    assert len(axon.get_workspace()) == len(result.thoughts)


def test_streaming_forwards_orchestrator_hooks():
    axon = _axon(cycles=2)
    cycles, broadcasts, thoughts = [], [], []
    axon.on("cycle_completed", cycles.append)
    axon.on("broadcast", broadcasts.append)
    axon.on("agent_thought", lambda agent_id, text: thoughts.append(text))

    result = axon.process_with_streaming("How do bees navigate?")

    assert cycles == [1, 2]
    assert broadcasts == result.broadcasts
    assert thoughts == ["polarized light helps on cloudy days"] * 2


def test_failure_emits_error_and_reraises():
    axon = _axon(llm=DummyLLM(meta_reply="no idea"))
    errors = []
    axon.on("error", errors.append)

    with pytest.raises(FatalDefinitionError):
        axon.process("How do bees navigate?")

    assert len(errors) == 1
    assert isinstance(errors[0], FatalDefinitionError)
    assert axon.telemetry.of_type("processing_failed")


def test_listener_exceptions_do_not_break_processing():
    axon = _axon(cycles=1)

    def broken(*_):
        raise RuntimeError("listener bug")

    axon.on("processing_started", broken)
    axon.on("processing_completed", broken)

    assert axon.process("How do bees navigate?").cycles_executed == 1


def test_off_removes_listener_and_unknown_event_is_rejected():
    axon = _axon(cycles=1)
    seen = []
    axon.on("processing_started", seen.append)
    axon.off("processing_started", seen.append)

    axon.process("prompt")

    assert seen == []
    with pytest.raises(ValueError):
        axon.on("telepathy", seen.append)


def test_update_config_rebuilds_components():
    axon = _axon(cycles=1)
    llm = axon.get_llm_service()

    axon.update_config({"orchestrator": {"max_cycles": 3}, "workspace": {"decay_rate": 0.5}})

    assert axon.get_llm_service() is llm
    assert axon.orchestrator_config.max_cycles == 3
    assert axon.workspace_config.decay_rate == 0.5
    assert axon.process("prompt").cycles_executed == 3
    with pytest.raises(ConfigError):
        axon.update_config({"nowhere": {}})


def test_invalid_config_is_rejected_at_construction():
    with pytest.raises(ConfigError):
        Axon({"workspace": {"decay_rate": 2.0}}, llm_service=DummyLLM())


def test_enabled_vector_store_persists_embeddings(tmp_path):
    pytest.importorskip("hnswlib")
    store_dir = tmp_path / "vectors"
    axon = _axon(
        cycles=1,
        vector_store={"enabled": True, "path": str(store_dir), "dimensions": 2},
    )

    result = axon.process("How do bees navigate?")

    embedded = [chunk for chunk in result.thoughts if chunk.has_embedding]
    assert embedded
    assert len(axon.get_vector_store()) == len(embedded)
    assert (store_dir / "vector-map.json").exists()


def test_persistence_failure_still_returns_result(tmp_path):
    axon = _axon(
        cycles=1,
        vector_store={"enabled": True, "path": str(tmp_path / "vectors"), "dimensions": 768},
    )
    events, errors = [], []
    axon.on("error", errors.append)
    axon.on("error", lambda *_: events.append("error"))
    axon.on("processing_completed", lambda *_: events.append("processing_completed"))

    result = axon.process("How do bees navigate?")

    assert result.cycles_executed == 1
    assert result.final_broadcast == "bees combine the sun compass with landmarks"
    assert events == ["error", "processing_completed"]
    assert isinstance(errors[0], InvalidInputError)
    failed = axon.telemetry.of_type("persistence_failed")
    assert len(failed) == 1
    assert failed[0]["error"]["code"] == "error.invalid_input"
    assert failed[0]["run_id"] == result.run_id


def test_embedding_service_shares_the_llm_service():
    llm = DummyLLM(embedding=(0.0, 1.0))
    axon = _axon(cycles=1, llm=llm)

    service = axon.get_embedding_service()

    assert isinstance(service, EmbeddingService)
    assert service.get_embedding("waggle dance") == [0.0, 1.0]
    assert len(service) == 1
