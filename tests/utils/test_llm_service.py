import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from Axon_Cognitive.core.config import create_config  # noqa: E402
from Axon_Cognitive.core.errors import EmbeddingError, GenerationError  # noqa: E402
from Axon_Cognitive.utils.llm_client import LLMCallError  # noqa: E402
from Axon_Cognitive.utils.llm_service import LlmService, LlmServiceConfig  # noqa: E402


class DummyClient:
    def __init__(self, reply="answer", vector=None, fail=False, models=("qwen",)):
        self.reply = reply
        self.vector = vector or [0.5, 0.5]
        self.fail = fail
        self.models = list(models)
        self.calls = []

    def chat(self, model, messages):
        self.calls.append({"model": model, "messages": messages})
        if self.fail:
            raise LLMCallError("connection refused")
        return self.reply

    def embed(self, model, text):
        self.calls.append({"model": model, "text": text})
        if self.fail:
            raise LLMCallError("connection refused")
        return list(self.vector)

    def list_models(self):
        if self.fail:
            raise LLMCallError("connection refused")
        return list(self.models)


def test_config_from_mapping_reads_llm_and_context_sections():
    cfg = create_config({"llm": {"model": "mistral", "max_tokens": 512}, "context": {"max_context_tokens": 2048}})

    service_cfg = LlmServiceConfig.from_mapping(cfg)

    assert service_cfg.model == "mistral"
    assert service_cfg.max_tokens == 512
    assert service_cfg.max_context_tokens == 2048
    assert service_cfg.model_config().embedding_model == cfg["llm"]["embedding_model"]


def test_generate_text_sends_system_and_user_messages():
    client = DummyClient(reply="insight")
    service = LlmService(client=client)

    assert service.generate_text("be brief", "what is a bee?") == "insight"

    messages = client.calls[0]["messages"]
    assert messages == [
        {"role": "system", "content": "be brief"},
        {"role": "user", "content": "what is a bee?"},
    ]
    record = service.get_recent_activity(1)[0]
    assert (record.kind, record.status) == ("text", "success")


def test_generate_text_wraps_client_errors():
    service = LlmService(client=DummyClient(fail=True))

    with pytest.raises(GenerationError) as excinfo:
        service.generate_text("sys", "user")

    assert isinstance(excinfo.value.cause, LLMCallError)
    assert service.get_recent_activity()[0].status == "error"


def test_generate_embedding_wraps_client_errors():
    service = LlmService(client=DummyClient(fail=True))

    with pytest.raises(EmbeddingError):
        service.generate_embedding("text")


def test_generate_embedding_returns_vector():
    service = LlmService(client=DummyClient(vector=[1.0, 2.0]))

    assert service.generate_embedding("text") == [1.0, 2.0]


def test_user_prompt_is_trimmed_to_context_window():
    client = DummyClient()
    service = LlmService(LlmServiceConfig(max_context_tokens=30, buffer_tokens=5), client=client)
    long_prompt = " ".join(f"word{i}" for i in range(100))

    service.generate_text("one two three four five", long_prompt)

    sent = client.calls[0]["messages"][1]["content"]
    assert service.token_counter.count_tokens(sent) == 20
    assert long_prompt.startswith(sent)


def test_recent_activity_is_most_recent_first():
    service = LlmService(client=DummyClient())
    service.generate_text("sys", "one")
    service.generate_embedding("two")

    kinds = [record.kind for record in service.get_recent_activity()]

    assert kinds == ["embedding", "text"]


def test_check_connection():
    assert LlmService(client=DummyClient()).check_connection() is True
    assert LlmService(client=DummyClient(models=())).check_connection() is False
    assert LlmService(client=DummyClient(fail=True)).check_connection() is False
