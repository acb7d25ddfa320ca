from Axon_Cognitive.utils.context_manager import ContextManager, TokenCounter
from Axon_Cognitive.utils.embedding_service import EmbeddingService
from Axon_Cognitive.utils.jsonsafe import json_sanitize
from Axon_Cognitive.utils.llm_client import (
    ChatModelConfig,
    LLMCallError,
    OpenAICompatibleClient,
)
from Axon_Cognitive.utils.llm_service import LLMCallRecord, LlmService, LlmServiceConfig
from Axon_Cognitive.utils.logging_setup import configure_logging

__all__ = [
    "ChatModelConfig",
    "ContextManager",
    "EmbeddingService",
    "LLMCallError",
    "LLMCallRecord",
    "LlmService",
    "LlmServiceConfig",
    "OpenAICompatibleClient",
    "TokenCounter",
    "configure_logging",
    "json_sanitize",
]
