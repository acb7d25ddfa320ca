"""Embedding lookups with a small in-process cache.

The cache key is the first 100 characters of the text, so long texts sharing
a prefix share one vector.
"""
from __future__ import annotations

import logging
import threading
from typing import Dict, List, Sequence

from Axon_Cognitive.core.workspace import cosine_similarity
from .llm_service import LlmService


LOGGER = logging.getLogger(__name__)

_CACHE_KEY_CHARS = 100


class EmbeddingService:
    """Embedding lookups with a small in-memory cache.

    The cache key is the first 100 characters of the text, so texts sharing
    that prefix share an embedding.
    """

    def __init__(self, llm_service: LlmService) -> None:
        self.llm_service = llm_service
        self._cache: Dict[str, List[float]] = {}
        self._lock = threading.Lock()

    def get_embedding(self, text: str) -> List[float]:
        key = text[:_CACHE_KEY_CHARS]
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None:
            return cached
        embedding = self.llm_service.generate_embedding(text)
        with self._lock:
            self._cache[key] = embedding
        return embedding

    @staticmethod
    def calculate_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
        return cosine_similarity(vec_a, vec_b)

    def clear_cache(self) -> None:
        with self._lock:
            size = len(self._cache)
            self._cache.clear()
        LOGGER.debug("Embedding cache cleared (%d entries)", size)

    def __len__(self) -> int:
        return len(self._cache)
