"""Persistent ANN index over chunk embeddings (hnswlib backend)."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from Axon_Cognitive.core.errors import InvalidInputError
from Axon_Cognitive.core.thought_chunk import ThoughtChunk


LOGGER = logging.getLogger(__name__)

INDEX_FILENAME = "vector-index.bin"
MAP_FILENAME = "vector-map.json"


class VectorStore:
    def __init__(
        self,
        path: str,
        dimensions: int,
        space: str = "cosine",
        config: Optional[Dict[str, Any]] = None,
    ) -> None:
        if int(dimensions) <= 0:
            raise InvalidInputError("dimensions must be a positive integer")
        self.path = path
        self.dimensions = int(dimensions)
        self.space = (space or "cosine").lower()
        self.config = dict(config or {})
        self.ids: List[str] = []
        self._labels: Dict[str, int] = {}
        self.index = None

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "VectorStore":
        section = cfg.get("vector_store", cfg)
        return cls(
            path=section.get("path", "data/vector_store"),
            dimensions=int(section.get("dimensions", 768)),
            space=section.get("space", "cosine"),
        )

    @property
    def index_path(self) -> str:
        return os.path.join(self.path, INDEX_FILENAME)

    @property
    def map_path(self) -> str:
        return os.path.join(self.path, MAP_FILENAME)

    def _new_index(self, max_elements: int):
        import hnswlib

        index = hnswlib.Index(space=self.space, dim=self.dimensions)
        index.init_index(
            max_elements=max(1, int(max_elements)),
            ef_construction=int(self.config.get("ef_construction", 200)),
            M=int(self.config.get("M", 32)),
        )
        index.set_ef(int(self.config.get("ef_search", 128)))
        return index

    def _ensure(self, extra: int = 1) -> None:
        capacity = int(self.config.get("max_elements", 10000))
        if self.index is None:
            self.index = self._new_index(max(capacity, extra))
            return
        needed = self.index.get_current_count() + extra
        if needed > self.index.get_max_elements():
            self.index.resize_index(max(needed, self.index.get_max_elements() * 2))

    def _as_vector(self, values: Sequence[float]) -> np.ndarray:
        vec = np.asarray(values, dtype=np.float32)
        if vec.ndim != 1 or vec.shape[0] != self.dimensions:
            raise InvalidInputError(
                f"Expected a vector of {self.dimensions} dimensions, got shape {tuple(vec.shape)}"
            )
        return vec

    def add_chunk(self, chunk: ThoughtChunk) -> bool:
        """Index *chunk*'s embedding. Chunks without one are skipped."""
        if not chunk.has_embedding:
            LOGGER.debug("Chunk %s has no embedding, skipping", chunk.id)
            return False
        vec = self._as_vector(chunk.embedding)
        if chunk.id in self._labels:
            LOGGER.debug("Chunk %s already indexed", chunk.id)
            return False
        self._ensure()
        label = len(self.ids)
        self.index.add_items(vec.reshape(1, -1), np.array([label]))
        self.ids.append(chunk.id)
        self._labels[chunk.id] = label
        return True

    def find_similar(self, vector: Sequence[float], k: int = 5) -> List[Tuple[str, float]]:
        if self.index is None or not self.ids:
            return []
        vec = self._as_vector(vector)
        k = max(1, min(int(k), len(self.ids)))
        labels, distances = self.index.knn_query(vec.reshape(1, -1), k=k)
        return [(self.ids[int(idx)], float(1.0 - dist)) for idx, dist in zip(labels[0], distances[0])]

    def get_vector(self, chunk_id: str) -> Optional[List[float]]:
        label = self._labels.get(chunk_id)
        if label is None or self.index is None:
            return None
        return [float(x) for x in self.index.get_items([label])[0]]

    def save(self) -> None:
        os.makedirs(self.path, exist_ok=True)
        if self.index is not None:
            self.index.save_index(self.index_path)
        with open(self.map_path, "w", encoding="utf-8") as fh:
            json.dump(
                {"dimensions": self.dimensions, "space": self.space, "ids": self.ids},
                fh,
                ensure_ascii=False,
            )
        LOGGER.info("Vector store saved to %s (%d vectors)", self.path, len(self.ids))

    def load(self) -> bool:
        """Load a previously saved index; ``False`` when nothing is on disk."""
        if not os.path.exists(self.map_path):
            return False
        with open(self.map_path, "r", encoding="utf-8") as fh:
            meta = json.load(fh)
        if int(meta.get("dimensions", self.dimensions)) != self.dimensions:
            raise InvalidInputError(
                f"Stored index has {meta.get('dimensions')} dimensions, expected {self.dimensions}"
            )
        ids = [str(i) for i in meta.get("ids", [])]
        if ids and os.path.exists(self.index_path):
            import hnswlib

            index = hnswlib.Index(space=self.space, dim=self.dimensions)
            index.load_index(
                self.index_path,
                max_elements=max(len(ids), int(self.config.get("max_elements", 10000))),
            )
            index.set_ef(int(self.config.get("ef_search", 128)))
            self.index = index
        else:
            self.index = None
            ids = []
        self.ids = ids
        self._labels = {chunk_id: label for label, chunk_id in enumerate(ids)}
        return True

    def __len__(self) -> int:
        return len(self.ids)


__all__ = ["INDEX_FILENAME", "MAP_FILENAME", "VectorStore"]
