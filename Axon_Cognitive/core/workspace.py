"""Global workspace holding every thought chunk of a run.

The workspace owns the numeric model of the attention mechanism:

* new chunks receive ``base_activation_energy`` plus a *resonance* bonus
  computed from the cosine similarity with their parents, weighted by the
  parents' current energy;
* every cycle all chunks decay multiplicatively by ``decay_rate``;
* connected groups of highly active chunks (linked through their lineage)
  are detected and, when their total energy crosses
  ``activation_threshold``, handed back to the orchestrator for broadcast.

Insertion goes through a single lock-guarded entry point so specialists can
write concurrently. Reads of parent energies during resonance are *not*
locked: a chunk created while siblings are landing sees whatever state is
visible at that moment.
"""

from __future__ import annotations

import logging
import math
import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np

from .errors import ConfigError, DuplicateChunkError, InvalidInputError
from .thought_chunk import ThoughtChunk


LOGGER = logging.getLogger(__name__)

CLUSTER_CANDIDATE_LIMIT = 30


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors (0.0 when a norm is 0)."""
    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)
    if a.shape != b.shape:
        raise InvalidInputError(
            f"Vectors must have the same dimensions ({a.shape[-1] if a.ndim else 0} != "
            f"{b.shape[-1] if b.ndim else 0})"
        )
    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    similarity = float(np.dot(a, b)) / (norm_a * norm_b)
    # rounding can push parallel vectors slightly past 1
    return max(-1.0, min(1.0, similarity))


@dataclass(frozen=True)
class WorkspaceConfig:
    decay_rate: float = 0.95
    activation_threshold: float = 7.0
    base_activation_energy: float = 1.0
    max_resonance_factor: float = 2.0

    def __post_init__(self) -> None:
        if not (0.0 < self.decay_rate <= 1.0):
            raise ConfigError(f"decay_rate must be in (0, 1], got {self.decay_rate!r}")
        if not self.activation_threshold > 0.0:
            raise ConfigError(f"activation_threshold must be > 0, got {self.activation_threshold!r}")
        if not self.base_activation_energy >= 0.0:
            raise ConfigError(f"base_activation_energy must be >= 0, got {self.base_activation_energy!r}")
        if not self.max_resonance_factor >= 0.0:
            raise ConfigError(f"max_resonance_factor must be >= 0, got {self.max_resonance_factor!r}")

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "WorkspaceConfig":
        data = dict(data or {})
        defaults = cls()
        try:
            return cls(
                decay_rate=float(data.get("decay_rate", defaults.decay_rate)),
                activation_threshold=float(data.get("activation_threshold", defaults.activation_threshold)),
                base_activation_energy=float(data.get("base_activation_energy", defaults.base_activation_energy)),
                max_resonance_factor=float(data.get("max_resonance_factor", defaults.max_resonance_factor)),
            )
        except (TypeError, ValueError) as exc:
            if isinstance(exc, ConfigError):
                raise
            raise ConfigError(f"Invalid workspace configuration: {exc}", cause=exc) from exc


class Workspace:
    """Owner of all chunks and of the resonance/decay/clustering algorithms."""

    def __init__(self, config: Optional[WorkspaceConfig] = None) -> None:
        self.config = config or WorkspaceConfig()
        self._chunks: Dict[str, ThoughtChunk] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._chunks)

    def __contains__(self, chunk_id: object) -> bool:
        return chunk_id in self._chunks

    # ------------------------------------------------------------------
    # Insertion
    def add_chunk(self, chunk: ThoughtChunk) -> None:
        """Insert an already built chunk; a reused id raises ``DuplicateChunkError``."""
        with self._lock:
            if chunk.id in self._chunks:
                raise DuplicateChunkError(f"Chunk id {chunk.id!r} already present in the workspace")
            self._chunks[chunk.id] = chunk

    def create_chunk(
        self,
        content: str,
        embedding: Optional[Sequence[float]],
        source_id: str,
        parent_ids: Iterable[str],
    ) -> ThoughtChunk:
        parents = list(dict.fromkeys(parent_ids or ()))
        energy = self.config.base_activation_energy
        if embedding is not None and parents:
            energy += self.calculate_resonance(embedding, parents)

        chunk = ThoughtChunk(
            content=content,
            activation_energy=energy,
            source_id=source_id,
            parent_ids=tuple(parents),
            embedding=embedding,
        )
        self.add_chunk(chunk)
        LOGGER.debug(
            "Chunk %s created by %s (energy %.3f, %d parents)",
            chunk.id,
            source_id,
            chunk.activation_energy,
            len(parents),
        )
        return chunk

    # ------------------------------------------------------------------
    # Numeric model
    def calculate_resonance(self, embedding: Sequence[float], parent_ids: Iterable[str]) -> float:
        """Energy bonus from similarity with the parents that carry an embedding.

        Parents without an embedding (or unknown ids) are skipped and do not
        count in the average.
        """
        total = 0.0
        contributing = 0
        for parent_id in parent_ids:
            parent = self._chunks.get(parent_id)
            if parent is None or parent.embedding is None:
                continue
            similarity = cosine_similarity(embedding, parent.embedding)
            total += similarity * parent.activation_energy
            contributing += 1
        if contributing == 0:
            return 0.0
        return (total / contributing) * self.config.max_resonance_factor

    def decay_activations(self) -> None:
        for chunk in self.get_all_chunks():
            chunk.decay(self.config.decay_rate)

    # ------------------------------------------------------------------
    # Queries
    def get_chunk(self, chunk_id: str) -> Optional[ThoughtChunk]:
        return self._chunks.get(chunk_id)

    def get_all_chunks(self) -> List[ThoughtChunk]:
        with self._lock:
            return list(self._chunks.values())

    def get_most_active_chunks(self, limit: int = 10) -> List[ThoughtChunk]:
        """Chunks by descending energy; ties keep insertion order."""
        if limit <= 0:
            return []
        ranked = sorted(self.get_all_chunks(), key=lambda c: -c.activation_energy)
        return ranked[:limit]

    def total_energy(self) -> float:
        return math.fsum(chunk.activation_energy for chunk in self.get_all_chunks())

    # ------------------------------------------------------------------
    # Clustering
    def find_high_energy_cluster(self) -> List[ThoughtChunk]:
        """Return the most energetic lineage-connected group among the top
        ``CLUSTER_CANDIDATE_LIMIT`` chunks when it reaches the threshold.
        """
        candidates = self.get_most_active_chunks(CLUSTER_CANDIDATE_LIMIT)
        if not candidates:
            return []

        best: List[ThoughtChunk] = []
        best_energy = -math.inf
        for component in self._connected_components(candidates):
            energy = math.fsum(chunk.activation_energy for chunk in component)
            if energy > best_energy:
                best, best_energy = component, energy

        if best and best_energy >= self.config.activation_threshold:
            LOGGER.debug("High-energy cluster: %d chunks, total %.3f", len(best), best_energy)
            return best
        return []

    @staticmethod
    def _connected_components(candidates: Sequence[ThoughtChunk]) -> List[List[ThoughtChunk]]:
        by_id = {chunk.id: chunk for chunk in candidates}
        adjacency: Dict[str, List[str]] = {chunk.id: [] for chunk in candidates}
        for chunk in candidates:
            for parent_id in chunk.parent_ids:
                if parent_id in by_id and parent_id != chunk.id:
                    adjacency[chunk.id].append(parent_id)
                    adjacency[parent_id].append(chunk.id)

        components: List[List[ThoughtChunk]] = []
        visited: set[str] = set()
        for chunk in candidates:
            if chunk.id in visited:
                continue
            component: List[ThoughtChunk] = []
            queue = deque([chunk.id])
            visited.add(chunk.id)
            while queue:
                current = queue.popleft()
                component.append(by_id[current])
                for neighbour in adjacency[current]:
                    if neighbour not in visited:
                        visited.add(neighbour)
                        queue.append(neighbour)
            components.append(component)
        return components


__all__ = [
    "CLUSTER_CANDIDATE_LIMIT",
    "Workspace",
    "WorkspaceConfig",
    "cosine_similarity",
]
