"""Workspace data model: thought chunks, resonance, decay and clustering."""

from __future__ import annotations

from .errors import (
    AxonError,
    BroadcastSynthesisError,
    ConfigError,
    DuplicateChunkError,
    EmbeddingError,
    ErrorReport,
    FatalDefinitionError,
    GenerationError,
    InvalidInputError,
    ValidationError,
)
from .thought_chunk import BROADCAST_SOURCE, USER_SOURCE, ThoughtChunk
from .workspace import CLUSTER_CANDIDATE_LIMIT, Workspace, WorkspaceConfig, cosine_similarity

__all__ = [
    "AxonError",
    "BROADCAST_SOURCE",
    "BroadcastSynthesisError",
    "CLUSTER_CANDIDATE_LIMIT",
    "ConfigError",
    "DuplicateChunkError",
    "EmbeddingError",
    "ErrorReport",
    "FatalDefinitionError",
    "GenerationError",
    "InvalidInputError",
    "ThoughtChunk",
    "USER_SOURCE",
    "ValidationError",
    "Workspace",
    "WorkspaceConfig",
    "cosine_similarity",
]
