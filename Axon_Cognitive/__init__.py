"""Axon: a global-workspace attention engine driven by LLM agents.

Typical use::

    from Axon_Cognitive import Axon

    result = Axon({"orchestrator": {"max_cycles": 5}}).process("How do bees navigate?")
    print(result.final_broadcast)
"""

from __future__ import annotations

from .axon import Axon
from .core.errors import AxonError, FatalDefinitionError, GenerationError, InvalidInputError
from .core.thought_chunk import ThoughtChunk
from .core.workspace import Workspace, WorkspaceConfig
from .orchestration.orchestrator import CognitiveResult, Orchestrator, OrchestratorConfig, OrchestratorState

__version__ = "0.1.0"

__all__ = [
    "Axon",
    "AxonError",
    "CognitiveResult",
    "FatalDefinitionError",
    "GenerationError",
    "InvalidInputError",
    "Orchestrator",
    "OrchestratorConfig",
    "OrchestratorState",
    "ThoughtChunk",
    "Workspace",
    "WorkspaceConfig",
]
