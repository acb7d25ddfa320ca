"""Cognitive-cycle state machine."""

from __future__ import annotations

from .orchestrator import (
    BROADCAST_FAILURE_TEXT,
    CognitiveResult,
    CycleResult,
    Orchestrator,
    OrchestratorConfig,
    OrchestratorState,
    RunStats,
)

__all__ = [
    "BROADCAST_FAILURE_TEXT",
    "CognitiveResult",
    "CycleResult",
    "Orchestrator",
    "OrchestratorConfig",
    "OrchestratorState",
    "RunStats",
]
