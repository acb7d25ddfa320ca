"""Meta (analysis) and specialist agents."""

from __future__ import annotations

from .agent import Agent, build_meta_agent, build_specialist, format_input_chunks
from .definitions import AgentDefinition, parse_specialist_definitions

__all__ = [
    "Agent",
    "AgentDefinition",
    "build_meta_agent",
    "build_specialist",
    "format_input_chunks",
    "parse_specialist_definitions",
]
