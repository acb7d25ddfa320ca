"""Agents turning workspace chunks into new text.

There is a single :class:`Agent` record; the analysis (meta) agent and the
specialists only differ in how they are built and in how the user prompt is
phrased for the model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

from Axon_Cognitive.core.errors import GenerationError
from Axon_Cognitive.core.thought_chunk import ThoughtChunk
from .definitions import AgentDefinition, definitions_json_schema


LOGGER = logging.getLogger(__name__)

META_KIND = "meta"
SPECIALIST_KIND = "specialist"
META_ROLE = "MetaAgent"
NO_INPUT_TEXT = "No input chunks available."


class TextGenerator(Protocol):
    def generate_text(self, system_prompt: str, user_prompt: str) -> str: ...


def format_input_chunks(chunks: Sequence[ThoughtChunk]) -> str:
    if not chunks:
        return NO_INPUT_TEXT
    return "\n\n".join(
        f"[Thought from {chunk.source_id} (Energy: {chunk.activation_energy:.2f})]: {chunk.content}"
        for chunk in chunks
    )


def _meta_system_prompt() -> str:
    return f"""You are a meta-cognitive agent responsible for analyzing problems and determining the necessary specialist agents needed to solve them.

Your task is to:
1. Analyze the user's prompt in detail
2. Identify the key aspects of the problem that require different types of expertise
3. Generate a list of specialist agents with appropriate roles and system prompts that can collectively solve the problem

Your response must be a valid JSON array of agent definitions that follows this exact schema:
{definitions_json_schema()}

The response should be ONLY the JSON array, with no additional text, markdown formatting, or code block indicators.

Focus on creating a diverse team of specialists that can approach the problem from different angles."""


def _meta_user_prompt(chunks: Sequence[ThoughtChunk]) -> str:
    user_prompt = chunks[0].content.strip() if chunks else ""
    if not user_prompt:
        raise GenerationError("No user prompt provided to the meta agent")
    return (
        f"User Prompt: {user_prompt}\n\n"
        "Based on this prompt, generate a JSON array of specialist agent definitions "
        "that can collectively solve this problem."
    )


def _specialist_user_prompt(role: str, chunks: Sequence[ThoughtChunk]) -> str:
    return (
        f"As a {role}, analyze the following thoughts from other agents and contribute "
        f"your specialized insight:\n\n{format_input_chunks(chunks)}\n\n"
        "Based on your expertise, generate a thoughtful response that builds on the "
        "existing ideas and contributes new insights."
    )


@dataclass(frozen=True)
class Agent:
    id: str
    role: str
    system_prompt: str
    kind: str
    llm: Any = field(repr=False, compare=False)

    def build_prompt(self, chunks: Sequence[ThoughtChunk]) -> str:
        if self.kind == META_KIND:
            return _meta_user_prompt(chunks)
        return _specialist_user_prompt(self.role, chunks)

    def process(self, chunks: Sequence[ThoughtChunk]) -> str:
        """Generate this agent's contribution; raises ``GenerationError`` on failure."""
        prompt = self.build_prompt(chunks)
        LOGGER.debug("Agent %s (%s) processing %d chunks", self.role, self.id, len(chunks))
        return self.llm.generate_text(self.system_prompt, prompt)


def build_meta_agent(agent_id: str, llm: TextGenerator) -> Agent:
    return Agent(id=agent_id, role=META_ROLE, system_prompt=_meta_system_prompt(), kind=META_KIND, llm=llm)


def build_specialist(agent_id: str, definition: AgentDefinition, llm: TextGenerator) -> Agent:
    return Agent(
        id=agent_id,
        role=definition.role,
        system_prompt=definition.system_prompt,
        kind=SPECIALIST_KIND,
        llm=llm,
    )


__all__ = [
    "Agent",
    "META_KIND",
    "META_ROLE",
    "NO_INPUT_TEXT",
    "SPECIALIST_KIND",
    "TextGenerator",
    "build_meta_agent",
    "build_specialist",
    "format_input_chunks",
]
