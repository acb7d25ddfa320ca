"""Specialist definitions produced by the analysis step.

The meta agent answers with a JSON array of ``{role, systemPrompt}`` objects.
Models often wrap that array in Markdown fences or surround it with prose,
so parsing first extracts the outermost JSON value before validating it.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from Axon_Cognitive.core.errors import ValidationError


LOGGER = logging.getLogger(__name__)

MIN_SYSTEM_PROMPT_CHARS = 10

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*\n?|\n?```", re.IGNORECASE)
_JSON_SPAN_PATTERN = re.compile(r"[\[{][\s\S]*[\]}]")

DEFINITIONS_SCHEMA: Dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "role": {
                "type": "string",
                "minLength": 1,
                "description": "A short descriptive name for the agent's area of expertise",
            },
            "systemPrompt": {
                "type": "string",
                "minLength": MIN_SYSTEM_PROMPT_CHARS,
                "description": "A detailed prompt that will guide the specialist agent's thinking and responses",
            },
        },
        "required": ["role", "systemPrompt"],
        "additionalProperties": False,
    },
}


@dataclass(frozen=True)
class AgentDefinition:
    role: str
    system_prompt: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "systemPrompt": self.system_prompt}


def definitions_json_schema() -> str:
    return json.dumps(DEFINITIONS_SCHEMA, indent=2)


def extract_json_from_llm_response(text: str) -> str:
    """Strip Markdown code fences and keep the outermost ``[...]``/``{...}`` span."""
    cleaned = _FENCE_PATTERN.sub("", text or "")
    match = _JSON_SPAN_PATTERN.search(cleaned)
    if match:
        cleaned = match.group(0)
    return cleaned.strip()


def validate_definition(payload: Any, *, index: int = 0) -> AgentDefinition:
    if not isinstance(payload, Mapping):
        raise ValidationError(f"Definition #{index} must be an object")
    role = payload.get("role")
    if not isinstance(role, str) or not role.strip():
        raise ValidationError(f"Definition #{index}: role must be a non empty string")
    prompt = payload.get("systemPrompt", payload.get("system_prompt"))
    if not isinstance(prompt, str) or len(prompt.strip()) < MIN_SYSTEM_PROMPT_CHARS:
        raise ValidationError(
            f"Definition #{index}: systemPrompt must be a string of at least {MIN_SYSTEM_PROMPT_CHARS} characters"
        )
    return AgentDefinition(role=role.strip(), system_prompt=prompt.strip())


def validate_definitions(payload: Any) -> List[AgentDefinition]:
    if not isinstance(payload, list):
        raise ValidationError("Specialist definitions must be a JSON array")
    return [validate_definition(item, index=i) for i, item in enumerate(payload)]


def parse_specialist_definitions(text: str) -> Optional[List[AgentDefinition]]:
    """Parse the analysis output; ``None`` when it is not a valid definitions list.

    An empty array parses to ``[]``.
    """
    try:
        data = json.loads(extract_json_from_llm_response(text))
    except json.JSONDecodeError as exc:
        LOGGER.error("JSON parsing of specialist definitions failed: %s", exc)
        return None
    try:
        return validate_definitions(data)
    except ValidationError as exc:
        LOGGER.error("Schema validation of specialist definitions failed: %s", exc)
        return None


__all__ = [
    "AgentDefinition",
    "DEFINITIONS_SCHEMA",
    "definitions_json_schema",
    "extract_json_from_llm_response",
    "parse_specialist_definitions",
    "validate_definition",
    "validate_definitions",
]
