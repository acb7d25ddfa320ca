"""Error taxonomy shared across the workspace, agents and orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class AxonError(RuntimeError):
    """Base class for workspace/orchestrator errors."""

    code = "error.generic"

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause

    def to_report(self, **details) -> "ErrorReport":
        return ErrorReport(code=self.code, message=str(self), details=details or None)


class FatalDefinitionError(AxonError):
    """The analysis step could not be turned into specialist definitions."""

    code = "error.fatal.definition"


class GenerationError(AxonError):
    code = "error.generation"


class EmbeddingError(GenerationError):
    code = "error.generation.embedding"


class BroadcastSynthesisError(GenerationError):
    code = "error.generation.broadcast"


class InvalidInputError(AxonError, ValueError):
    code = "error.invalid_input"


class DuplicateChunkError(AxonError, KeyError):
    code = "error.duplicate_chunk"

    def __str__(self) -> str:
        # KeyError quotes its message otherwise
        return str(self.args[0]) if self.args else ""


class ConfigError(AxonError, ValueError):
    code = "error.config"


class ValidationError(AxonError):
    code = "error.validation"


@dataclass
class ErrorReport:
    """Structured view propagated to telemetry and cycle results."""

    code: str
    message: str
    details: Optional[dict] = None

    @classmethod
    def from_exception(cls, exc: BaseException, **details) -> "ErrorReport":
        if isinstance(exc, AxonError):
            return exc.to_report(**details)
        return cls(code="error.unexpected", message=f"{type(exc).__name__}: {exc}", details=details or None)


__all__ = [
    "AxonError",
    "BroadcastSynthesisError",
    "ConfigError",
    "DuplicateChunkError",
    "EmbeddingError",
    "ErrorReport",
    "FatalDefinitionError",
    "GenerationError",
    "InvalidInputError",
    "ValidationError",
]
