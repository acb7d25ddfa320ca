"""Thought chunks: the atomic unit of content held by the workspace."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple


USER_SOURCE = "user"
BROADCAST_SOURCE = "broadcast"


def _new_chunk_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(eq=False)
class ThoughtChunk:
    """A piece of text plus its salience score.

    Everything except ``activation_energy`` is fixed once the chunk exists;
    ``embedding`` and ``parent_ids`` are stored as tuples so they cannot be
    mutated in place by callers.
    """

    content: str
    activation_energy: float
    source_id: str
    parent_ids: Tuple[str, ...] = ()
    embedding: Optional[Tuple[float, ...]] = None
    id: str = field(default_factory=_new_chunk_id)
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        # ordered set semantics: keep first occurrence of each parent
        parents = tuple(dict.fromkeys(str(pid) for pid in (self.parent_ids or ())))
        object.__setattr__(self, "parent_ids", parents)
        if self.embedding is not None:
            object.__setattr__(self, "embedding", tuple(float(x) for x in self.embedding))
        self.activation_energy = float(self.activation_energy)

    def __setattr__(self, name: str, value: Any) -> None:
        if name != "activation_energy" and name in self.__dict__:
            raise AttributeError(f"ThoughtChunk.{name} is immutable")
        super().__setattr__(name, value)

    def decay(self, rate: float) -> None:
        """Multiply the activation energy by ``rate`` (1.0 leaves it unchanged)."""
        self.activation_energy *= rate

    def boost(self, amount: float) -> None:
        self.activation_energy += amount

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "embedding": list(self.embedding) if self.embedding is not None else None,
            "activation_energy": self.activation_energy,
            "source_id": self.source_id,
            "parent_ids": list(self.parent_ids),
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ThoughtChunk":
        created = data.get("created_at")
        kwargs: Dict[str, Any] = {}
        if isinstance(created, str) and created:
            kwargs["created_at"] = datetime.fromisoformat(created)
        elif isinstance(created, datetime):
            kwargs["created_at"] = created
        if data.get("id"):
            kwargs["id"] = str(data["id"])
        return cls(
            content=str(data.get("content", "")),
            activation_energy=float(data.get("activation_energy", 0.0)),
            source_id=str(data.get("source_id", "")),
            parent_ids=tuple(data.get("parent_ids") or ()),
            embedding=data.get("embedding"),
            **kwargs,
        )


__all__ = ["BROADCAST_SOURCE", "USER_SOURCE", "ThoughtChunk"]
