import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from Axon_Cognitive.core.thought_chunk import ThoughtChunk  # noqa: E402


def test_chunk_gets_unique_id_and_timestamp():
    a = ThoughtChunk(content="a", activation_energy=1.0, source_id="user")
    b = ThoughtChunk(content="b", activation_energy=1.0, source_id="user")

    assert a.id != b.id
    assert a.created_at.tzinfo is not None
    assert a.parent_ids == ()
    assert not a.has_embedding


def test_parent_ids_are_deduplicated_in_order():
    chunk = ThoughtChunk(content="x", activation_energy=1.0, source_id="s", parent_ids=["p2", "p1", "p2"])

    assert chunk.parent_ids == ("p2", "p1")


def test_decay_and_boost_only_touch_energy():
    chunk = ThoughtChunk(content="x", activation_energy=10.0, source_id="s", embedding=[1, 0])

    chunk.decay(0.5)
    assert chunk.activation_energy == pytest.approx(5.0)
    chunk.decay(1.0)
    assert chunk.activation_energy == pytest.approx(5.0)
    chunk.boost(2.5)
    assert chunk.activation_energy == pytest.approx(7.5)
    assert chunk.embedding == (1.0, 0.0)


def test_identity_fields_are_immutable():
    chunk = ThoughtChunk(content="x", activation_energy=1.0, source_id="s")

    with pytest.raises(AttributeError):
        chunk.content = "changed"
    with pytest.raises(AttributeError):
        chunk.id = "other"
    chunk.activation_energy = 3.0
    assert chunk.activation_energy == 3.0


def test_to_dict_and_from_dict_keep_identity():
    chunk = ThoughtChunk(
        content="hello",
        activation_energy=2.0,
        source_id="agent-1",
        parent_ids=["p"],
        embedding=[0.5, 0.5],
    )

    data = chunk.to_dict()
    assert data["parent_ids"] == ["p"]
    assert data["embedding"] == [0.5, 0.5]

    restored = ThoughtChunk.from_dict(data)
    assert restored.id == chunk.id
    assert restored.created_at == chunk.created_at
    assert restored.parent_ids == chunk.parent_ids
