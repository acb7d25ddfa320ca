import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

pytest.importorskip("hnswlib")

from Axon_Cognitive.core.errors import InvalidInputError  # noqa: E402
from Axon_Cognitive.core.thought_chunk import ThoughtChunk  # noqa: E402
from Axon_Cognitive.retrieval.vector_store import MAP_FILENAME, VectorStore  # noqa: E402


def _chunk(chunk_id, embedding):
    return ThoughtChunk(
        content=chunk_id,
        activation_energy=1.0,
        source_id="s",
        embedding=embedding,
        id=chunk_id,
    )


def test_find_similar_ranks_closest_first(tmp_path):
    store = VectorStore(str(tmp_path), dimensions=3)
    store.add_chunk(_chunk("x", [1.0, 0.0, 0.0]))
    store.add_chunk(_chunk("y", [0.0, 1.0, 0.0]))
    store.add_chunk(_chunk("xy", [0.7, 0.7, 0.0]))

    hits = store.find_similar([1.0, 0.1, 0.0], k=2)

    assert [chunk_id for chunk_id, _ in hits] == ["x", "xy"]
    assert hits[0][1] == pytest.approx(0.995, abs=0.01)


def test_chunks_without_embedding_are_skipped(tmp_path):
    store = VectorStore(str(tmp_path), dimensions=2)

    assert store.add_chunk(_chunk("none", None)) is False
    assert len(store) == 0
    assert store.find_similar([1.0, 0.0]) == []


def test_dimension_mismatch_is_rejected(tmp_path):
    store = VectorStore(str(tmp_path), dimensions=2)

    with pytest.raises(InvalidInputError):
        store.add_chunk(_chunk("bad", [1.0, 0.0, 0.0]))
    store.add_chunk(_chunk("ok", [1.0, 0.0]))
    with pytest.raises(InvalidInputError):
        store.find_similar([1.0])


def test_duplicate_chunk_is_indexed_once(tmp_path):
    store = VectorStore(str(tmp_path), dimensions=2)

    assert store.add_chunk(_chunk("a", [1.0, 0.0])) is True
    assert store.add_chunk(_chunk("a", [1.0, 0.0])) is False
    assert len(store) == 1


def test_save_and_load_restore_ids_and_vectors(tmp_path):
    store = VectorStore(str(tmp_path), dimensions=2)
    store.add_chunk(_chunk("a", [1.0, 0.0]))
    store.add_chunk(_chunk("b", [0.0, 1.0]))
    store.save()

    meta = json.loads((tmp_path / MAP_FILENAME).read_text(encoding="utf-8"))
    assert meta["ids"] == ["a", "b"]

    restored = VectorStore(str(tmp_path), dimensions=2)
    assert restored.load() is True
    assert len(restored) == 2
    assert restored.find_similar([0.0, 1.0], k=1)[0][0] == "b"
    vector = restored.get_vector("a")
    assert vector is not None
    assert restored.get_vector("missing") is None


def test_load_without_files_returns_false(tmp_path):
    assert VectorStore(str(tmp_path / "empty"), dimensions=2).load() is False


def test_load_rejects_other_dimensions(tmp_path):
    store = VectorStore(str(tmp_path), dimensions=2)
    store.add_chunk(_chunk("a", [1.0, 0.0]))
    store.save()

    with pytest.raises(InvalidInputError):
        VectorStore(str(tmp_path), dimensions=3).load()
