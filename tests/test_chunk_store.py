"""
Tests for the per-turn transcript chunk store.
"""
from voice_client.chunk_store import ChunkStore, TranscriptChunk


def test_reassemble_orders_by_counter_not_arrival():
    store = ChunkStore()
    store.record_chunk("t1", 2, "c")
    store.record_chunk("t1", 0, "a")
    store.record_chunk("t1", 1, "b")

    chunks = store.reassemble("t1")

    assert [c.counter for c in chunks] == [0, 1, 2]
    assert "".join(c.text for c in chunks) == "abc"


def test_reassemble_uses_numeric_order():
    """Counter 10 sorts after 9, not between 1 and 2."""
    store = ChunkStore()
    for counter in (10, 9, 1):
        store.record_chunk("t1", counter, str(counter))

    assert [c.counter for c in store.reassemble("t1")] == [1, 9, 10]


def test_same_counter_last_write_wins():
    store = ChunkStore()
    store.record_chunk("t1", 0, "helo")
    store.record_chunk("t1", 0, "hello")

    assert store.reassemble("t1") == [TranscriptChunk(counter=0, text="hello")]


def test_reassemble_unknown_turn_is_empty():
    assert ChunkStore().reassemble("missing") == []


def test_clear_turn_is_idempotent_and_scoped():
    store = ChunkStore()
    store.record_chunk("t1", 0, "a")
    store.record_chunk("t2", 0, "b")

    store.clear_turn("t1")
    store.clear_turn("t1")
    store.clear_turn("never-seen")

    assert store.reassemble("t1") == []
    assert store.chunk_count("t1") == 0
    assert len(store) == 1
    assert store.reassemble("t2") == [TranscriptChunk(counter=0, text="b")]


def test_gaps_in_counters_are_kept():
    store = ChunkStore()
    store.record_chunk("t1", 5, "world")
    store.record_chunk("t1", 1, "hello ")

    assert store.chunk_count("t1") == 2
    assert "".join(c.text for c in store.reassemble("t1")) == "hello world"


def test_clear_drops_all_turns():
    store = ChunkStore()
    store.record_chunk("t1", 0, "a")
    store.record_chunk("t2", 0, "b")

    store.clear()

    assert len(store) == 0
    assert store.reassemble("t2") == []
