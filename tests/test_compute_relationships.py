"""Tests for building the chunk relationship graph."""

import threading

import pytest

from vkb_engine.graph import compute_relationships
from tests.utils.memory_store import MemoryChunkStore
from tests.utils.vectors import at_cosine, unit


def test_three_chunks_one_similar_pair(store):
    """Two identical chunks and one orthogonal: one pair, two directed edges."""
    item = store.add_item("X")
    a = store.add_chunk(item, "a", unit(0))
    b = store.add_chunk(item, "b", unit(0))
    store.add_chunk(item, "c", unit(1))

    stats = compute_relationships(store, item, threshold=0.75)

    assert (stats.created, stats.skipped, stats.cancelled) == (2, 0, False)
    assert set(store.edges) == {(a, b), (b, a)}


def test_edges_are_symmetric_and_never_self(store):
    x = store.add_item("X")
    y = store.add_item("Y")
    for vec in (unit(0), at_cosine(0.9), at_cosine(0.8)):
        store.add_chunk(x, "x", vec)
    store.add_chunk(y, "y", at_cosine(0.95))

    compute_relationships(store, x, threshold=0.75)

    assert store.edges
    for (source, target), sim in store.edges.items():
        assert source != target
        assert store.edges[(target, source)] == sim


def test_second_run_is_idempotent(store):
    item = store.add_item("X")
    store.add_chunk(item, "a", unit(0))
    store.add_chunk(item, "b", unit(0))

    first = compute_relationships(store, item)
    second = compute_relationships(store, item)

    assert first.created == 2
    assert (second.created, second.skipped) == (0, 2)
    assert len(store.edges) == 2


def test_cross_item_discovery(store):
    x = store.add_item("X")
    y = store.add_item("Y")
    x0 = store.add_chunk(x, "x0", unit(0))
    store.add_chunk(x, "x1", unit(1))
    y0 = store.add_chunk(y, "y0", unit(0))

    stats = compute_relationships(store, x)

    assert stats.created == 2
    assert set(store.edges) == {(x0, y0), (y0, x0)}


def test_overlapping_runs_converge(store):
    """Running two items that share pairs never duplicates an edge."""
    x = store.add_item("X")
    y = store.add_item("Y")
    for item in (x, y):
        store.add_chunk(item, "a", unit(0))
        store.add_chunk(item, "b", unit(0))

    from_x = compute_relationships(store, x)
    from_y = compute_relationships(store, y)

    # 4 chunks, all similar: 6 pairs, 12 directed edges
    assert from_x.created == 10
    assert (from_y.created, from_y.skipped) == (2, 8)
    assert len(store.edges) == 12


@pytest.mark.parametrize("embedded", [0, 1])
def test_fewer_than_two_embedded_chunks(store, embedded):
    item = store.add_item("X")
    other = store.add_item("Y")
    for i in range(embedded):
        store.add_chunk(item, f"e{i}", unit(0))
    store.add_chunk(item, "no embedding", None)
    store.add_chunk(other, "y", unit(0))

    stats = compute_relationships(store, item)

    assert (stats.created, stats.skipped) == (0, 0)
    assert store.insert_calls == []


def test_unknown_item(store):
    stats = compute_relationships(store, 999)

    assert (stats.created, stats.skipped) == (0, 0)


def test_threshold_is_strict(store):
    """Orthogonal chunks score exactly 0.0, which does not exceed threshold 0.0."""
    item = store.add_item("X")
    store.add_chunk(item, "a", unit(0))
    store.add_chunk(item, "b", unit(1))

    assert compute_relationships(store, item, threshold=0.0).created == 0


def test_default_threshold(store):
    item = store.add_item("X")
    store.add_chunk(item, "a", unit(0))
    store.add_chunk(item, "b", at_cosine(0.8))
    store.add_chunk(item, "c", at_cosine(0.7))

    # a-b (0.8) and b-c (~0.99) clear 0.75, a-c (0.7) does not
    stats = compute_relationships(store, item)

    assert stats.created == 4


def test_progress_reports_completion(store):
    x = store.add_item("X")
    y = store.add_item("Y")
    for _ in range(3):
        store.add_chunk(x, "x", unit(0))
    for _ in range(4):
        store.add_chunk(y, "y", unit(1))
    calls = []

    compute_relationships(store, x, on_progress=lambda p, t: calls.append((p, t)), progress_every=5)

    # 3 within-item pairs + 3 x 4 cross pairs
    total = 3 + 12
    assert calls[-1] == (total, total)
    assert calls[:-1] == [(5, total), (10, total), (15, total)]
    assert all(p <= t for p, t in calls)


def test_inserts_in_batches(store):
    item = store.add_item("X")
    for _ in range(3):
        store.add_chunk(item, "same", unit(0))

    stats = compute_relationships(store, item, batch_size=4)

    assert stats.created == 6
    assert store.insert_calls == [4, 2]


def test_cancel_before_first_batch(store):
    item = store.add_item("X")
    store.add_chunk(item, "a", unit(0))
    store.add_chunk(item, "b", unit(0))
    cancel = threading.Event()
    cancel.set()

    stats = compute_relationships(store, item, cancel=cancel)

    assert stats.cancelled is True
    assert (stats.created, stats.skipped) == (0, 0)
    assert store.edges == {}


class CancellingStore(MemoryChunkStore):
    """Sets the cancel token after the first insert batch."""

    def __init__(self, cancel: threading.Event):
        super().__init__()
        self.cancel = cancel

    def insert_edges(self, edges):
        inserted = super().insert_edges(edges)
        self.cancel.set()
        return inserted


def test_cancel_at_batch_boundary_then_resume():
    cancel = threading.Event()
    store = CancellingStore(cancel)
    item = store.add_item("X")
    for _ in range(3):
        store.add_chunk(item, "same", unit(0))

    partial = compute_relationships(store, item, batch_size=2, cancel=cancel)
    assert partial.cancelled is True
    assert partial.created == 2
    assert store.insert_calls == [2]

    resumed = compute_relationships(store, item, batch_size=2)
    assert resumed.cancelled is False
    assert (resumed.created, resumed.skipped) == (4, 2)
    assert len(store.edges) == 6
