from __future__ import annotations

import logging
import threading
from typing import Callable

import numpy as np

from vkb_core.config import settings
from vkb_core.schemas import RelationshipStats
from vkb_engine.similarity import cosine_similarities
from vkb_engine.store import ChunkEdge, ChunkStore, ChunkVector

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def stage_edges(
    item_chunks: list[ChunkVector],
    corpus: list[ChunkVector],
    threshold: float,
    on_progress: ProgressCallback | None = None,
    progress_every: int = 10,
) -> list[ChunkEdge]:
    """
    Compare every chunk of one item against every other embedded chunk.

    Within-item pairs are compared once; pairs with an outside chunk are
    compared once per item chunk. Each pair scoring strictly above
    `threshold` yields two edges (A->B and B->A) with the same similarity.
    """
    members = {c.id for c in item_chunks}
    # item chunks first, so chunk i's candidates are everything after row i
    ordered = list(item_chunks) + [c for c in corpus if c.id not in members]
    matrix = np.vstack([np.asarray(c.embedding, dtype=np.float64) for c in ordered])

    n = len(item_chunks)
    total = n * len(ordered) - n * (n + 1) // 2
    processed = 0
    staged: list[ChunkEdge] = []

    for i, source in enumerate(item_chunks):
        sims = cosine_similarities(matrix[i], matrix[i + 1:])
        for target, sim in zip(ordered[i + 1:], sims):
            processed += 1
            if sim > threshold and target.id != source.id:
                edge = ChunkEdge(source.id, target.id, float(sim))
                staged.append(edge)
                staged.append(edge.reversed())
            if on_progress and processed % progress_every == 0:
                on_progress(processed, total)

    if on_progress:
        on_progress(total, total)
    return staged


def compute_relationships(
    store: ChunkStore,
    item_id: int,
    *,
    threshold: float | None = None,
    on_progress: ProgressCallback | None = None,
    cancel: threading.Event | None = None,
    batch_size: int | None = None,
    progress_every: int | None = None,
) -> RelationshipStats:
    """
    Materialize similarity edges between an item's chunks and the corpus.

    Safe to re-run or run concurrently: edges whose (source, target) pair
    already exists are counted as skipped, so a second run on an unchanged
    corpus creates nothing. This is O(chunks in item x chunks in corpus);
    run it as a background job.

    Args:
        store: Chunk storage
        item_id: Item whose chunks are the edge sources
        threshold: Similarity an edge must exceed (default RELATIONSHIP_THRESHOLD)
        on_progress: Called as (processed, total) every `progress_every`
            comparisons and once more at completion
        cancel: When set, stops before the next insert batch
        batch_size: Edges per insert (default RELATIONSHIP_INSERT_BATCH_SIZE)

    Returns:
        RelationshipStats with created/skipped counts and whether the run was
        cancelled before all batches were written.
    """
    threshold = settings.RELATIONSHIP_THRESHOLD if threshold is None else threshold
    batch_size = batch_size or settings.RELATIONSHIP_INSERT_BATCH_SIZE
    progress_every = progress_every or settings.PROGRESS_EVERY

    item_chunks = store.find_chunks_by_item(item_id)
    if len(item_chunks) < 2:
        return RelationshipStats()

    corpus = store.find_embedded_chunks()
    staged = stage_edges(item_chunks, corpus, threshold, on_progress, progress_every)
    if not staged:
        return RelationshipStats()

    stats = RelationshipStats()
    for start in range(0, len(staged), batch_size):
        if cancel is not None and cancel.is_set():
            stats.cancelled = True
            logger.info(
                "Relationship build for item %s cancelled after %d/%d edges",
                item_id, start, len(staged),
            )
            break
        batch = staged[start:start + batch_size]
        inserted = store.insert_edges(batch)
        stats.created += inserted
        stats.skipped += len(batch) - inserted

    logger.info(
        "Item %s: %d relationships created, %d already present (threshold %.2f)",
        item_id, stats.created, stats.skipped, threshold,
    )
    return stats
