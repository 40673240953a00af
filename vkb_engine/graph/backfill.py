from __future__ import annotations

import logging
import threading
from typing import Callable

from vkb_core.schemas import BackfillSummary, RelationshipStats
from vkb_engine.graph.compute_relationships import compute_relationships
from vkb_engine.store import ChunkStore

logger = logging.getLogger(__name__)


def backfill_relationships(
    store: ChunkStore,
    *,
    clear: bool = True,
    threshold: float | None = None,
    cancel: threading.Event | None = None,
    on_item_done: Callable[[int, RelationshipStats], None] | None = None,
) -> BackfillSummary:
    """
    Rebuild the relationship graph for every item with embedded chunks.

    With `clear`, all existing edges are deleted first. Items are processed in
    ascending id order; cancellation is honoured between items and at insert
    batch boundaries inside an item.
    """
    if clear:
        removed = store.delete_all_edges()
        logger.info("Cleared %d existing relationships", removed)

    summary = BackfillSummary()
    for item_id in store.find_item_ids_with_embeddings():
        if cancel is not None and cancel.is_set():
            summary.cancelled = True
            break
        stats = compute_relationships(store, item_id, threshold=threshold, cancel=cancel)
        summary.items_processed += 1
        summary.relationships_created += stats.created
        summary.relationships_skipped += stats.skipped
        if on_item_done:
            on_item_done(item_id, stats)
        if stats.cancelled:
            summary.cancelled = True
            break

    logger.info(
        "Backfill processed %d items, %d relationships created%s",
        summary.items_processed,
        summary.relationships_created,
        " (cancelled)" if summary.cancelled else "",
    )
    return summary
