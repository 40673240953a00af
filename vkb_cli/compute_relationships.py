#!/usr/bin/env python3
"""
Build the chunk relationship graph for one item or for every item.

Example:
    python -m vkb_cli.compute_relationships --item-id 12
    python -m vkb_cli.compute_relationships --all --threshold 0.8
    python -m vkb_cli.compute_relationships --all --keep-existing
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys

from vkb_core.config import settings
from vkb_core.db import SessionLocal
from vkb_core.log import configure_logging
from vkb_core.schemas import RelationshipStats
from vkb_engine.graph import RelationshipJobRegistry, backfill_relationships, compute_relationships
from vkb_engine.sql_store import SqlChunkStore

logger = logging.getLogger(__name__)


def print_progress(processed: int, total: int) -> None:
    pct = 100.0 * processed / total if total else 100.0
    print(f"\r  compared {processed}/{total} ({pct:5.1f}%)", end="", file=sys.stderr)
    if processed == total:
        print(file=sys.stderr)


def install_interrupt(jobs: RelationshipJobRegistry, job_id: str) -> None:
    """First Ctrl-C cancels at the next insert batch; the second one is fatal."""
    def handler(signum, frame):
        if jobs.cancel(job_id):
            print("\nCancelling after the current batch (Ctrl-C again to abort)...", file=sys.stderr)
            signal.signal(signal.SIGINT, signal.default_int_handler)
    signal.signal(signal.SIGINT, handler)


def main() -> None:
    parser = argparse.ArgumentParser(description="Compute similarity relationships between chunks.")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--item-id", type=int, help="Compute relationships for a single item.")
    target.add_argument("--all", action="store_true", help="Recompute relationships for every embedded item.")
    parser.add_argument(
        "--threshold",
        type=float,
        default=settings.RELATIONSHIP_THRESHOLD,
        help="Similarity an edge must exceed (default: %(default)s).",
    )
    parser.add_argument(
        "--keep-existing",
        action="store_true",
        help="With --all, keep existing edges instead of clearing them first.",
    )
    parser.add_argument("--log-level", default=settings.LOG_LEVEL)
    args = parser.parse_args()

    configure_logging(args.log_level)
    jobs = RelationshipJobRegistry()
    job_id = "cli-all" if args.all else f"cli-item-{args.item_id}"

    db = SessionLocal()
    try:
        store = SqlChunkStore(db)
        with jobs.track(job_id) as cancel:
            install_interrupt(jobs, job_id)

            if args.item_id is not None:
                stats = compute_relationships(
                    store, args.item_id, threshold=args.threshold,
                    on_progress=print_progress, cancel=cancel,
                )
                db.commit()
                print(f"Item {args.item_id}: {stats.created} created, {stats.skipped} already present"
                      + (" (cancelled)" if stats.cancelled else ""))
                return

            def commit_item(item_id: int, stats: RelationshipStats) -> None:
                # keep finished items even if a later one fails
                db.commit()
                print(f"  item {item_id}: {stats.created} created, {stats.skipped} skipped")

            summary = backfill_relationships(
                store, clear=not args.keep_existing, threshold=args.threshold,
                cancel=cancel, on_item_done=commit_item,
            )
            db.commit()
            print(f"\nCompleted: {summary.items_processed} items processed, "
                  f"{summary.relationships_created} relationships created"
                  + (" (cancelled)" if summary.cancelled else "") + ".")
    except Exception:
        db.rollback()
        logger.exception("Relationship computation failed")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
