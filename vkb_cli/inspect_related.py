#!/usr/bin/env python3
"""
Show chunks related to an item through the relationship graph.

Example:
    python -m vkb_cli.inspect_related --item-id 12
    python -m vkb_cli.inspect_related --item-id 12 --min-similarity 0.85 --include-within-video
"""

from __future__ import annotations

import argparse
from collections import Counter

from vkb_core.db import SessionLocal
from vkb_core.schemas import RelatedChunk
from vkb_engine.graph import get_related_chunks
from vkb_engine.sql_store import SqlChunkStore


def summarize(related: list[RelatedChunk]) -> None:
    """Print how many related chunks each other item contributes."""
    per_item = Counter((r.item.id, r.item.title) for r in related)
    if per_item:
        print("Related chunks by item:")
        for (item_id, title), count in per_item.most_common():
            print(f"  [{item_id:>5}] {title[:60]:60s} {count}")
    print()


def format_offset(seconds: float | None) -> str:
    if seconds is None:
        return "--:--"
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes:02d}:{secs:02d}"


def main() -> None:
    parser = argparse.ArgumentParser(description="List chunks related to an item's chunks.")
    parser.add_argument("--item-id", type=int, required=True)
    parser.add_argument("--limit", type=int, default=20, help="Max related chunks to display.")
    parser.add_argument("--min-similarity", type=float, help="Only show edges at or above this similarity.")
    parser.add_argument(
        "--include-within-video",
        action="store_true",
        help="Also show related chunks from the same item.",
    )
    args = parser.parse_args()

    db = SessionLocal()
    try:
        related = get_related_chunks(
            SqlChunkStore(db),
            args.item_id,
            limit=args.limit,
            min_similarity=args.min_similarity,
            include_within_video=args.include_within_video,
        )
        if not related:
            print("No related chunks found for this item.")
            return

        summarize(related)

        print(f"Showing {len(related)} related chunks:")
        for r in related:
            text = r.content.replace("\n", " ").strip()
            print(f"- {r.similarity:.3f}  {r.item.title[:40]} @ {format_offset(r.start_offset)}")
            print(f"    {text[:280]}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
