from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from vkb_core.schemas import SearchResult

SECONDS_PER_DAY = 86400.0


def reciprocal_rank_fusion(result_lists: Iterable[list[SearchResult]], k: int = 60) -> list[SearchResult]:
    """
    Merge ranked lists with Reciprocal Rank Fusion.

    A result at 1-based rank r in a list contributes 1 / (k + r); a chunk's
    fused score is the sum over the lists it appears in, so agreement between
    lists outranks a single appearance. Results are deduplicated by chunk id
    and their `similarity` is replaced by the fused score.
    """
    scores: dict[int, tuple[SearchResult, float]] = {}
    for results in result_lists:
        for rank, result in enumerate(results, start=1):
            contribution = 1.0 / (k + rank)
            existing = scores.get(result.chunk_id)
            if existing:
                scores[result.chunk_id] = (existing[0], existing[1] + contribution)
            else:
                scores[result.chunk_id] = (result, contribution)

    fused = sorted(scores.values(), key=lambda pair: pair[1], reverse=True)
    return [result.model_copy(update={"similarity": score}) for result, score in fused]


def _as_utc(dt: datetime) -> datetime:
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


def decay_factor(published_at: datetime | None, now: datetime, half_life_days: float) -> float:
    """
    0.5 ** (age_days / half_life_days).

    An unknown publish date is not evidence of age, so it gets 1.0. Dates in
    the future count as age zero.
    """
    if published_at is None:
        return 1.0
    age_days = (_as_utc(now) - _as_utc(published_at)).total_seconds() / SECONDS_PER_DAY
    if age_days <= 0:
        return 1.0
    return 0.5 ** (age_days / half_life_days)


def apply_temporal_decay(
    results: list[SearchResult],
    half_life_days: float,
    now: datetime | None = None,
) -> list[SearchResult]:
    """Scale each similarity by its item's decay factor and re-sort (stable)."""
    now = now or datetime.now(timezone.utc)
    decayed = [
        r.model_copy(update={"similarity": r.similarity * decay_factor(r.published_at, now, half_life_days)})
        for r in results
    ]
    decayed.sort(key=lambda r: r.similarity, reverse=True)
    return decayed
