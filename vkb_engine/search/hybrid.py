"""
Hybrid search coordinator.

Runs keyword and/or vector search for a query, fuses them with Reciprocal
Rank Fusion, optionally applies temporal decay, and reports whether it had to
fall back to keyword-only matching because no query embedding was available.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import TimeoutError as FuturesTimeout
from datetime import datetime
from typing import Callable, TypeVar

from vkb_core.config import settings
from vkb_core.errors import ValidationError
from vkb_core.schemas import HybridSearchResponse, SearchMode
from vkb_engine.embeddings.resolver import EmbeddingResolver, get_default_resolver
from vkb_engine.search.fusion import apply_temporal_decay, reciprocal_rank_fusion
from vkb_engine.search.keyword import keyword_search
from vkb_engine.search.vector import vector_search
from vkb_engine.store import ChunkStore

logger = logging.getLogger(__name__)

SEARCH_MODES: tuple[str, ...] = ("keyword", "vector", "hybrid")

T = TypeVar("T")


def validate_query(query: str) -> str:
    """Reject empty or oversized queries. The query itself is matched as given."""
    if not (query or "").strip():
        raise ValidationError("Search query must not be empty")
    if len(query) > settings.MAX_QUERY_LENGTH:
        raise ValidationError(f"Search query must be {settings.MAX_QUERY_LENGTH} characters or fewer")
    return query


def resolve_with_timeout(
    resolver: EmbeddingResolver,
    text: str,
    timeout: float,
    during: Callable[[], T] | None = None,
) -> tuple[list[float] | None, T | None]:
    """
    Resolve an embedding on the resolver's pool, bounded by `timeout` seconds.

    `during` runs on the calling thread while the embedding is computed, so
    storage work never leaves the caller's thread. A timeout counts as a
    resolution failure.
    """
    deadline = time.monotonic() + timeout
    future = resolver.submit(text)
    side_result = during() if during is not None else None
    try:
        embedding = future.result(timeout=max(0.0, deadline - time.monotonic()))
    except FuturesTimeout:
        # drops it if it's still queued behind a hung call
        future.cancel()
        logger.warning("Embedding resolution timed out after %.1fs", timeout)
        embedding = None
    return embedding, side_result


def hybrid_search(
    store: ChunkStore,
    query: str,
    *,
    mode: SearchMode = "hybrid",
    limit: int = 10,
    temporal_decay: bool = False,
    half_life_days: float | None = None,
    resolver: EmbeddingResolver | None = None,
    threshold: float | None = None,
    rrf_k: int | None = None,
    timeout: float | None = None,
    now: datetime | None = None,
) -> HybridSearchResponse:
    """
    Search chunks by keyword, vector similarity, or both.

    Modes:
    - 'keyword': substring matching only; never degraded
    - 'vector': cosine similarity to the query embedding; falls back to
      keyword matching (degraded) when the embedding can't be resolved
    - 'hybrid': both, merged with RRF; falls back like 'vector'

    Hybrid mode fetches limit * 2 candidates from each method before fusion.
    Temporal decay is applied after scoring and before truncation to `limit`.

    Raises:
        ValidationError: empty or oversized query, unknown mode, bad limit or
            half-life.
    """
    text = validate_query(query)
    if mode not in SEARCH_MODES:
        raise ValidationError(f"Unknown search mode {mode!r}, expected one of {', '.join(SEARCH_MODES)}")
    if limit < 1:
        raise ValidationError(f"limit must be >= 1, got {limit}")
    if half_life_days is None:
        half_life_days = settings.HALF_LIFE_DAYS
    if half_life_days <= 0:
        raise ValidationError(f"half_life_days must be > 0, got {half_life_days}")

    rrf_k = settings.RRF_K if rrf_k is None else rrf_k
    timeout = settings.EMBEDDING_TIMEOUT_SECONDS if timeout is None else timeout
    # decay can reorder, so give it more than `limit` candidates to work with
    candidate_limit = limit * 2 if (mode == "hybrid" or temporal_decay) else limit

    degraded = False
    if mode == "keyword":
        results = keyword_search(store, text, candidate_limit)
    else:
        resolver = resolver or get_default_resolver()
        if mode == "hybrid":
            embedding, keyword_results = resolve_with_timeout(
                resolver, text, timeout, during=lambda: keyword_search(store, text, candidate_limit)
            )
        else:
            embedding, keyword_results = resolve_with_timeout(resolver, text, timeout)

        if embedding is None:
            logger.info("Falling back to keyword search for %s query %r", mode, text[:50])
            degraded = True
            results = keyword_results if keyword_results is not None else keyword_search(store, text, candidate_limit)
        else:
            vector_results = vector_search(store, embedding, candidate_limit, threshold)
            if mode == "hybrid":
                results = reciprocal_rank_fusion([vector_results, keyword_results or []], k=rrf_k)
            else:
                results = vector_results

    if temporal_decay:
        results = apply_temporal_decay(results, half_life_days, now)

    return HybridSearchResponse(results=results[:limit], degraded=degraded)
