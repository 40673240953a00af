from __future__ import annotations

import logging
from typing import Sequence

from vkb_core.config import settings
from vkb_core.errors import DimensionMismatchError, EmbeddingUnavailable, ValidationError
from vkb_core.schemas import SearchResult
from vkb_engine.embeddings.resolver import EmbeddingResolver, get_default_resolver
from vkb_engine.store import ChunkStore

logger = logging.getLogger(__name__)


def vector_search(
    store: ChunkStore,
    query_embedding: Sequence[float],
    limit: int = 10,
    threshold: float | None = None,
) -> list[SearchResult]:
    """
    Rank embedded chunks by cosine similarity to `query_embedding`.

    Args:
        store: Chunk storage
        query_embedding: Query vector, EMBEDDING_DIM floats
        limit: Maximum number of results
        threshold: Minimum similarity to keep (default VECTOR_SIMILARITY_THRESHOLD)

    Returns:
        Results ordered by similarity, highest first, none below `threshold`.
        Chunks without an embedding never appear.
    """
    if threshold is None:
        threshold = settings.VECTOR_SIMILARITY_THRESHOLD
    if limit < 1:
        raise ValidationError(f"limit must be >= 1, got {limit}")
    if query_embedding is None or len(query_embedding) != settings.EMBEDDING_DIM:
        got = "None" if query_embedding is None else len(query_embedding)
        raise DimensionMismatchError(
            f"Expected query embedding of {settings.EMBEDDING_DIM} floats, got {got}"
        )

    results = store.nearest_chunks(query_embedding, limit, threshold)
    results = [r for r in results if r.similarity >= threshold]
    results.sort(key=lambda r: r.similarity, reverse=True)
    return results[:limit]


def search_by_query(
    store: ChunkStore,
    query: str,
    limit: int = 10,
    threshold: float | None = None,
    resolver: EmbeddingResolver | None = None,
) -> list[SearchResult]:
    """Embed `query` and run vector_search. There is no keyword fallback here."""
    if not (query or "").strip():
        raise ValidationError("Search query must not be empty")
    resolver = resolver or get_default_resolver()
    embedding = resolver.resolve(query)
    if embedding is None:
        raise EmbeddingUnavailable(f"Could not embed query {query[:50]!r}")
    return vector_search(store, embedding, limit, threshold)
