from vkb_core.errors import ValidationError
from vkb_core.schemas import SearchResult
from vkb_engine.store import ChunkStore


def keyword_search(store: ChunkStore, query: str, limit: int = 20) -> list[SearchResult]:
    """
    Case-insensitive substring search over chunk content.

    Every match scores 1.0: keyword mode only tells presence, not relevance.
    No matches is an empty list, not an error.
    """
    if not (query or "").strip():
        raise ValidationError("Search query must not be empty")
    if limit < 1:
        raise ValidationError(f"limit must be >= 1, got {limit}")
    # surrounding whitespace is part of the pattern
    return store.find_chunks_containing(query, limit)
