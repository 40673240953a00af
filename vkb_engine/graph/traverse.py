from vkb_core.config import settings
from vkb_core.errors import ValidationError
from vkb_core.schemas import RelatedChunk
from vkb_engine.store import ChunkStore


def get_related_chunks(
    store: ChunkStore,
    item_id: int,
    *,
    limit: int | None = None,
    min_similarity: float | None = None,
    include_within_video: bool = False,
) -> list[RelatedChunk]:
    """
    Chunks related to any chunk of `item_id` through the persisted graph.

    Same-item targets are left out unless `include_within_video` is set.
    An unknown item, an item without chunks, or one without edges gives [].
    """
    limit = settings.RELATED_LIMIT if limit is None else limit
    if limit < 1:
        raise ValidationError(f"limit must be >= 1, got {limit}")

    chunk_ids = store.find_chunk_ids_by_item(item_id)
    if not chunk_ids:
        return []

    return store.find_edges_from(
        chunk_ids,
        limit=limit,
        min_similarity=min_similarity,
        exclude_item_id=None if include_within_video else item_id,
    )
