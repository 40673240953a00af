from vkb_core.schemas import AggregatedResult, BestChunk, SearchResult


def aggregate_by_video(results: list[SearchResult]) -> list[AggregatedResult]:
    """
    Group chunk-level results by their owning item.

    For each item:
    - score is the highest chunk similarity
    - matched_chunk_count is the number of chunks that matched
    - best_chunk is the highest scoring chunk (first seen wins ties)

    Items are sorted by score, highest first. Items with equal scores keep
    input order; nothing stronger is guaranteed.
    """
    by_item: dict[int, AggregatedResult] = {}

    for chunk in results:
        existing = by_item.get(chunk.item_id)
        if existing is None:
            by_item[chunk.item_id] = AggregatedResult(
                item_id=chunk.item_id,
                external_id=chunk.external_id,
                title=chunk.item_title,
                source_name=chunk.source_name,
                thumbnail=chunk.thumbnail,
                published_at=chunk.published_at,
                score=chunk.similarity,
                matched_chunk_count=1,
                best_chunk=BestChunk(
                    content=chunk.content,
                    start_offset=chunk.start_offset,
                    similarity=chunk.similarity,
                ),
            )
            continue

        existing.matched_chunk_count += 1
        if chunk.similarity > existing.best_chunk.similarity:
            existing.best_chunk = BestChunk(
                content=chunk.content,
                start_offset=chunk.start_offset,
                similarity=chunk.similarity,
            )
            existing.score = chunk.similarity

    return sorted(by_item.values(), key=lambda r: r.score, reverse=True)
