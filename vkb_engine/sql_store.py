from __future__ import annotations

from typing import Sequence

import numpy as np
from sqlalchemy import Float as SQLFloat, cast, delete, desc, func, select
from sqlalchemy.dialects.postgresql import insert as pg_upsert
from sqlalchemy.orm import Session, aliased

from vkb_core.models import Chunk, ChunkRelationship, Item
from vkb_core.schemas import RelatedChunk, RelatedItem, SearchResult
from vkb_engine.similarity import embedding_to_list
from vkb_engine.store import KEYWORD_MATCH_SCORE, ChunkEdge, ChunkStore, ChunkVector

_LIKE_ESCAPE = "\\"


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so the query is matched literally."""
    return (
        text.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )


def distance_to_cosine(distance: float | None) -> float:
    """pgvector `<=>` is cosine distance (1 - cosine similarity)."""
    if distance is None:
        return 0.0
    try:
        d = float(distance)
    except (TypeError, ValueError):
        return 0.0
    return 1.0 - d


def _search_columns():
    return (
        Chunk.id,
        Chunk.content,
        Chunk.start_offset,
        Chunk.end_offset,
        Item.id,
        Item.title,
        Item.source_name,
        Item.external_id,
        Item.thumbnail,
        Item.published_at,
    )


def _to_search_result(row, similarity: float) -> SearchResult:
    cid, content, start, end, item_id, title, source_name, external_id, thumbnail, published_at = row
    return SearchResult(
        chunk_id=cid,
        content=content,
        start_offset=start,
        end_offset=end,
        similarity=similarity,
        item_id=item_id,
        item_title=title,
        source_name=source_name,
        external_id=external_id,
        thumbnail=thumbnail,
        published_at=published_at,
    )


class SqlChunkStore(ChunkStore):
    """ChunkStore over PostgreSQL + pgvector. Transaction control stays with the caller."""

    def __init__(self, session: Session):
        self.session = session

    def find_chunks_containing(self, text: str, limit: int) -> list[SearchResult]:
        pattern = f"%{escape_like(text)}%"
        stmt = (
            select(*_search_columns())
            .select_from(Chunk)
            .join(Item, Item.id == Chunk.item_id)
            .where(Chunk.content.ilike(pattern, escape=_LIKE_ESCAPE))
            .order_by(Chunk.id)
            .limit(limit)
        )
        return [_to_search_result(row, KEYWORD_MATCH_SCORE) for row in self.session.execute(stmt)]

    def nearest_chunks(self, embedding: Sequence[float], limit: int, threshold: float) -> list[SearchResult]:
        qvec = embedding_to_list(embedding)
        # cosine distance operator: <=> (smaller = more similar)
        dist_raw = Chunk.embedding.op("<=>")(qvec)
        # bare <=> keeps the Vector type; compare the float cast so the bound binds as a float
        distance = cast(dist_raw, SQLFloat)
        dist_expr = distance.label("distance")
        stmt = (
            select(*_search_columns(), dist_expr)
            .select_from(Chunk)
            .join(Item, Item.id == Chunk.item_id)
            .where(Chunk.embedding.is_not(None))
            .where(distance <= 1.0 - threshold)
            .order_by(dist_raw.asc(), Chunk.id)
            .limit(limit)
        )
        out: list[SearchResult] = []
        for row in self.session.execute(stmt):
            *fields, dist = row
            out.append(_to_search_result(fields, distance_to_cosine(dist)))
        return out

    def find_chunk_ids_by_item(self, item_id: int) -> list[int]:
        return list(self.session.scalars(select(Chunk.id).where(Chunk.item_id == item_id).order_by(Chunk.id)))

    def find_chunks_by_item(self, item_id: int) -> list[ChunkVector]:
        stmt = (
            select(Chunk.id, Chunk.item_id, Chunk.embedding)
            .where(Chunk.item_id == item_id, Chunk.embedding.is_not(None))
            .order_by(Chunk.id)
        )
        return [ChunkVector(cid, iid, np.asarray(vec, dtype=np.float32)) for cid, iid, vec in self.session.execute(stmt)]

    def find_embedded_chunks(self) -> list[ChunkVector]:
        stmt = (
            select(Chunk.id, Chunk.item_id, Chunk.embedding)
            .where(Chunk.embedding.is_not(None))
            .order_by(Chunk.id)
        )
        return [ChunkVector(cid, iid, np.asarray(vec, dtype=np.float32)) for cid, iid, vec in self.session.execute(stmt)]

    def find_item_ids_with_embeddings(self) -> list[int]:
        stmt = select(Chunk.item_id).where(Chunk.embedding.is_not(None)).distinct().order_by(Chunk.item_id)
        return list(self.session.scalars(stmt))

    def insert_edges(self, edges: Sequence[ChunkEdge]) -> int:
        if not edges:
            return 0
        stmt = (
            pg_upsert(ChunkRelationship)
            .values([
                {
                    "source_chunk_id": e.source_chunk_id,
                    "target_chunk_id": e.target_chunk_id,
                    "similarity": e.similarity,
                }
                for e in edges
            ])
            .on_conflict_do_nothing(
                index_elements=[ChunkRelationship.source_chunk_id, ChunkRelationship.target_chunk_id]
            )
            .returning(ChunkRelationship.id)
        )
        inserted = self.session.execute(stmt).all()
        self.session.flush()
        return len(inserted)

    def find_edges_from(
        self,
        chunk_ids: Sequence[int],
        *,
        limit: int,
        min_similarity: float | None = None,
        exclude_item_id: int | None = None,
    ) -> list[RelatedChunk]:
        if not chunk_ids:
            return []
        target = aliased(Chunk)
        best = func.max(ChunkRelationship.similarity).label("similarity")
        stmt = (
            select(
                target.id,
                target.content,
                target.start_offset,
                target.end_offset,
                best,
                Item.id,
                Item.title,
                Item.source_name,
                Item.external_id,
            )
            .select_from(ChunkRelationship)
            .join(target, ChunkRelationship.target_chunk_id == target.id)
            .join(Item, target.item_id == Item.id)
            .where(ChunkRelationship.source_chunk_id.in_(list(chunk_ids)))
        )
        if min_similarity is not None:
            stmt = stmt.where(ChunkRelationship.similarity >= min_similarity)
        if exclude_item_id is not None:
            stmt = stmt.where(target.item_id != exclude_item_id)
        stmt = (
            stmt.group_by(target.id, Item.id)
            .order_by(desc(best), target.id)
            .limit(limit)
        )

        return [
            RelatedChunk(
                chunk_id=cid,
                content=content,
                start_offset=start,
                end_offset=end,
                similarity=float(similarity),
                item=RelatedItem(id=item_id, title=title, source_name=source_name, external_id=external_id),
            )
            for cid, content, start, end, similarity, item_id, title, source_name, external_id
            in self.session.execute(stmt)
        ]

    def delete_all_edges(self) -> int:
        result = self.session.execute(delete(ChunkRelationship))
        return result.rowcount or 0
