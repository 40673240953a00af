"""
VKB Engine - hybrid chunk search and the chunk relationship graph.

Entry points:
- hybrid_search / vector_search / aggregate_by_video
- compute_relationships / get_related_chunks
"""

from vkb_engine.graph import (
    RelationshipJobRegistry,
    backfill_relationships,
    compute_relationships,
    get_related_chunks,
)
from vkb_engine.search import aggregate_by_video, hybrid_search, search_by_query, vector_search
from vkb_engine.similarity import cosine_similarity
from vkb_engine.store import ChunkEdge, ChunkStore, ChunkVector

__all__ = [
    "RelationshipJobRegistry",
    "backfill_relationships",
    "compute_relationships",
    "get_related_chunks",
    "aggregate_by_video",
    "hybrid_search",
    "search_by_query",
    "vector_search",
    "cosine_similarity",
    "ChunkEdge",
    "ChunkStore",
    "ChunkVector",
]
