"""
VKB Core - Shared config, database models, and schemas.

This package contains:
- Configuration settings
- Database connection and session management
- Database models (SQLAlchemy + pgvector)
- Pydantic schemas for engine results and the API
- Error types
"""

from vkb_core.config import settings
from vkb_core.errors import ValidationError, DimensionMismatchError, EmbeddingUnavailable
from vkb_core.schemas import (
    SearchResult,
    HybridSearchResponse,
    BestChunk,
    AggregatedResult,
    RelatedItem,
    RelatedChunk,
    RelationshipStats,
    BackfillSummary,
)

__all__ = [
    "settings",
    "ValidationError",
    "DimensionMismatchError",
    "EmbeddingUnavailable",
    "SearchResult",
    "HybridSearchResponse",
    "BestChunk",
    "AggregatedResult",
    "RelatedItem",
    "RelatedChunk",
    "RelationshipStats",
    "BackfillSummary",
]
