from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

SearchMode = Literal["keyword", "vector", "hybrid"]

class SearchResult(BaseModel):
    chunk_id: int
    content: str
    start_offset: float | None = None
    end_offset: float | None = None
    similarity: float
    item_id: int
    item_title: str
    source_name: str | None = None
    external_id: str | None = None
    thumbnail: str | None = None
    published_at: datetime | None = None   # used for temporal decay

class HybridSearchResponse(BaseModel):
    results: list[SearchResult]
    degraded: bool = False

class BestChunk(BaseModel):
    content: str
    start_offset: float | None = None
    similarity: float

class AggregatedResult(BaseModel):
    item_id: int
    external_id: str | None = None
    title: str
    source_name: str | None = None
    thumbnail: str | None = None
    published_at: datetime | None = None
    score: float
    matched_chunk_count: int
    best_chunk: BestChunk

class RelatedItem(BaseModel):
    id: int
    title: str
    source_name: str | None = None
    external_id: str | None = None

class RelatedChunk(BaseModel):
    chunk_id: int
    content: str
    start_offset: float | None = None
    end_offset: float | None = None
    similarity: float
    item: RelatedItem

class RelationshipStats(BaseModel):
    created: int = 0
    skipped: int = 0
    cancelled: bool = False

class BackfillSummary(BaseModel):
    items_processed: int = 0
    relationships_created: int = 0
    relationships_skipped: int = 0
    cancelled: bool = False

# request / response bodies for the HTTP surface

class SearchResponse(BaseModel):
    chunks: list[SearchResult]
    videos: list[AggregatedResult]
    query: str
    mode: SearchMode
    degraded: bool
    timing_ms: float

class VectorSearchRequest(BaseModel):
    embedding: list[float]
    limit: int = Field(10, ge=1)
    threshold: float | None = None

class ComputeRelationshipsRequest(BaseModel):
    threshold: float | None = None

class CancelJobResult(BaseModel):
    job_id: str
    cancelled: bool
