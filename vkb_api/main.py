import time

from fastapi import FastAPI, Depends, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from vkb_core.config import settings
from vkb_core.db import Base, engine, SessionLocal
import vkb_core.models  # noqa: F401  registers tables
from vkb_core.errors import JobAlreadyRunning, ValidationError
from vkb_core.log import configure_logging
from vkb_core.schemas import (
    BackfillSummary,
    CancelJobResult,
    ComputeRelationshipsRequest,
    RelatedChunk,
    RelationshipStats,
    SearchMode,
    SearchResponse,
    SearchResult,
    VectorSearchRequest,
)
from vkb_engine.embeddings.resolver import EmbeddingResolver, get_default_resolver
from vkb_engine.graph import (
    RelationshipJobRegistry,
    backfill_relationships,
    compute_relationships,
    get_related_chunks,
)
from vkb_engine.search import aggregate_by_video, hybrid_search, vector_search
from vkb_engine.sql_store import SqlChunkStore
from vkb_engine.store import ChunkStore

app = FastAPI(title="VKB API")
app.state.jobs = RelationshipJobRegistry()

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

def get_db():
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

def get_store(db: Session = Depends(get_db)) -> ChunkStore:
    return SqlChunkStore(db)

def get_resolver() -> EmbeddingResolver:
    return get_default_resolver()

def get_jobs(request: Request) -> RelationshipJobRegistry:
    return request.app.state.jobs

@app.exception_handler(ValidationError)
def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})

@app.on_event("startup")
def startup():
    configure_logging()
    Base.metadata.create_all(bind=engine)

@app.get("/search", response_model=SearchResponse)
def search(
    q: str = Query(...),
    limit: int = Query(10, ge=1, le=100),
    mode: SearchMode = "hybrid",
    temporal_decay: bool = False,
    half_life_days: float = Query(settings.HALF_LIFE_DAYS, gt=0),
    store: ChunkStore = Depends(get_store),
    resolver: EmbeddingResolver = Depends(get_resolver),
):
    """
    Hybrid search returning chunk-level and video-level results.

    Chunks are fetched at limit * 3 so the per-video aggregation has enough
    material; both lists are truncated to `limit`.
    """
    started = time.perf_counter()
    response = hybrid_search(
        store,
        q,
        mode=mode,
        limit=limit * 3,
        temporal_decay=temporal_decay,
        half_life_days=half_life_days,
        resolver=resolver,
    )
    videos = aggregate_by_video(response.results)
    return SearchResponse(
        chunks=response.results[:limit],
        videos=videos[:limit],
        query=q,
        mode=mode,
        degraded=response.degraded,
        timing_ms=round((time.perf_counter() - started) * 1000, 2),
    )

@app.post("/chunk/vector/search", response_model=list[SearchResult])
def chunk_vector_search(payload: VectorSearchRequest, store: ChunkStore = Depends(get_store)):
    return vector_search(store, payload.embedding, payload.limit, payload.threshold)

@app.post("/items/{item_id}/relationships", response_model=RelationshipStats)
def build_item_relationships(
    item_id: int,
    payload: ComputeRelationshipsRequest | None = None,
    job_id: str | None = None,
    store: ChunkStore = Depends(get_store),
    jobs: RelationshipJobRegistry = Depends(get_jobs),
):
    threshold = payload.threshold if payload else None
    try:
        with jobs.track(job_id) as cancel:
            return compute_relationships(store, item_id, threshold=threshold, cancel=cancel)
    except JobAlreadyRunning as e:
        raise HTTPException(status_code=409, detail=str(e))

@app.get("/items/{item_id}/related", response_model=list[RelatedChunk])
def related_chunks(
    item_id: int,
    limit: int = Query(settings.RELATED_LIMIT, ge=1, le=100),
    min_similarity: float | None = None,
    include_within_video: bool = False,
    store: ChunkStore = Depends(get_store),
):
    return get_related_chunks(
        store,
        item_id,
        limit=limit,
        min_similarity=min_similarity,
        include_within_video=include_within_video,
    )

@app.post("/graph/backfill", response_model=BackfillSummary)
def graph_backfill(
    keep_existing: bool = False,
    job_id: str | None = None,
    store: ChunkStore = Depends(get_store),
    jobs: RelationshipJobRegistry = Depends(get_jobs),
):
    """Recompute relationships for every item with embeddings. Long-running."""
    try:
        with jobs.track(job_id) as cancel:
            return backfill_relationships(store, clear=not keep_existing, cancel=cancel)
    except JobAlreadyRunning as e:
        raise HTTPException(status_code=409, detail=str(e))

@app.post("/graph/jobs/{job_id}/cancel", response_model=CancelJobResult)
def cancel_job(job_id: str, jobs: RelationshipJobRegistry = Depends(get_jobs)):
    return CancelJobResult(job_id=job_id, cancelled=jobs.cancel(job_id))

@app.get("/health")
def health():
    return {"ok": True}
