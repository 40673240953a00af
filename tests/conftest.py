"""Shared pytest fixtures."""

import os
from datetime import datetime, timezone

import pytest

from vkb_engine.embeddings.resolver import EmbeddingResolver
from tests.utils.memory_store import MemoryChunkStore
from tests.utils.providers import FlakyProvider, StaticProvider
from tests.utils.vectors import at_cosine, unit

NOW = datetime(2026, 10, 1, tzinfo=timezone.utc)


@pytest.fixture
def store() -> MemoryChunkStore:
    return MemoryChunkStore()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def search_corpus(store):
    """
    Two items, four chunks:
    - "Intro to transformers"    unit(0)        keyword + vector hit for "transformers"
    - "Transformers in practice" unit(1)        keyword hit only (orthogonal)
    - "Attention mechanisms"     cos 0.7        vector hit only
    - "Cooking pasta"            no embedding
    """
    ml = store.add_item("ML lectures", external_id="yt-ml", source_name="ML Channel", thumbnail="ml.jpg")
    misc = store.add_item("Misc", external_id="yt-misc", source_name="Misc Channel")
    ids = {
        "intro": store.add_chunk(ml, "Intro to transformers", unit(0), 0.0, 30.0),
        "practice": store.add_chunk(ml, "Transformers in practice", unit(1), 30.0, 60.0),
        "attention": store.add_chunk(misc, "Attention mechanisms", at_cosine(0.7), 0.0, 25.0),
        "pasta": store.add_chunk(misc, "Cooking pasta", None, 25.0, 50.0),
    }
    return ids


@pytest.fixture
def query_resolver() -> EmbeddingResolver:
    """Resolver whose provider always embeds the query as unit(0)."""
    return EmbeddingResolver(StaticProvider(unit(0)), retry_wait=0)


@pytest.fixture
def failing_resolver() -> EmbeddingResolver:
    return EmbeddingResolver(FlakyProvider(failures=2), retry_wait=0)


@pytest.fixture
def db_session():
    """PostgreSQL session for store tests; skipped unless VKB_TEST_DATABASE_URL is set."""
    url = os.environ.get("VKB_TEST_DATABASE_URL")
    if not url:
        pytest.skip("VKB_TEST_DATABASE_URL not set")

    from sqlalchemy import create_engine, text
    from sqlalchemy.orm import sessionmaker

    from vkb_core.db import Base
    import vkb_core.models  # noqa: F401

    engine = create_engine(url)
    with engine.begin() as conn:
        conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()
