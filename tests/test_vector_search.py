"""Tests for vector similarity search."""

import pytest

from vkb_core.errors import DimensionMismatchError, EmbeddingUnavailable, ValidationError
from vkb_engine.embeddings.resolver import EmbeddingResolver
from vkb_engine.search import search_by_query, vector_search
from tests.utils.providers import FlakyProvider, StaticProvider
from tests.utils.vectors import at_cosine, unit


def test_vector_search_orders_by_similarity(store, search_corpus):
    results = vector_search(store, unit(0), limit=10, threshold=0.3)

    assert [r.chunk_id for r in results] == [search_corpus["intro"], search_corpus["attention"]]
    assert results[0].similarity == pytest.approx(1.0)
    assert results[1].similarity == pytest.approx(0.7)


def test_vector_search_never_returns_below_threshold(store, search_corpus):
    for threshold in (0.0, 0.3, 0.69, 0.71, 0.99):
        results = vector_search(store, unit(0), limit=10, threshold=threshold)
        assert all(r.similarity >= threshold for r in results)


def test_vector_search_respects_limit(store, search_corpus):
    results = vector_search(store, unit(0), limit=1, threshold=0.0)

    assert len(results) == 1
    assert results[0].chunk_id == search_corpus["intro"]


def test_vector_search_excludes_chunks_without_embedding(store, search_corpus):
    results = vector_search(store, unit(0), limit=10, threshold=-1.0)

    assert search_corpus["pasta"] not in {r.chunk_id for r in results}


def test_vector_search_default_threshold(store, search_corpus):
    """Default threshold 0.3 drops the orthogonal chunk."""
    results = vector_search(store, unit(0))

    assert search_corpus["practice"] not in {r.chunk_id for r in results}


def test_vector_search_empty_corpus(store):
    assert vector_search(store, unit(0)) == []


def test_vector_search_rejects_wrong_dimension(store, search_corpus):
    with pytest.raises(DimensionMismatchError):
        vector_search(store, [1.0, 0.0, 0.0])


def test_vector_search_rejects_bad_limit(store):
    with pytest.raises(ValidationError):
        vector_search(store, unit(0), limit=0)


def test_search_by_query_embeds_then_searches(store, search_corpus):
    provider = StaticProvider(at_cosine(0.7))
    results = search_by_query(store, "attention", resolver=EmbeddingResolver(provider, retry_wait=0))

    assert provider.calls == 1
    assert results[0].chunk_id == search_corpus["attention"]


def test_search_by_query_raises_when_embedding_unavailable(store, search_corpus):
    resolver = EmbeddingResolver(FlakyProvider(failures=2), retry_wait=0)

    with pytest.raises(EmbeddingUnavailable):
        search_by_query(store, "attention", resolver=resolver)


def test_search_by_query_rejects_empty_query(store):
    with pytest.raises(ValidationError):
        search_by_query(store, "  ", resolver=EmbeddingResolver(StaticProvider(unit(0))))
