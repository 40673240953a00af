"""Tests for reciprocal rank fusion and temporal decay."""

from datetime import timedelta

import pytest

from vkb_core.schemas import SearchResult
from vkb_engine.search import apply_temporal_decay, decay_factor, reciprocal_rank_fusion


def make_result(chunk_id: int, similarity: float = 1.0, published_at=None) -> SearchResult:
    return SearchResult(
        chunk_id=chunk_id,
        content=f"chunk {chunk_id}",
        similarity=similarity,
        item_id=chunk_id,
        item_title=f"item {chunk_id}",
        published_at=published_at,
    )


def test_rrf_single_list_scores():
    fused = reciprocal_rank_fusion([[make_result(1), make_result(2)]], k=60)

    assert [r.chunk_id for r in fused] == [1, 2]
    assert fused[0].similarity == pytest.approx(1 / 61)
    assert fused[1].similarity == pytest.approx(1 / 62)


def test_rrf_rewards_agreement():
    """A chunk in both lists beats an otherwise-equal chunk in only one."""
    vector = [make_result(1), make_result(2)]
    keyword = [make_result(3), make_result(2)]

    fused = reciprocal_rank_fusion([vector, keyword], k=60)

    assert fused[0].chunk_id == 2
    assert fused[0].similarity == pytest.approx(2 / 62)
    assert {r.chunk_id for r in fused[1:]} == {1, 3}


def test_rrf_deduplicates_by_chunk_id():
    fused = reciprocal_rank_fusion([[make_result(1)], [make_result(1)], [make_result(1)]], k=10)

    assert len(fused) == 1
    assert fused[0].similarity == pytest.approx(3 / 11)


def test_rrf_ignores_original_scores():
    """Fusion is rank-based: a huge raw score at rank 2 doesn't help."""
    fused = reciprocal_rank_fusion([[make_result(1, 0.1), make_result(2, 99.0)]])

    assert [r.chunk_id for r in fused] == [1, 2]


def test_rrf_empty_lists():
    assert reciprocal_rank_fusion([[], []]) == []


def test_decay_at_one_half_life(now):
    assert decay_factor(now - timedelta(days=365), now, 365) == pytest.approx(0.5)


def test_decay_at_two_half_lives(now):
    assert decay_factor(now - timedelta(days=60), now, 30) == pytest.approx(0.25)


def test_decay_unknown_date_is_undecayed(now):
    assert decay_factor(None, now, 365) == 1.0


def test_decay_future_date_is_undecayed(now):
    assert decay_factor(now + timedelta(days=3), now, 365) == 1.0


def test_decay_accepts_naive_dates_as_utc(now):
    naive = (now - timedelta(days=365)).replace(tzinfo=None)
    assert decay_factor(naive, now, 365) == pytest.approx(0.5)


def test_apply_decay_resorts(now):
    """A newer, equally scored result moves ahead of an older one."""
    old = make_result(1, 1.0, now - timedelta(days=365))
    new = make_result(2, 1.0, now - timedelta(days=1))

    decayed = apply_temporal_decay([old, new], half_life_days=365, now=now)

    assert [r.chunk_id for r in decayed] == [2, 1]
    assert decayed[1].similarity == pytest.approx(0.5)
