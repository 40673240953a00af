from vkb_engine.search.aggregate import aggregate_by_video
from vkb_engine.search.fusion import apply_temporal_decay, decay_factor, reciprocal_rank_fusion
from vkb_engine.search.hybrid import hybrid_search
from vkb_engine.search.keyword import keyword_search
from vkb_engine.search.vector import search_by_query, vector_search

__all__ = [
    "aggregate_by_video",
    "apply_temporal_decay",
    "decay_factor",
    "reciprocal_rank_fusion",
    "hybrid_search",
    "keyword_search",
    "search_by_query",
    "vector_search",
]
