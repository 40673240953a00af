from vkb_engine.graph.backfill import backfill_relationships
from vkb_engine.graph.compute_relationships import compute_relationships
from vkb_engine.graph.registry import RelationshipJobRegistry
from vkb_engine.graph.traverse import get_related_chunks

__all__ = [
    "backfill_relationships",
    "compute_relationships",
    "RelationshipJobRegistry",
    "get_related_chunks",
]
