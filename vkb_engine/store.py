"""
Repository interface between the engine and chunk/item storage.

Search and graph code only talk to a ChunkStore, never to a query builder.
Implementations must enforce uniqueness of (source_chunk_id, target_chunk_id)
on edges; that constraint is what makes relationship builds idempotent.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from vkb_core.schemas import RelatedChunk, SearchResult

# Keyword matches are presence-only, every hit gets the same maximal score.
KEYWORD_MATCH_SCORE = 1.0


@dataclass(frozen=True)
class ChunkVector:
    """A chunk id with its owning item and embedding, for pairwise comparison."""
    id: int
    item_id: int
    embedding: np.ndarray


@dataclass(frozen=True)
class ChunkEdge:
    source_chunk_id: int
    target_chunk_id: int
    similarity: float

    def reversed(self) -> "ChunkEdge":
        return ChunkEdge(self.target_chunk_id, self.source_chunk_id, self.similarity)


class ChunkStore(ABC):

    @abstractmethod
    def find_chunks_containing(self, text: str, limit: int) -> list[SearchResult]:
        """Case-insensitive substring match on chunk content, similarity = KEYWORD_MATCH_SCORE."""

    @abstractmethod
    def nearest_chunks(self, embedding: Sequence[float], limit: int, threshold: float) -> list[SearchResult]:
        """Embedded chunks with cosine similarity >= threshold, best first, at most `limit`."""

    @abstractmethod
    def find_chunk_ids_by_item(self, item_id: int) -> list[int]:
        ...

    @abstractmethod
    def find_chunks_by_item(self, item_id: int) -> list[ChunkVector]:
        """Chunks of one item that carry an embedding, ordered by id."""

    @abstractmethod
    def find_embedded_chunks(self) -> list[ChunkVector]:
        """Every chunk in the corpus that carries an embedding, ordered by id."""

    @abstractmethod
    def find_item_ids_with_embeddings(self) -> list[int]:
        ...

    @abstractmethod
    def insert_edges(self, edges: Sequence[ChunkEdge]) -> int:
        """
        Insert edges, silently skipping (source, target) pairs that already exist.

        Returns:
            Number of rows actually inserted.
        """

    @abstractmethod
    def find_edges_from(
        self,
        chunk_ids: Sequence[int],
        *,
        limit: int,
        min_similarity: float | None = None,
        exclude_item_id: int | None = None,
    ) -> list[RelatedChunk]:
        """
        Targets of outgoing edges from `chunk_ids`, joined with their item.

        A target reached from several sources is reported once with its
        highest similarity. Ordered by similarity descending.
        """

    @abstractmethod
    def delete_all_edges(self) -> int:
        ...
