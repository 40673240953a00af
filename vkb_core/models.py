from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column
from pgvector.sqlalchemy import Vector

from vkb_core.config import settings
from vkb_core.db import Base

class Item(Base):
    __tablename__ = "item"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    external_id: Mapped[str | None] = mapped_column(String(64))   # e.g. youtube video id
    title: Mapped[str] = mapped_column(Text)
    source_name: Mapped[str | None] = mapped_column(Text)         # channel / publisher
    thumbnail: Mapped[str | None] = mapped_column(Text)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    chunks: Mapped[list["Chunk"]] = relationship(back_populates="item")

    __table_args__ = (
        UniqueConstraint("external_id", name="uq_item_external_id"),
    )

class Chunk(Base):
    __tablename__ = "chunk"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    item_id: Mapped[int] = mapped_column(ForeignKey("item.id", ondelete="CASCADE"), index=True)
    content: Mapped[str] = mapped_column(Text)
    start_offset: Mapped[float | None] = mapped_column(Float)   # seconds into the item
    end_offset: Mapped[float | None] = mapped_column(Float)
    embedding = Column(Vector(settings.EMBEDDING_DIM), nullable=True)   # back-filled once

    item: Mapped[Item] = relationship(back_populates="chunks")

    __table_args__ = (
        Index("ix_chunk_embedding", "embedding", postgresql_using="ivfflat",
              postgresql_ops={"embedding": "vector_cosine_ops"}),
    )


class ChunkRelationship(Base):
    """
    Directed similarity edge between two chunks.

    Every similar pair is stored as two rows (A->B and B->A) with the same
    similarity so traversal from either end is a lookup on source_chunk_id.
    """
    __tablename__ = "chunk_relationship"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    source_chunk_id: Mapped[int] = mapped_column(ForeignKey("chunk.id", ondelete="CASCADE"), index=True)
    target_chunk_id: Mapped[int] = mapped_column(ForeignKey("chunk.id", ondelete="CASCADE"), index=True)
    similarity: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    source_chunk: Mapped[Chunk] = relationship("Chunk", foreign_keys=[source_chunk_id])
    target_chunk: Mapped[Chunk] = relationship("Chunk", foreign_keys=[target_chunk_id])

    __table_args__ = (
        UniqueConstraint("source_chunk_id", "target_chunk_id", name="uq_chunk_relationship_pair"),
        CheckConstraint("source_chunk_id <> target_chunk_id", name="ck_chunk_relationship_no_self"),
        Index("ix_chunk_relationship_source_similarity", "source_chunk_id", "similarity"),
    )
