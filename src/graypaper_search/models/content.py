"""Content tables searched by the query engine.

Rows are written by the ingestion and embedding jobs; the search path only
reads them. Every searchable table carries a nullable ``embedding`` that the
batch embedding job fills in after the row is created.
"""

import json
from datetime import datetime
from typing import Any, List, Optional

from pgvector.sqlalchemy import Vector
from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.types import TypeDecorator
from sqlalchemy.orm import Mapped, mapped_column

from graypaper_search.models.base import Base

EMBEDDING_DIMENSIONS = 1536


class EmbeddingVector(TypeDecorator):
    """Fixed-length float vector.

    Postgres stores it in a pgvector ``vector(n)`` column. SQLite stores the JSON
    text form, which sqlite-vec functions accept directly.
    """

    impl = Text
    cache_ok = True

    def __init__(self, dimensions: int = EMBEDDING_DIMENSIONS):
        super().__init__()
        self.dimensions = dimensions

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(Vector(self.dimensions))
        return dialect.type_descriptor(Text())

    def process_bind_param(self, value: Optional[List[float]], dialect) -> Any:
        if value is None or dialect.name == "postgresql":
            return value
        return json.dumps([float(v) for v in value])

    def process_result_value(self, value: Any, dialect) -> Optional[List[float]]:
        if value is None:
            return None
        if isinstance(value, str):
            return [float(v) for v in json.loads(value)]
        return [float(v) for v in value]


class Message(Base):
    """A chat message archived from a Matrix room."""

    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    message_id: Mapped[Optional[str]] = mapped_column("messageid", Text, unique=True)
    room_id: Mapped[Optional[str]] = mapped_column("roomid", Text)
    sender: Mapped[Optional[str]] = mapped_column(Text)
    content: Mapped[Optional[str]] = mapped_column(Text)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    embedding: Mapped[Optional[List[float]]] = mapped_column(EmbeddingVector(), nullable=True)

    __table_args__ = (
        Index("messages_roomid_idx", "roomid"),
        Index("messages_roomid_timestamp_idx", "roomid", "timestamp"),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"Message(id={self.id}, sender={self.sender!r}, timestamp={self.timestamp})"


class Graypaper(Base):
    """A published Graypaper version and its release timestamp."""

    __tablename__ = "graypapers"

    version: Mapped[str] = mapped_column(Text, primary_key=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return f"Graypaper(version={self.version!r}, timestamp={self.timestamp})"


class GraypaperSection(Base):
    """A section of the Graypaper PDF, split on its outline."""

    __tablename__ = "graypaper_sections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    embedding: Mapped[Optional[List[float]]] = mapped_column(EmbeddingVector(), nullable=True)


class Page(Base):
    """A crawled documentation page or GitHub issue/PR thread."""

    __tablename__ = "pages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    url: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    site: Mapped[Optional[str]] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    last_modified: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    embedding: Mapped[Optional[List[float]]] = mapped_column(EmbeddingVector(), nullable=True)

    __table_args__ = (Index("pages_site_idx", "site"),)


class Discord(Base):
    """A message archived from a Discord channel."""

    __tablename__ = "discords"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    message_id: Mapped[Optional[str]] = mapped_column(Text, unique=True)
    channel_id: Mapped[Optional[str]] = mapped_column(Text)
    server_id: Mapped[Optional[str]] = mapped_column(Text)
    sender: Mapped[Optional[str]] = mapped_column(Text)
    author_id: Mapped[Optional[str]] = mapped_column(Text)
    content: Mapped[Optional[str]] = mapped_column(Text)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    embedding: Mapped[Optional[List[float]]] = mapped_column(EmbeddingVector(), nullable=True)

    __table_args__ = (Index("discords_channel_id_idx", "channel_id"),)
