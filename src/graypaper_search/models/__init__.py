"""Models package for graypaper-search."""

from graypaper_search.models.base import Base
from graypaper_search.models.content import (
    EMBEDDING_DIMENSIONS,
    Discord,
    EmbeddingVector,
    Graypaper,
    GraypaperSection,
    Message,
    Page,
)

__all__ = [
    "Base",
    "Discord",
    "EMBEDDING_DIMENSIONS",
    "EmbeddingVector",
    "Graypaper",
    "GraypaperSection",
    "Message",
    "Page",
]
