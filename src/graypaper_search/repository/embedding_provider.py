"""Embedding provider protocol for semantic query vectors."""

from dataclasses import dataclass
from typing import Protocol


class EmbeddingProvider(Protocol):
    """Contract for semantic embedding providers."""

    model_name: str
    dimensions: int

    async def embed_query(self, text: str) -> list[float]:
        """Embed a single query string."""
        ...


@dataclass(frozen=True)
class EmbeddingFailure:
    """A query embedding that could not be produced.

    Returned instead of raised so semantic search can fall back to lexical
    matching for the current request.
    """

    reason: str
