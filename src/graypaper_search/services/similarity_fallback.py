"""Query embeddings for semantic search, with failure as a value."""

import asyncio
from typing import Optional, Union

from loguru import logger

from graypaper_search.repository.embedding_provider import EmbeddingFailure, EmbeddingProvider


class QueryEmbedder:
    """Embeds query text once per request.

    Any provider or transport error comes back as an ``EmbeddingFailure`` so the
    caller can run the request lexically. Cancellation is not caught.
    """

    def __init__(
        self,
        provider: Optional[EmbeddingProvider],
        timeout: Optional[float] = None,
    ):
        self.provider = provider
        self.timeout = timeout

    async def embed(self, text: str) -> Union[list[float], EmbeddingFailure]:
        if self.provider is None:
            return EmbeddingFailure("semantic search is disabled")

        try:
            if self.timeout is not None:
                vector = await asyncio.wait_for(self.provider.embed_query(text), self.timeout)
            else:
                vector = await self.provider.embed_query(text)
        except Exception as exc:
            logger.warning(
                f"Embedding provider {self.provider.model_name} failed: {type(exc).__name__}: {exc}"
            )
            return EmbeddingFailure(f"{type(exc).__name__}: {exc}")

        if not vector:
            return EmbeddingFailure("embedding provider returned an empty vector")
        return vector
