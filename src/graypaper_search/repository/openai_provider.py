"""OpenAI-based embedding provider for semantic query vectors."""

from __future__ import annotations

import asyncio
import os
from typing import Any

from openai import AsyncOpenAI

from graypaper_search.repository.embedding_provider import EmbeddingProvider
from graypaper_search.repository.semantic_errors import SemanticDependenciesMissingError


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Embedding provider backed by OpenAI's embeddings API.

    Stored rows are embedded by the batch job with the same model and
    dimensions, so query vectors are directly comparable.
    """

    def __init__(
        self,
        model_name: str = "text-embedding-3-small",
        *,
        dimensions: int = 1536,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.model_name = model_name
        self.dimensions = dimensions
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self._client: Any | None = None
        self._client_lock = asyncio.Lock()

    async def _get_client(self) -> Any:
        if self._client is not None:
            return self._client

        async with self._client_lock:
            if self._client is not None:
                return self._client

            api_key = self._api_key or os.getenv("OPENAI_API_KEY")
            if not api_key:
                raise SemanticDependenciesMissingError(
                    "OpenAI embedding provider requires OPENAI_API_KEY."
                )

            # one attempt per query; a failure downgrades to lexical search
            self._client = AsyncOpenAI(
                api_key=api_key,
                base_url=self._base_url,
                timeout=self._timeout,
                max_retries=0,
            )
            return self._client

    async def embed_query(self, text: str) -> list[float]:
        client = await self._get_client()
        response = await client.embeddings.create(
            model=self.model_name,
            input=text,
            dimensions=self.dimensions,
        )
        if not response.data:
            raise RuntimeError("OpenAI embedding response contained no vectors.")

        vector = [float(value) for value in response.data[0].embedding]
        if len(vector) != self.dimensions:
            raise RuntimeError(
                f"Embedding model returned {len(vector)}-dimensional vectors "
                f"but provider was configured for {self.dimensions} dimensions."
            )
        return vector
