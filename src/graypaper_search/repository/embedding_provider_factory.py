"""Factory for creating configured semantic embedding providers."""

from typing import Optional

from graypaper_search.config import GraypaperSearchConfig
from graypaper_search.repository.embedding_provider import EmbeddingProvider
from graypaper_search.repository.openai_provider import OpenAIEmbeddingProvider


def create_embedding_provider(app_config: GraypaperSearchConfig) -> Optional[EmbeddingProvider]:
    """Create an embedding provider based on semantic config.

    Returns None when semantic search is disabled; semantic requests then run
    lexically.
    """
    if not app_config.semantic_search_enabled:
        return None

    provider_name = app_config.semantic_embedding_provider.strip().lower()
    if provider_name == "openai":
        return OpenAIEmbeddingProvider(
            model_name=app_config.semantic_embedding_model,
            dimensions=app_config.semantic_embedding_dimensions,
            timeout=app_config.semantic_embedding_timeout,
        )

    raise ValueError(f"Unsupported semantic embedding provider: {provider_name}")
