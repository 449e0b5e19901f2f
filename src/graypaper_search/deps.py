"""Dependency injection functions for the search API."""

from typing import Annotated, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from graypaper_search import db
from graypaper_search.config import ConfigManager, GraypaperSearchConfig
from graypaper_search.repository.embedding_provider import EmbeddingProvider
from graypaper_search.repository.embedding_provider_factory import create_embedding_provider
from graypaper_search.repository.graypaper_repository import GraypaperRepository
from graypaper_search.repository.search_repository import SearchRepository
from graypaper_search.services.search_service import SearchService
from graypaper_search.services.similarity_fallback import QueryEmbedder


# config


def get_app_config() -> GraypaperSearchConfig:  # pragma: no cover
    return ConfigManager().config


AppConfigDep = Annotated[GraypaperSearchConfig, Depends(get_app_config)]


# sqlalchemy


async def get_engine_factory(
    request: Request,
    app_config: AppConfigDep,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:  # pragma: no cover
    """Get cached engine and session maker from app state, creating them on first use."""
    engine = getattr(request.app.state, "engine", None)
    session_maker = getattr(request.app.state, "session_maker", None)
    if engine is not None and session_maker is not None:
        return engine, session_maker
    return await db.get_or_create_db(app_config)


EngineFactoryDep = Annotated[
    tuple[AsyncEngine, async_sessionmaker[AsyncSession]], Depends(get_engine_factory)
]


async def get_session_maker(engine_factory: EngineFactoryDep) -> async_sessionmaker[AsyncSession]:
    _, session_maker = engine_factory
    return session_maker


SessionMakerDep = Annotated[async_sessionmaker, Depends(get_session_maker)]


# embeddings


def get_embedding_provider(
    request: Request, app_config: AppConfigDep
) -> Optional[EmbeddingProvider]:  # pragma: no cover
    """Provider created at startup, so its HTTP client is shared across requests."""
    if hasattr(request.app.state, "embedding_provider"):
        return request.app.state.embedding_provider
    provider = create_embedding_provider(app_config)
    request.app.state.embedding_provider = provider
    return provider


EmbeddingProviderDep = Annotated[Optional[EmbeddingProvider], Depends(get_embedding_provider)]


# repositories


async def get_search_repository(session_maker: SessionMakerDep) -> SearchRepository:
    return SearchRepository(session_maker)


SearchRepositoryDep = Annotated[SearchRepository, Depends(get_search_repository)]


async def get_graypaper_repository(session_maker: SessionMakerDep) -> GraypaperRepository:
    return GraypaperRepository(session_maker)


GraypaperRepositoryDep = Annotated[GraypaperRepository, Depends(get_graypaper_repository)]


# services


async def get_search_service(
    app_config: AppConfigDep,
    search_repository: SearchRepositoryDep,
    graypaper_repository: GraypaperRepositoryDep,
    embedding_provider: EmbeddingProviderDep,
) -> SearchService:
    return SearchService(
        search_repository=search_repository,
        graypaper_repository=graypaper_repository,
        embedder=QueryEmbedder(embedding_provider, timeout=app_config.semantic_embedding_timeout),
        distance_threshold=app_config.semantic_distance_threshold,
    )


SearchServiceDep = Annotated[SearchService, Depends(get_search_service)]
