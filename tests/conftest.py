"""Common test fixtures."""

from datetime import datetime, timedelta
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from graypaper_search import db
from graypaper_search.config import ConfigManager, GraypaperSearchConfig
from graypaper_search.models import Discord, Graypaper, GraypaperSection, Message, Page
from graypaper_search.repository.graypaper_repository import GraypaperRepository
from graypaper_search.repository.search_repository import SearchRepository
from graypaper_search.services.search_service import SearchService
from graypaper_search.services.similarity_fallback import QueryEmbedder

BASE_TIME = datetime(2024, 6, 1, 12, 0, 0)


class StubEmbeddingProvider:
    """Deterministic stub: every query embeds to ``vector``."""

    model_name = "stub"

    def __init__(self, vector: Optional[list[float]] = None):
        self.vector = vector or [1.0, 0.0, 0.0]
        self.dimensions = len(self.vector)
        self.calls: list[str] = []

    async def embed_query(self, text: str) -> list[float]:
        self.calls.append(text)
        return list(self.vector)


class FailingEmbeddingProvider:
    """Stub provider that always raises, like an unreachable API."""

    model_name = "failing"
    dimensions = 3

    def __init__(self):
        self.calls = 0

    async def embed_query(self, text: str) -> list[float]:
        self.calls += 1
        raise ConnectionError("embedding API unreachable")


@pytest.fixture
def app_config() -> GraypaperSearchConfig:
    return GraypaperSearchConfig(
        env="test",
        database_url=db.MEMORY_DATABASE_URL,
        semantic_search_enabled=False,
    )


@pytest.fixture
def config_manager(app_config) -> ConfigManager:
    return ConfigManager(app_config)


@pytest_asyncio.fixture
async def engine_factory(
    app_config,
) -> AsyncGenerator[tuple[AsyncEngine, async_sessionmaker[AsyncSession]], None]:
    """Fresh in-memory database with the content tables created."""
    async with db.engine_session_factory(app_config.database_url) as (engine, session_maker):
        await db.create_schema(engine)
        yield engine, session_maker


@pytest.fixture
def session_maker(engine_factory) -> async_sessionmaker[AsyncSession]:
    _, session_maker = engine_factory
    return session_maker


@pytest.fixture
def search_repository(session_maker) -> SearchRepository:
    return SearchRepository(session_maker)


@pytest.fixture
def graypaper_repository(session_maker) -> GraypaperRepository:
    return GraypaperRepository(session_maker)


@pytest.fixture
def search_service(search_repository, graypaper_repository) -> SearchService:
    """Service with semantic search disabled."""
    return SearchService(
        search_repository=search_repository,
        graypaper_repository=graypaper_repository,
        embedder=QueryEmbedder(None),
    )


@pytest_asyncio.fixture
async def sqlite_vec_available(engine_factory) -> None:
    """Skip tests that need vec_distance_cosine() when sqlite-vec couldn't load."""
    engine, _ = engine_factory
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT vec_version()"))
    except Exception:
        pytest.skip("sqlite-vec extension is not loadable in this environment")


class ContentFactory:
    """Builds content rows with sensible defaults and writes them to the test database."""

    base_time = BASE_TIME

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def add(self, *rows) -> None:
        async with db.scoped_session(self.session_maker) as session:
            session.add_all(rows)

    def at(self, minutes: int) -> datetime:
        return self.base_time + timedelta(minutes=minutes)

    def message(self, content, sender="alice", minutes=0, room_id="!jam:matrix.org", **kwargs):
        return Message(
            room_id=room_id,
            sender=sender,
            content=content,
            timestamp=self.at(minutes),
            **kwargs,
        )

    def discord(self, content, sender="alice", minutes=0, channel_id="general", **kwargs):
        return Discord(
            channel_id=channel_id,
            server_id="jam",
            sender=sender,
            content=content,
            timestamp=self.at(minutes),
            **kwargs,
        )

    def section(self, title, body, **kwargs):
        return GraypaperSection(title=title, text=body, **kwargs)

    def page(self, title, content, url, site="docs.jamcha.in", minutes=0, **kwargs):
        return Page(
            title=title,
            content=content,
            url=url,
            site=site,
            created_at=self.at(minutes),
            last_modified=self.at(minutes),
            **kwargs,
        )

    def graypaper(self, version, timestamp):
        return Graypaper(version=version, timestamp=timestamp)


@pytest.fixture
def content(session_maker) -> ContentFactory:
    return ContentFactory(session_maker)


@pytest.fixture
def stub_embedding_provider() -> StubEmbeddingProvider:
    return StubEmbeddingProvider()


@pytest.fixture
def failing_embedding_provider() -> FailingEmbeddingProvider:
    return FailingEmbeddingProvider()
