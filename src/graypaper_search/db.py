import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import sqlite_vec
from loguru import logger
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    async_sessionmaker,
    AsyncSession,
    AsyncEngine,
    async_scoped_session,
)
from sqlalchemy.pool import StaticPool

from graypaper_search.config import DatabaseBackend, GraypaperSearchConfig

# Module level state - one engine per database URL
_engines: dict[str, AsyncEngine] = {}
_session_makers: dict[str, async_sessionmaker[AsyncSession]] = {}

MEMORY_DATABASE_URL = "sqlite+aiosqlite://"


def get_scoped_session_factory(
    session_maker: async_sessionmaker[AsyncSession],
) -> async_scoped_session:
    """Create a scoped session factory scoped to current task."""
    return async_scoped_session(session_maker, scopefunc=asyncio.current_task)


@asynccontextmanager
async def scoped_session(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Get a scoped session with proper lifecycle management.

    The search path is read-only, but the session still commits on exit so
    write helpers (fixtures, db commands) share the same lifecycle.

    Args:
        session_maker: Session maker to create scoped sessions from
    """
    factory = get_scoped_session_factory(session_maker)
    session = factory()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()
        await factory.remove()


def backend_for_url(db_url: str) -> DatabaseBackend:
    if db_url.startswith("postgres"):
        return DatabaseBackend.POSTGRES
    return DatabaseBackend.SQLITE


def sqlite_lower(value):
    """Unicode-aware lower(); SQLite's built-in only folds ASCII letters."""
    if isinstance(value, str):
        return value.lower()
    return value


def _install_sqlite_functions(engine: AsyncEngine) -> None:
    """Register SQL functions on every new SQLite connection.

    ``lower()`` is replaced so case-insensitive LIKE folds non-ASCII text the
    same way Python folds the query phrase. Semantic search needs sqlite-vec's
    vec_distance_cosine(); when the extension can't be loaded the connection is
    still usable for lexical search.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # pragma: no cover
        dbapi_connection.create_function("lower", 1, sqlite_lower, deterministic=True)

        async def _load(driver_connection) -> None:
            await driver_connection.enable_load_extension(True)
            try:
                await driver_connection.load_extension(sqlite_vec.loadable_path())
            finally:
                await driver_connection.enable_load_extension(False)

        try:
            dbapi_connection.run_async(_load)
        except Exception as exc:
            logger.warning(f"Could not load sqlite-vec extension: {exc}")


def _create_engine_and_session(
    db_url: str,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Internal helper to create engine and session maker."""
    logger.debug(f"Creating engine for db_url: {db_url}")
    if backend_for_url(db_url) == DatabaseBackend.SQLITE:
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if db_url == MEMORY_DATABASE_URL:
            # a single shared connection keeps the in-memory database alive
            kwargs["poolclass"] = StaticPool
        engine = create_async_engine(db_url, **kwargs)
        _install_sqlite_functions(engine)
    else:
        engine = create_async_engine(db_url, pool_pre_ping=True)
    session_maker = async_sessionmaker(engine, expire_on_commit=False)
    return engine, session_maker


async def get_or_create_db(
    app_config: GraypaperSearchConfig,
    create_tables: bool = False,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:  # pragma: no cover
    """Get or create database engine and session maker for the configured URL."""
    global _engines, _session_makers

    db_key = app_config.database_url

    if db_key not in _engines:
        engine, session_maker = _create_engine_and_session(db_key)
        _engines[db_key] = engine
        _session_makers[db_key] = session_maker

        if create_tables:
            await create_schema(engine)

    engine = _engines.get(db_key)
    session_maker = _session_makers.get(db_key)

    # These checks should never fail since we just created them if they were missing
    if engine is None:
        logger.error("Failed to create database engine")
        raise RuntimeError("Database engine initialization failed")

    if session_maker is None:
        logger.error("Failed to create session maker")
        raise RuntimeError("Session maker initialization failed")

    return engine, session_maker


async def create_schema(engine: AsyncEngine) -> None:
    """Create the content tables.

    Development and test helper. Production schemas, including the pgvector
    and full-text indexes, are owned by the ingestion deployment.
    """
    from graypaper_search.models import Base

    async with engine.begin() as conn:
        if engine.dialect.name == "postgresql":  # pragma: no cover
            await conn.exec_driver_sql("CREATE EXTENSION IF NOT EXISTS vector")
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Database tables created for: {engine.url.render_as_string(hide_password=True)}")


async def shutdown_db() -> None:  # pragma: no cover
    """Clean up all database connections."""
    global _engines, _session_makers

    for db_key, engine in _engines.items():
        if engine:
            await engine.dispose()
            logger.debug("Disposed database engine")

    _engines.clear()
    _session_makers.clear()


@asynccontextmanager
async def engine_session_factory(
    db_url: Optional[str] = None,
) -> AsyncGenerator[tuple[AsyncEngine, async_sessionmaker[AsyncSession]], None]:
    """Create engine and session factory.

    Note: This is primarily used for testing where we want a fresh database
    for each test. For production use, use get_or_create_db() instead.
    """
    engine, session_maker = _create_engine_and_session(db_url or MEMORY_DATABASE_URL)
    try:
        yield engine, session_maker
    finally:
        await engine.dispose()
