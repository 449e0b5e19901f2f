"""FastAPI application for the Graypaper search API."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from graypaper_search import __version__ as version
from graypaper_search import db
from graypaper_search.api.routers import health_router, search_router
from graypaper_search.config import ConfigManager, init_api_logging
from graypaper_search.repository.embedding_provider_factory import create_embedding_provider


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover
    """Lifecycle manager for the FastAPI app."""
    init_api_logging()
    app_config = ConfigManager().config
    logger.info("Starting Graypaper search API")

    # Cache database connections in app state for performance
    engine, session_maker = await db.get_or_create_db(app_config)
    app.state.engine = engine
    app.state.session_maker = session_maker
    logger.info(f"Database connections cached in app state ({app_config.database_backend.value})")

    app.state.embedding_provider = create_embedding_provider(app_config)
    if app.state.embedding_provider is None:
        logger.info("Semantic search disabled, semantic requests will run lexically")

    yield

    logger.info("Shutting down Graypaper search API")
    await db.shutdown_db()


app = FastAPI(
    title="Graypaper Search API",
    description="Search API for the Graypaper knowledge base",
    version=version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ConfigManager().config.cors_origins,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(health_router.router)
app.include_router(search_router.router)


@app.exception_handler(Exception)
async def exception_handler(request, exc):  # pragma: no cover
    logger.exception(
        "API unhandled exception",
        url=str(request.url),
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return await http_exception_handler(request, HTTPException(status_code=500, detail=str(exc)))
