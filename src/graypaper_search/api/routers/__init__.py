"""API routers."""

from graypaper_search.api.routers import health_router, search_router

__all__ = ["health_router", "search_router"]
