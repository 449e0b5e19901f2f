"""Services layer."""

from graypaper_search.services.search_service import SearchService

__all__ = ["SearchService"]
