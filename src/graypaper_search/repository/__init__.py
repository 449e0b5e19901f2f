"""Repositories for the content store and semantic query embeddings."""

from graypaper_search.repository.domains import DOMAINS, ContentDomain, get_domain
from graypaper_search.repository.graypaper_repository import GraypaperRepository
from graypaper_search.repository.search_repository import SearchHit, SearchHits, SearchRepository

__all__ = [
    "ContentDomain",
    "DOMAINS",
    "GraypaperRepository",
    "SearchHit",
    "SearchHits",
    "SearchRepository",
    "get_domain",
]
