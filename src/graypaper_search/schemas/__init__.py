"""Pydantic schemas for search requests and results."""

from graypaper_search.schemas.search import (
    DiscordResult,
    GraypaperSectionResult,
    MessageResult,
    PageResult,
    ParsedQuery,
    SearchFilter,
    SearchMode,
    SearchRequest,
    SearchResult,
    SearchResultPage,
)

__all__ = [
    "DiscordResult",
    "GraypaperSectionResult",
    "MessageResult",
    "PageResult",
    "ParsedQuery",
    "SearchFilter",
    "SearchMode",
    "SearchRequest",
    "SearchResult",
    "SearchResultPage",
]
