"""Shape search hits into the per-domain result schema."""

from typing import Callable, Dict, List

from graypaper_search.repository.domains import ContentDomain
from graypaper_search.repository.search_repository import SearchHit
from graypaper_search.schemas.search import (
    DiscordResult,
    GraypaperSectionResult,
    MessageResult,
    PageResult,
    SearchResult,
)


def message_result(hit: SearchHit) -> MessageResult:
    row = hit.row
    return MessageResult(
        message_id=row.message_id,
        sender=row.sender,
        content=row.content,
        timestamp=row.timestamp,
        room_id=row.room_id,
        score=hit.score,
        similarity=hit.similarity,
    )


def graypaper_section_result(hit: SearchHit) -> GraypaperSectionResult:
    row = hit.row
    return GraypaperSectionResult(
        id=row.id,
        title=row.title,
        text=row.text,
        score=hit.score,
        similarity=hit.similarity,
    )


def page_result(hit: SearchHit) -> PageResult:
    row = hit.row
    return PageResult(
        id=row.id,
        url=row.url,
        title=row.title,
        content=row.content,
        site=row.site,
        last_modified=row.last_modified,
        score=hit.score,
        similarity=hit.similarity,
    )


def discord_result(hit: SearchHit) -> DiscordResult:
    row = hit.row
    return DiscordResult(
        message_id=row.message_id,
        channel_id=row.channel_id,
        sender=row.sender,
        author_id=row.author_id,
        content=row.content,
        timestamp=row.timestamp,
        score=hit.score,
        similarity=hit.similarity,
    )


ASSEMBLERS: Dict[str, Callable[[SearchHit], SearchResult]] = {
    "messages": message_result,
    "graypaper": graypaper_section_result,
    "pages": page_result,
    "discords": discord_result,
}


def assemble_results(domain: ContentDomain, hits: List[SearchHit]) -> List[SearchResult]:
    assemble = ASSEMBLERS[domain.name]
    return [assemble(hit) for hit in hits]
