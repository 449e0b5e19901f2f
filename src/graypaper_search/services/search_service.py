"""Service for searching the indexed content domains."""

from datetime import datetime
from typing import Optional, Tuple, Union

from loguru import logger

from graypaper_search.repository.domains import ContentDomain, get_domain
from graypaper_search.repository.embedding_provider import EmbeddingFailure
from graypaper_search.repository.graypaper_repository import GraypaperRepository
from graypaper_search.repository.predicates import SearchFilters, build_search_plan
from graypaper_search.repository.search_repository import SearchRepository
from graypaper_search.schemas.search import SearchMode, SearchRequest, SearchResultPage
from graypaper_search.services.query_parser import filter_value, parse_search_query
from graypaper_search.services.result_assembler import assemble_results
from graypaper_search.services.similarity_fallback import QueryEmbedder
from graypaper_search.utils import parse_date, to_naive_utc, utc_now

EPOCH = datetime(1970, 1, 1)


class VersionNotFound(Exception):
    """A ``since_gp`` filter named a Graypaper version that doesn't exist."""

    def __init__(self, version: str):
        super().__init__(f"Graypaper version {version} not found")
        self.version = version


class SearchService:
    """Runs one search request end to end.

    raw query -> phrase + filters -> resolved filters -> search plan
    -> count + page -> domain result schema
    """

    def __init__(
        self,
        search_repository: SearchRepository,
        graypaper_repository: GraypaperRepository,
        embedder: QueryEmbedder,
        distance_threshold: float = 0.8,
    ):
        self.search_repository = search_repository
        self.graypaper_repository = graypaper_repository
        self.embedder = embedder
        self.distance_threshold = distance_threshold

    async def search(self, domain_name: str, request: SearchRequest) -> SearchResultPage:
        """Search one content domain.

        An unknown ``since_gp`` version is not an error: it returns an empty
        page carrying an explanatory ``error`` string.

        Raises:
            UnknownDomainError: if ``domain_name`` isn't a registered domain
        """
        domain = get_domain(domain_name)
        parsed = parse_search_query(request.q)
        logger.debug(
            f"Search {domain.name}: phrase={parsed.phrase!r} mode={request.search_mode.value} "
            f"inline_filters={[f'{f.key}:{f.value}' for f in parsed.filters]}"
        )

        # explicit parameters take precedence over inline tokens
        sender = request.filter_from or filter_value(parsed.filters, "from")
        since_gp = request.filter_since_gp or filter_value(parsed.filters, "since_gp")
        before = request.filter_before or filter_value(parsed.filters, "before")
        after = request.filter_after or filter_value(parsed.filters, "after")

        try:
            date_range = await self.resolve_date_range(domain, since_gp, before, after)
        except VersionNotFound as exc:
            logger.info(str(exc))
            return SearchResultPage(
                results=[],
                total=0,
                page=request.page,
                page_size=request.page_size,
                error=str(exc),
            )

        filters = SearchFilters(
            sender=sender,
            date_range=date_range,
            channel_id=request.channel_id,
            site=request.site,
        )

        embedding: Union[list[float], EmbeddingFailure, None] = None
        if request.search_mode == SearchMode.SEMANTIC and parsed.phrase:
            embedding = await self.embedder.embed(parsed.phrase)

        plan = build_search_plan(
            domain,
            parsed.phrase,
            filters,
            request.search_mode,
            embedding=embedding,
            distance_threshold=self.distance_threshold,
        )
        hits = await self.search_repository.search(
            domain, plan, page=request.page, page_size=request.page_size
        )
        if plan.degraded:
            logger.info(
                f"{domain.name} semantic search fell back to lexical, found {hits.total} results"
            )
        else:
            logger.info(f"{domain.name} search query found {hits.total} results")

        return SearchResultPage(
            results=assemble_results(domain, hits.hits),
            total=hits.total,
            page=request.page,
            page_size=request.page_size,
        )

    async def resolve_date_range(
        self,
        domain: ContentDomain,
        since_gp: Optional[str],
        before: Optional[str],
        after: Optional[str],
    ) -> Optional[Tuple[datetime, datetime]]:
        """Turn date filters into an inclusive [start, end] range.

        Missing bounds default to the epoch and now. ``since_gp`` resolves to the
        matching version's release timestamp and replaces ``after``. Returns None
        when no date filter applies to the domain.

        Raises:
            VersionNotFound: if ``since_gp`` matches no Graypaper version
        """
        if not domain.supports_date_range or not (since_gp or before or after):
            return None

        start = parse_date(after) or EPOCH
        end = parse_date(before) or utc_now()

        if since_gp:
            released_at = await self.graypaper_repository.find_release_timestamp(since_gp)
            if released_at is None:
                raise VersionNotFound(since_gp)
            start = to_naive_utc(released_at)

        return start, end
