"""Ranking and pagination over a compiled search plan.

Every search runs exactly two reads against the content store: a COUNT with
the plan's predicate and a page SELECT with the same predicate plus ordering,
OFFSET and LIMIT. Both statements are built from one compiled WHERE clause so
the reported total always agrees with the pages a client can walk through.
"""

from dataclasses import dataclass
from typing import Any, List, Optional

from loguru import logger
from sqlalchemy import Select, func, null, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import defer

from graypaper_search import db
from graypaper_search.repository.domains import ContentDomain
from graypaper_search.repository.predicate_compiler import PredicateCompiler, compiler_for
from graypaper_search.repository.predicates import SearchPlan


@dataclass
class SearchHit:
    """A matching row with its relevance score and, for semantic plans, similarity."""

    row: Any
    score: float
    similarity: Optional[float] = None


@dataclass
class SearchHits:
    hits: List[SearchHit]
    total: int
    page: int
    page_size: int


def build_search_statements(
    compiler: PredicateCompiler,
    plan: SearchPlan,
    page: int,
    page_size: int,
) -> tuple[Select, Select]:
    """Build the (count, page) statement pair for a plan."""
    domain = compiler.domain
    model = domain.model
    where_clause = compiler.where(plan.predicate)

    similarity = compiler.similarity(plan.similarity) if plan.similarity is not None else None
    score = similarity if similarity is not None else compiler.relevance(plan.relevance)

    count_stmt = select(func.count()).select_from(model).where(where_clause)
    page_stmt = (
        select(
            model,
            score.label("score"),
            (similarity if similarity is not None else null()).label("similarity"),
        )
        .where(where_clause)
        .order_by(*compiler.order_by(plan, score, similarity))
        .offset((page - 1) * page_size)
        .limit(page_size)
        .options(defer(domain.column(domain.embedding_field)))
    )
    return count_stmt, page_stmt


class SearchRepository:
    """Executes search plans against the content tables (read-only)."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def search(
        self,
        domain: ContentDomain,
        plan: SearchPlan,
        page: int = 1,
        page_size: int = 10,
    ) -> SearchHits:
        """Count all matches, then fetch one ordered page.

        Args:
            domain: Content domain to query
            plan: Predicate, ordering and similarity projection
            page: 1-based page number
            page_size: Rows per page

        Returns:
            SearchHits with at most ``page_size`` hits and the full match count
        """
        if page < 1 or page_size < 1:
            raise ValueError("page and page_size must be positive")

        async with db.scoped_session(self.session_maker) as session:
            compiler = compiler_for(domain, session.get_bind().dialect.name)
            count_stmt, page_stmt = build_search_statements(compiler, plan, page, page_size)
            logger.trace(f"Search {domain.name} statement: {page_stmt}")

            total = int((await session.execute(count_stmt)).scalar_one())
            rows = (await session.execute(page_stmt)).all()

        hits = [
            SearchHit(
                row=row[0],
                score=float(row.score) if row.score is not None else 0.0,
                similarity=float(row.similarity) if row.similarity is not None else None,
            )
            for row in rows
        ]
        logger.debug(
            f"{domain.name} {plan.mode.value} search: total={total} page={page} returned={len(hits)}"
        )
        return SearchHits(hits=hits, total=total, page=page, page_size=page_size)
