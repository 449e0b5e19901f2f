"""Repository for Graypaper release versions."""

from datetime import datetime
from typing import Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from graypaper_search import db
from graypaper_search.models import Graypaper


def version_pattern(version: str) -> str:
    """Translate a version filter into a LIKE pattern.

    ``*`` is accepted as a wildcard alongside SQL's own ``%`` and ``_``.
    """
    return version.strip().replace("*", "%")


class GraypaperRepository:
    """Resolves Graypaper versions to their publication timestamps."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def find_release_timestamp(self, version: str) -> Optional[datetime]:
        """Timestamp of the most recent version matching ``version``.

        Ambiguous patterns resolve to the newest match. Returns None when no
        version matches.
        """
        query = (
            select(Graypaper.timestamp)
            .where(Graypaper.version.ilike(version_pattern(version)))
            .order_by(Graypaper.timestamp.desc())
            .limit(1)
        )
        async with db.scoped_session(self.session_maker) as session:
            result = await session.execute(query)
            timestamp = result.scalar_one_or_none()

        logger.debug(f"Graypaper version {version!r} resolved to {timestamp}")
        return timestamp
