"""Parse raw search queries into a phrase and inline filters.

Users can type filters straight into the search box, e.g.
``from:alice since_gp:0.6.* consensus``. Each ``key:value`` token uses one of a
fixed set of keys and a value that runs to the next whitespace.
"""

import re
from typing import Iterable, Optional

from graypaper_search.schemas.search import ParsedQuery, SearchFilter

FILTER_KEYS = ("from", "since_gp", "before", "after")
FILTER_PATTERN = re.compile(rf"({'|'.join(FILTER_KEYS)}):(\S+)")
WHITESPACE = re.compile(r"\s+")


def parse_search_query(raw_query: str) -> ParsedQuery:
    """Split ``raw_query`` into its search phrase and filters.

    Tokens without a value (``from:`` followed by a space) stay in the phrase.
    """
    filters = [
        SearchFilter(key=match.group(1), value=match.group(2))
        for match in FILTER_PATTERN.finditer(raw_query)
    ]
    phrase = WHITESPACE.sub(" ", FILTER_PATTERN.sub("", raw_query)).strip()
    return ParsedQuery(phrase=phrase, filters=filters)


def format_search_query(phrase: str, filters: Iterable[SearchFilter]) -> str:
    """Canonical form: filters first, in order, then the phrase."""
    tokens = [f"{search_filter.key}:{search_filter.value}" for search_filter in filters]
    if phrase.strip():
        tokens.append(phrase.strip())
    return " ".join(tokens)


def filter_value(filters: Iterable[SearchFilter], key: str) -> Optional[str]:
    """Value of the last filter with ``key``, if any."""
    value = None
    for search_filter in filters:
        if search_filter.key == key:
            value = search_filter.value
    return value
