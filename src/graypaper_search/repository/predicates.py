"""Typed predicate tree and search-plan construction.

The predicate builder never produces SQL. It returns a small tree of match,
filter and boost nodes that a backend compiler (``predicate_compiler``) lowers
to a concrete query. The same tree drives both filtering and relevance scoring,
so the count and page queries are always built from one predicate.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple, Union

from loguru import logger

from graypaper_search.repository.domains import ContentDomain
from graypaper_search.repository.embedding_provider import EmbeddingFailure
from graypaper_search.schemas.search import SearchMode

# Fuzzy-mode weights: phrase hits outrank term hits, primary outranks secondary
PRIMARY_PHRASE_BOOST = 20.0
SECONDARY_PHRASE_BOOST = 10.0
PRIMARY_TERM_BOOST = 2.0
# Strict mode only distinguishes which field carried the phrase
STRICT_PRIMARY_BOOST = 2.0

SCORE = "score"
SIMILARITY = "similarity"


# --- Predicate nodes -------------------------------------------------------


@dataclass(frozen=True)
class MatchAll:
    """Matches every row."""


@dataclass(frozen=True)
class Phrase:
    """Case-insensitive contiguous phrase match on a text field."""

    field: str
    text: str


@dataclass(frozen=True)
class Term:
    """Case-insensitive single term (substring) match on a text field."""

    field: str
    text: str


@dataclass(frozen=True)
class Prefix:
    """Case-sensitive starts-with match. ``value`` is literal text, not a pattern."""

    field: str
    value: str


@dataclass(frozen=True)
class Equals:
    field: str
    value: str


@dataclass(frozen=True)
class Between:
    """Inclusive range on a timestamp field."""

    field: str
    start: datetime
    end: datetime


@dataclass(frozen=True)
class NotNull:
    field: str


@dataclass(frozen=True)
class VectorWithin:
    """Cosine distance between ``field`` and ``vector`` is below ``threshold``."""

    field: str
    vector: Tuple[float, ...]
    threshold: float


@dataclass(frozen=True)
class Boost:
    """Weight applied to ``node`` when computing relevance."""

    weight: float
    node: "Node"


@dataclass(frozen=True)
class And:
    children: Tuple["Node", ...]


@dataclass(frozen=True)
class Or:
    children: Tuple["Node", ...]


Node = Union[MatchAll, Phrase, Term, Prefix, Equals, Between, NotNull, VectorWithin, Boost, And, Or]


def all_of(nodes: Sequence[Node]) -> Node:
    """AND nodes together, dropping MatchAll and collapsing single children."""
    children = tuple(node for node in nodes if not isinstance(node, MatchAll))
    if not children:
        return MatchAll()
    if len(children) == 1:
        return children[0]
    return And(children)


# --- Plans -----------------------------------------------------------------


@dataclass(frozen=True)
class SearchFilters:
    """Filters after resolution: dates are absolute, ``since_gp`` is already applied."""

    sender: Optional[str] = None
    date_range: Optional[Tuple[datetime, datetime]] = None
    channel_id: Optional[str] = None
    site: Optional[str] = None


@dataclass(frozen=True)
class OrderKey:
    """One step of the tie-break chain. ``name`` is SCORE, SIMILARITY or a field."""

    name: str
    descending: bool = False


@dataclass(frozen=True)
class SearchPlan:
    """Everything the ranking engine needs to run a query against one domain.

    ``predicate`` is shared by the count and page queries. ``relevance`` is the
    node scored for lexical plans; ``similarity`` is set only for semantic plans.
    """

    mode: SearchMode
    predicate: Node
    order_by: Tuple[OrderKey, ...]
    relevance: Optional[Node] = None
    similarity: Optional[VectorWithin] = None
    degraded: bool = False
    filters: Tuple[Node, ...] = ()


def split_terms(phrase: str) -> List[str]:
    return [term for term in phrase.lower().split() if term]


def strict_predicate(domain: ContentDomain, phrase: str) -> Node:
    """The whole phrase must appear in the primary or the secondary field."""
    text = " ".join(split_terms(phrase))
    if not text:
        return MatchAll()
    return Or(
        (
            Boost(STRICT_PRIMARY_BOOST, Phrase(domain.primary_field, text)),
            Phrase(domain.secondary_field, text),
        )
    )


def fuzzy_predicate(domain: ContentDomain, phrase: str) -> Node:
    """Any term may match; multi-word phrase hits carry the highest boost."""
    terms = split_terms(phrase)
    if not terms:
        return MatchAll()

    children: List[Node] = []
    if len(terms) > 1:
        text = " ".join(terms)
        children.append(Boost(PRIMARY_PHRASE_BOOST, Phrase(domain.primary_field, text)))
        children.append(Boost(SECONDARY_PHRASE_BOOST, Phrase(domain.secondary_field, text)))
    for term in dict.fromkeys(terms):
        children.append(Boost(PRIMARY_TERM_BOOST, Term(domain.primary_field, term)))
        children.append(Term(domain.secondary_field, term))
    return Or(tuple(children))


def semantic_predicate(
    domain: ContentDomain, embedding: Sequence[float], distance_threshold: float
) -> VectorWithin:
    return VectorWithin(
        field=domain.embedding_field,
        vector=tuple(float(value) for value in embedding),
        threshold=distance_threshold,
    )


def filter_predicates(domain: ContentDomain, filters: SearchFilters) -> List[Node]:
    """Independent filter predicates, ANDed on top of the mode predicate.

    Filters the domain doesn't support are skipped.
    """
    nodes: List[Node] = []

    if filters.sender:
        if domain.supports_sender_filter:
            nodes.append(Prefix(domain.sender_field, filters.sender))
        else:
            logger.debug(f"{domain.name} has no sender field, ignoring sender filter")

    if filters.date_range:
        if domain.supports_date_range and domain.timestamp_field:
            start, end = filters.date_range
            nodes.append(Between(domain.timestamp_field, start, end))
        else:
            logger.debug(f"{domain.name} does not support date filters, ignoring date range")

    if filters.channel_id:
        if domain.supports_channel_scope:
            nodes.append(Equals(domain.scope_field, filters.channel_id))
        else:
            logger.debug(f"{domain.name} has no channel scope, ignoring channel filter")

    if filters.site:
        if domain.supports_site_scope:
            nodes.append(Term(domain.site_field, filters.site.lower()))
        else:
            logger.debug(f"{domain.name} has no site field, ignoring site filter")

    return nodes


def _tie_breaks(domain: ContentDomain) -> Tuple[OrderKey, ...]:
    keys: List[OrderKey] = []
    if domain.timestamp_field:
        keys.append(OrderKey(domain.timestamp_field, descending=True))
    keys.append(OrderKey(domain.id_field))
    return tuple(keys)


def _lexical_plan(
    domain: ContentDomain,
    mode: SearchMode,
    text_predicate: Node,
    filters: List[Node],
    degraded: bool = False,
) -> SearchPlan:
    relevance = None if isinstance(text_predicate, MatchAll) else text_predicate
    return SearchPlan(
        mode=mode,
        predicate=all_of([text_predicate, *filters]),
        order_by=(OrderKey(SCORE, descending=True), *_tie_breaks(domain)),
        relevance=relevance,
        degraded=degraded,
        filters=tuple(filters),
    )


def build_search_plan(
    domain: ContentDomain,
    phrase: str,
    filters: SearchFilters,
    mode: SearchMode,
    embedding: Union[Sequence[float], EmbeddingFailure, None] = None,
    distance_threshold: float = 0.8,
) -> SearchPlan:
    """Compose the predicate, ordering and similarity projection for a query.

    Pure function of its inputs. For semantic mode the caller passes the result
    of embedding ``phrase``; an ``EmbeddingFailure`` (or no embedding) downgrades
    the request to the fuzzy lexical plan.

    Raises:
        ValueError: if ``mode`` is not a known search mode
    """
    filter_nodes = filter_predicates(domain, filters)

    if mode == SearchMode.STRICT:
        return _lexical_plan(domain, mode, strict_predicate(domain, phrase), filter_nodes)

    if mode == SearchMode.FUZZY:
        return _lexical_plan(domain, mode, fuzzy_predicate(domain, phrase), filter_nodes)

    if mode == SearchMode.SEMANTIC:
        if isinstance(embedding, EmbeddingFailure) or not embedding:
            failed = isinstance(embedding, EmbeddingFailure)
            if failed:
                logger.warning(
                    f"Semantic search on {domain.name} degraded to lexical: {embedding.reason}"
                )
            return _lexical_plan(
                domain,
                SearchMode.FUZZY,
                fuzzy_predicate(domain, phrase),
                filter_nodes,
                degraded=failed,
            )

        similarity = semantic_predicate(domain, embedding, distance_threshold)
        return SearchPlan(
            mode=mode,
            predicate=all_of([NotNull(domain.embedding_field), similarity, *filter_nodes]),
            order_by=(OrderKey(SIMILARITY, descending=True), *_tie_breaks(domain)),
            similarity=similarity,
            filters=tuple(filter_nodes),
        )

    raise ValueError(f"Unhandled search mode: {mode}")
