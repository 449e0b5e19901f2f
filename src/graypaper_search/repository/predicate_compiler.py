"""Lower predicate trees to SQLAlchemy expressions.

Lexical matching is case-insensitive LIKE over ``lower()`` of both sides, which
both backends share. On SQLite ``lower()`` is the Unicode-aware function that
``db`` registers on each connection.

The backends differ only in how cosine distance is computed:

- SQLite: sqlite-vec ``vec_distance_cosine()`` over JSON-encoded vectors
- Postgres: pgvector's ``<=>`` operator
"""

import json
import re
from functools import reduce
from operator import add
from typing import List, Sequence

from pgvector.sqlalchemy import Vector
from sqlalchemy import Float, and_, case, cast, func, literal, or_, true
from sqlalchemy.sql.elements import ColumnElement

from graypaper_search.repository.domains import ContentDomain
from graypaper_search.repository.predicates import (
    SCORE,
    SIMILARITY,
    And,
    Between,
    Boost,
    Equals,
    MatchAll,
    Node,
    NotNull,
    Or,
    Phrase,
    Prefix,
    SearchPlan,
    Term,
    VectorWithin,
)

REGEX_SPECIAL_CHARS = re.compile(r"[.*+?^${}()|\[\]\\]")


def escape_regex(value: str) -> str:
    """Escape regex metacharacters so ``value`` matches literally.

    Covers the characters that are special to both Python and POSIX regular
    expressions, so the result is valid for SQLite REGEXP and Postgres ``~``.
    """
    return REGEX_SPECIAL_CHARS.sub(lambda match: "\\" + match.group(0), value)


class PredicateCompiler:
    """Compile predicate nodes for one content domain.

    Subclasses provide the backend-specific cosine distance expression.
    """

    def __init__(self, domain: ContentDomain):
        self.domain = domain

    # --- filtering ---------------------------------------------------------

    def where(self, node: Node) -> ColumnElement[bool]:
        if isinstance(node, MatchAll):
            return true()
        if isinstance(node, (Phrase, Term)):
            return self._contains(node.field, node.text)
        if isinstance(node, Prefix):
            return self.domain.column(node.field).regexp_match(f"^{escape_regex(node.value)}")
        if isinstance(node, Equals):
            return self.domain.column(node.field) == node.value
        if isinstance(node, Between):
            return self.domain.column(node.field).between(node.start, node.end)
        if isinstance(node, NotNull):
            return self.domain.column(node.field).is_not(None)
        if isinstance(node, VectorWithin):
            return self.distance(node) < node.threshold
        if isinstance(node, Boost):
            return self.where(node.node)
        if isinstance(node, And):
            return and_(*[self.where(child) for child in node.children])
        if isinstance(node, Or):
            return or_(*[self.where(child) for child in node.children])
        raise TypeError(f"Unsupported predicate node: {node!r}")

    def _contains(self, field: str, text: str) -> ColumnElement[bool]:
        return self.domain.column(field).icontains(text, autoescape=True)

    # --- scoring -----------------------------------------------------------

    def relevance(self, node: Node | None) -> ColumnElement[float]:
        """Sum of boost weights for every matching leaf of ``node``."""
        if node is None or isinstance(node, MatchAll):
            return literal(0.0, Float)
        return self._score(node, 1.0)

    def _score(self, node: Node, weight: float) -> ColumnElement[float]:
        if isinstance(node, Boost):
            return self._score(node.node, weight * node.weight)
        if isinstance(node, (And, Or)):
            return reduce(add, [self._score(child, weight) for child in node.children])
        return case((self.where(node), literal(weight, Float)), else_=literal(0.0, Float))

    def similarity(self, node: VectorWithin) -> ColumnElement[float]:
        return literal(1.0, Float) - self.distance(node)

    def distance(self, node: VectorWithin) -> ColumnElement[float]:
        raise NotImplementedError

    # --- ordering ----------------------------------------------------------

    def order_by(
        self,
        plan: SearchPlan,
        score: ColumnElement[float],
        similarity: ColumnElement[float] | None,
    ) -> List[ColumnElement]:
        clauses: List[ColumnElement] = []
        for key in plan.order_by:
            if key.name == SCORE:
                expr = score
            elif key.name == SIMILARITY:
                if similarity is None:
                    raise ValueError("Similarity ordering requires a semantic plan")
                expr = similarity
            else:
                expr = self.domain.column(key.name)
            clauses.append(expr.desc() if key.descending else expr.asc())
        return clauses


class SQLitePredicateCompiler(PredicateCompiler):
    """SQLite: vectors are JSON text, distance comes from sqlite-vec."""

    def distance(self, node: VectorWithin) -> ColumnElement[float]:
        query_vector = json.dumps(list(node.vector))
        return func.vec_distance_cosine(
            self.domain.column(node.field), literal(query_vector), type_=Float
        )


class PostgresPredicateCompiler(PredicateCompiler):
    """Postgres: pgvector cosine distance operator."""

    @staticmethod
    def format_pgvector_literal(vector: Sequence[float]) -> str:
        if not vector:
            return "[]"
        values = ",".join(f"{float(value):.12g}" for value in vector)
        return f"[{values}]"

    def distance(self, node: VectorWithin) -> ColumnElement[float]:
        query_vector = cast(
            literal(self.format_pgvector_literal(node.vector)), Vector(len(node.vector))
        )
        return self.domain.column(node.field).op("<=>", return_type=Float)(query_vector)


def compiler_for(domain: ContentDomain, dialect_name: str) -> PredicateCompiler:
    if dialect_name == "postgresql":
        return PostgresPredicateCompiler(domain)
    if dialect_name == "sqlite":
        return SQLitePredicateCompiler(domain)
    raise ValueError(f"Unsupported database dialect: {dialect_name}")
