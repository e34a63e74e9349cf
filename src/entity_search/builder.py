"""Field-weighted query construction.

Turns free text into the structured query a searcher runs for one entity
kind::

    +( <parsed text over all fields>
       <field>:*text*            for every wildcard field
       <field>:token~0.6         for every fuzzy field and analyzed token )
    +type:<kind>

User text is always escaped before parsing, so characters such as ``*``,
``~`` or ``:`` typed by a user are matched literally and never act as
operators. Wildcard substring matching is added by the builder itself.
"""

from __future__ import annotations

from collections.abc import Sequence
import logging

from entity_search.domain.fields import FieldWeight, MatchStrategy
from entity_search.domain.kinds import EntityKind
from entity_search.exceptions import InvalidQueryError
from entity_search.search.analyzers import get_analyzer
from entity_search.search.parser import QueryParseError, QueryParser, escape_literal, escape_wildcard
from entity_search.search.query import BooleanQuery, FuzzyQuery, Occur, Query, TermQuery, WildcardQuery
from entity_search.search.schema import TYPE_FIELD, Schema


logger = logging.getLogger(__name__)

DEFAULT_FUZZY_MIN_SIMILARITY = 0.6


def default_fields(fields: Sequence[FieldWeight]) -> tuple[tuple[str, float], ...]:
    """Distinct ``(field, boost)`` pairs in spec order; the first entry of a field wins."""

    seen: dict[str, float] = {}
    for weight in fields:
        seen.setdefault(weight.field_name, weight.boost)
    return tuple(seen.items())


def create_parser(
    schema: Schema,
    fields: Sequence[FieldWeight],
    *,
    fuzzy_min_similarity: float = DEFAULT_FUZZY_MIN_SIMILARITY,
) -> QueryParser:
    """Parser over every field of a kind's spec; built once per searcher and shared."""

    return QueryParser(
        schema,
        default_fields(fields),
        fuzzy_min_similarity=fuzzy_min_similarity,
        allow_leading_wildcard=True,
    )


def build_query(
    text: str,
    kind: EntityKind,
    fields: Sequence[FieldWeight],
    *,
    parser: QueryParser,
    min_similarity: float = DEFAULT_FUZZY_MIN_SIMILARITY,
) -> BooleanQuery | None:
    """Build the structured query for ``text`` restricted to ``kind``.

    Returns ``None`` when there is nothing to match (blank text, or text that
    analyzes to no terms and no wildcard/fuzzy fields apply), so callers can
    answer with an empty result without touching the index.

    Raises:
        InvalidQueryError: the escaped text still cannot be parsed, e.g. a
            bare ``AND`` operator.
    """
    stripped = text.strip()
    if not stripped:
        return None

    try:
        base = parser.parse(escape_literal(stripped))
    except QueryParseError as exc:
        raise InvalidQueryError(text, str(exc)) from exc

    field_queries: list[Query] = []
    if not (isinstance(base, BooleanQuery) and base.is_empty()):
        field_queries.append(base)

    pattern = f"*{escape_wildcard(stripped.lower())}*"
    for weight in fields:
        if weight.strategy == MatchStrategy.WILDCARD:
            field_queries.append(WildcardQuery(weight.field_name, pattern, boost=weight.boost))
        elif weight.strategy == MatchStrategy.FUZZY:
            analyzer = get_analyzer(parser.schema.analyzer_for(weight.field_name))
            field_queries.extend(
                FuzzyQuery(weight.field_name, token.text, min_similarity, boost=weight.boost)
                for token in analyzer(stripped)
            )

    if not field_queries:
        logger.debug("No matchable terms in %r for kind %s", text, kind.value)
        return None

    field_disjunction = BooleanQuery.of(*((query, Occur.SHOULD) for query in field_queries))
    return BooleanQuery.of(
        (field_disjunction, Occur.MUST),
        (TermQuery(TYPE_FIELD, kind.value), Occur.MUST),
    )
