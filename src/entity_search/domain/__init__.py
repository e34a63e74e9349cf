"""Domain value objects for entity search."""

from entity_search.domain.fields import FieldWeight, MatchStrategy
from entity_search.domain.kinds import EntityKind
from entity_search.domain.query import PageSpec, Query
from entity_search.domain.result import SearchResult


__all__ = [
    "EntityKind",
    "FieldWeight",
    "MatchStrategy",
    "PageSpec",
    "Query",
    "SearchResult",
]
