"""Type-dispatched full-text search over platform entities (APIs, applications, users, pages)."""

from entity_search.bootstrap import SearchStack, build_search_stack, create_default_registry
from entity_search.config import Settings
from entity_search.dispatcher import SearchDispatcher
from entity_search.domain import EntityKind, FieldWeight, MatchStrategy, PageSpec, Query, SearchResult
from entity_search.exceptions import (
    ConfigurationError,
    EntitySearchError,
    InvalidQueryError,
    SearchExecutionError,
)
from entity_search.registry import SearcherRegistry


__all__ = [
    "ConfigurationError",
    "EntityKind",
    "EntitySearchError",
    "FieldWeight",
    "InvalidQueryError",
    "MatchStrategy",
    "PageSpec",
    "Query",
    "SearchDispatcher",
    "SearchExecutionError",
    "SearchResult",
    "SearchStack",
    "SearcherRegistry",
    "Settings",
    "build_search_stack",
    "create_default_registry",
]
