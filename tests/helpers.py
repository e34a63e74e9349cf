"""Test doubles and sample data shared across the unit suite."""

from __future__ import annotations

from entity_search.domain.kinds import EntityKind
from entity_search.domain.query import PageSpec, Query
from entity_search.domain.result import SearchResult
from entity_search.exceptions import SearchExecutionError
from entity_search.searchers.base import DocumentSearcher


SAMPLE_ENTITIES = [
    {"id": "u-john", "type": "user", "firstname": "John", "lastname": "Smith", "email": "john.smith@example.com"},
    {"id": "u-jane", "type": "user", "firstname": "Jane", "lastname": "Doe", "email": "jane@example.com"},
    {"id": "u-johan", "type": "user", "firstname": "Johan", "lastname": "Berg", "email": "jberg@example.org"},
    {
        "id": "api-pay",
        "type": "api",
        "name": "Payments",
        "description": "Process card payments and refunds",
        "owner": {"displayname": "John Smith"},
        "labels": ["finance", "cards"],
        "tags": ["internal"],
    },
    {
        "id": "api-weather",
        "type": "api",
        "name": "Weather",
        "description": "Forecasts for any city",
        "owner": "Jane Doe",
        "labels": ["public"],
    },
    {
        "id": "app-mobile",
        "type": "application",
        "name": "Mobile Banking",
        "description": "Consumes the payments api",
        "owner": "Jane Doe",
    },
    {"id": "page-start", "type": "page", "name": "Getting started", "content": "Subscribe to the payments api"},
]


def make_query(text: str, kind: EntityKind | None = None, *, offset: int = 0, size: int = 10) -> Query:
    return Query(text=text, kind=kind, page=PageSpec(offset=offset, size=size))


class FakeSearcher(DocumentSearcher):
    """Searcher stub returning a canned result (or raising) and recording calls."""

    def __init__(
        self,
        kinds: set[EntityKind],
        result: SearchResult | None = None,
        *,
        error: Exception | None = None,
        label: str = "FakeSearcher",
    ) -> None:
        self.kinds = frozenset(kinds)
        self.result = result or SearchResult.empty()
        self.error = error
        self.label = label
        self.calls: list[Query] = []

    @property
    def name(self) -> str:
        return self.label

    def handles(self, kind: EntityKind) -> bool:
        return kind in self.kinds

    def search(self, query: Query) -> SearchResult:
        self.calls.append(query)
        if self.error is not None:
            raise self.error
        return self.result


def failing_searcher(kind: EntityKind) -> FakeSearcher:
    return FakeSearcher({kind}, error=SearchExecutionError(kind, "index unavailable"), label=f"Failing[{kind.value}]")
