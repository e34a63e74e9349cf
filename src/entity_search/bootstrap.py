"""Wiring of index, searchers, registry and dispatcher from settings."""

from __future__ import annotations

from dataclasses import dataclass
import logging

from entity_search.config import Settings
from entity_search.dispatcher import SearchDispatcher
from entity_search.domain.kinds import EntityKind
from entity_search.domain.query import PageSpec, Query
from entity_search.domain.result import SearchResult
from entity_search.registry import SearcherRegistry
from entity_search.search.index import SearchIndex
from entity_search.search.schema import Schema, create_default_schema
from entity_search.searchers import (
    ApiDocumentSearcher,
    ApplicationDocumentSearcher,
    PageDocumentSearcher,
    UserDocumentSearcher,
)
from entity_search.transformers import EntityIndexer


logger = logging.getLogger(__name__)


def create_default_registry(index: SearchIndex, *, fuzzy_min_similarity: float = 0.6) -> SearcherRegistry:
    """Register one searcher per built-in kind and freeze the registry.

    Registration order is the merge order of unfiltered searches.
    """
    registry = SearcherRegistry()
    registry.register(EntityKind.API, ApiDocumentSearcher(index, fuzzy_min_similarity=fuzzy_min_similarity))
    registry.register(
        EntityKind.APPLICATION, ApplicationDocumentSearcher(index, fuzzy_min_similarity=fuzzy_min_similarity)
    )
    registry.register(EntityKind.USER, UserDocumentSearcher(index, fuzzy_min_similarity=fuzzy_min_similarity))
    registry.register(EntityKind.PAGE, PageDocumentSearcher(index, fuzzy_min_similarity=fuzzy_min_similarity))
    registry.freeze()
    return registry


@dataclass
class SearchStack:
    """Everything a caller needs to index entities and run searches."""

    settings: Settings
    index: SearchIndex
    registry: SearcherRegistry
    dispatcher: SearchDispatcher
    indexer: EntityIndexer

    def search(
        self,
        text: str,
        kind: EntityKind | None = None,
        *,
        offset: int = 0,
        size: int | None = None,
    ) -> SearchResult:
        page = PageSpec(offset=offset, size=size if size is not None else self.settings.default_page_size)
        return self.dispatcher.execute(Query(text=text, kind=kind, page=page))

    def close(self) -> None:
        self.index.close()


def build_search_stack(settings: Settings | None = None, *, schema: Schema | None = None) -> SearchStack:
    settings = settings or Settings()
    index = SearchIndex(schema or create_default_schema())
    registry = create_default_registry(index, fuzzy_min_similarity=settings.fuzzy_min_similarity)
    dispatcher = SearchDispatcher.from_settings(registry, settings)
    logger.debug(
        "Search stack ready: %d searchers kinds=%s policy=%s",
        len(registry),
        [kind.value for kind in registry.kinds()],
        settings.multi_kind_failure_policy,
    )
    return SearchStack(
        settings=settings,
        index=index,
        registry=registry,
        dispatcher=dispatcher,
        indexer=EntityIndexer(index),
    )
