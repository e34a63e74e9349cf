"""Document searcher capability and the shared execution path.

A searcher is the authority for one entity kind (or a family of kinds). It
owns that kind's field spec, builds the structured query with
:func:`~entity_search.builder.build_query` and runs it on the index. Index
access failures are raised as :class:`SearchExecutionError` so an outage never
looks like "no matches".
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
import logging

from entity_search.builder import DEFAULT_FUZZY_MIN_SIMILARITY, build_query, create_parser
from entity_search.domain.fields import FieldWeight
from entity_search.domain.kinds import EntityKind
from entity_search.domain.query import Query
from entity_search.domain.result import SearchResult
from entity_search.exceptions import ConfigurationError, SearchExecutionError
from entity_search.observability.metrics import SEARCH_LATENCY, SEARCH_REQUESTS, track_latency
from entity_search.observability.tracing import create_span
from entity_search.search.index import IndexAccessError, SearchIndex


logger = logging.getLogger(__name__)


class DocumentSearcher(ABC):
    """Capability contract used by the registry and dispatcher."""

    @abstractmethod
    def handles(self, kind: EntityKind) -> bool:
        """True when this searcher is an authority for ``kind``."""

    @abstractmethod
    def search(self, query: Query) -> SearchResult:
        """Return the requested page of matches for ``query``.

        Raises:
            InvalidQueryError: the text cannot be parsed even after escaping.
            SearchExecutionError: the index failed while executing the query.
        """

    @property
    def name(self) -> str:
        return type(self).__name__


class AbstractDocumentSearcher(DocumentSearcher):
    """Base implementation: field-weighted query, paged execution, id mapping.

    Subclasses declare ``KINDS`` and ``FIELDS``; the fuzzy similarity comes
    from settings and the index is injected.
    """

    KINDS: frozenset[EntityKind] = frozenset()
    FIELDS: tuple[FieldWeight, ...] = ()

    def __init__(
        self,
        index: SearchIndex,
        *,
        fuzzy_min_similarity: float = DEFAULT_FUZZY_MIN_SIMILARITY,
        kinds: Iterable[EntityKind] | None = None,
        fields: Sequence[FieldWeight] | None = None,
    ) -> None:
        self.index = index
        self.kinds = frozenset(kinds) if kinds is not None else self.KINDS
        self.fields = tuple(fields) if fields is not None else self.FIELDS
        if not self.kinds:
            raise ConfigurationError(f"{self.name} declares no entity kinds")
        if not self.fields:
            raise ConfigurationError(f"{self.name} declares no searchable fields")
        unknown = [weight.field_name for weight in self.fields if weight.field_name not in index.schema]
        if unknown:
            raise ConfigurationError(f"{self.name} searches fields missing from the index schema: {unknown}")
        self.fuzzy_min_similarity = fuzzy_min_similarity
        self._parser = create_parser(index.schema, self.fields, fuzzy_min_similarity=fuzzy_min_similarity)

    def handles(self, kind: EntityKind) -> bool:
        return kind in self.kinds

    def search(self, query: Query) -> SearchResult:
        kind = self._target_kind(query)
        structured = build_query(
            query.text,
            kind,
            self.fields,
            parser=self._parser,
            min_similarity=self.fuzzy_min_similarity,
        )
        if structured is None:
            SEARCH_REQUESTS.labels(kind=kind.value, outcome="blank").inc()
            return SearchResult.empty()

        with (
            create_span("entity_search.searcher", attributes={"searcher": self.name, "kind": kind.value}) as span,
            track_latency(SEARCH_LATENCY, kind=kind.value),
        ):
            try:
                top = self.index.run_query(structured, offset=query.page.offset, size=query.page.size)
            except (IndexAccessError, OSError) as exc:
                SEARCH_REQUESTS.labels(kind=kind.value, outcome="error").inc()
                logger.error("Index failure while searching %s documents: %s", kind.value, exc)
                raise SearchExecutionError(kind, str(exc)) from exc
            span.set_attribute("total_hits", top.total_hits)

        SEARCH_REQUESTS.labels(kind=kind.value, outcome="ok").inc()
        logger.debug("%s: %d hit(s) for %r, returning %d", self.name, top.total_hits, query.text, len(top.hits))
        return SearchResult(document_ids=tuple(top.doc_ids), total_hits=top.total_hits)

    def _target_kind(self, query: Query) -> EntityKind:
        if query.kind is not None:
            if not self.handles(query.kind):
                raise ConfigurationError(f"{self.name} cannot search {query.kind.value} documents")
            return query.kind
        if len(self.kinds) == 1:
            return next(iter(self.kinds))
        raise ConfigurationError(f"{self.name} handles several kinds; the query must name one")
