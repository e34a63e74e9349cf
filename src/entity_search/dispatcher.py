"""Search dispatch across entity kinds.

``SearchDispatcher.execute`` is the entry point callers use:

- query with a kind: run the searcher(s) registered for that kind; errors
  propagate (fail fast); several searchers for one kind are merged without
  repeating a document id
- query without a kind: run every registered kind with the same text and page
  window and merge by concatenation in registration order, truncated to the
  page size, with summed totals; failing kinds are skipped unless none
  succeeded, in which case the first error is raised

The merge does not re-rank across kinds: scores from different field specs are
not comparable, so earlier-registered kinds win page boundaries.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

from entity_search.domain.kinds import EntityKind
from entity_search.domain.query import Query
from entity_search.domain.result import SearchResult
from entity_search.exceptions import ConfigurationError, InvalidQueryError, SearchExecutionError
from entity_search.observability.context import (
    generate_span_id,
    generate_trace_id,
    set_trace_context,
    trace_context,
)
from entity_search.observability.metrics import SEARCH_PARTICIPANT_FAILURES
from entity_search.observability.tracing import create_span


if TYPE_CHECKING:
    from entity_search.config import Settings
    from entity_search.registry import SearcherRegistry


logger = logging.getLogger(__name__)

FailurePolicy = Literal["skip", "fail"]


class SearchDispatcher:
    """Resolve searchers through the registry and aggregate their results."""

    def __init__(
        self,
        registry: SearcherRegistry,
        *,
        max_page_size: int = 100,
        failure_policy: FailurePolicy = "skip",
    ) -> None:
        self.registry = registry
        self.max_page_size = max_page_size
        self.failure_policy = failure_policy

    @classmethod
    def from_settings(cls, registry: SearcherRegistry, settings: Settings) -> SearchDispatcher:
        return cls(
            registry,
            max_page_size=settings.max_page_size,
            failure_policy=settings.multi_kind_failure_policy,
        )

    def execute(self, query: Query) -> SearchResult:
        """Run ``query`` and return one page of document ids.

        Raises:
            InvalidQueryError: page larger than the configured maximum,
                unparsable text on a kind-restricted query, or text rejected by
                every participant of an unfiltered query.
            SearchExecutionError: index failure on a kind-restricted query, on
                any participant under the ``fail`` policy, or when no
                participant of an unfiltered query succeeded.
        """
        if query.page.size > self.max_page_size:
            raise InvalidQueryError(
                query.text,
                f"page size {query.page.size} exceeds the maximum of {self.max_page_size}",
            )
        if query.is_blank():
            return SearchResult.empty()

        label = query.kind.value if query.kind is not None else "all"
        token = set_trace_context(generate_trace_id(), generate_span_id(), kind=label)
        try:
            with create_span("entity_search.dispatch", attributes={"kind": label}) as span:
                if query.kind is not None:
                    result = self._execute_single(query, query.kind)
                else:
                    result = self._execute_all(query)
                span.set_attribute("total_hits", result.total_hits)
        finally:
            trace_context.reset(token)
        return result

    def _execute_single(self, query: Query, kind: EntityKind) -> SearchResult:
        searchers = self.registry.resolve(kind)
        if not searchers:
            logger.debug("No searcher registered for %s documents", kind.value)
            return SearchResult.empty()
        if len(searchers) > 1:
            logger.warning(
                "%d searchers registered for %s documents (%s); merging their results",
                len(searchers),
                kind.value,
                ", ".join(searcher.name for searcher in searchers),
            )
        results = [searcher.search(query) for searcher in searchers]
        if len(results) == 1:
            return results[0]
        # same kind, same index: one document may come back from several searchers
        return SearchResult.merge(results, query.page.size, distinct=True)

    def _execute_all(self, query: Query) -> SearchResult:
        results: list[SearchResult] = []
        failed: list[EntityKind] = []
        outages: list[SearchExecutionError] = []
        rejections: list[InvalidQueryError] = []
        kinds = self.registry.kinds()
        if not kinds:
            raise ConfigurationError("No searcher has been registered")
        for kind in kinds:
            kind_query = query.for_kind(kind)
            for searcher in self.registry.resolve(kind):
                try:
                    results.append(searcher.search(kind_query))
                except (InvalidQueryError, SearchExecutionError) as exc:
                    if self.failure_policy == "fail":
                        raise
                    if isinstance(exc, SearchExecutionError):
                        outages.append(exc)
                    else:
                        rejections.append(exc)
                    if kind not in failed:
                        failed.append(kind)
                    SEARCH_PARTICIPANT_FAILURES.labels(kind=kind.value, error_type=type(exc).__name__).inc()
                    logger.warning("Skipping %s results from %s: %s", kind.value, searcher.name, exc)

        if not results and (outages or rejections):
            # no participant succeeded, an outage outranks a rejected text
            raise outages[0] if outages else rejections[0]

        merged = SearchResult.merge(results, query.page.size)
        if failed:
            merged = merged.model_copy(update={"failed_kinds": tuple(failed)})
        return merged
