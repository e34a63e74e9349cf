"""Search response envelope."""

from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field, model_validator

from entity_search.domain.kinds import EntityKind


class SearchResult(BaseModel):
    """Ordered document ids of the requested page plus the total hit count.

    ``document_ids`` are in relevance order (highest score first, ties in
    index order). ``total_hits`` counts every match, not only this page.
    ``failed_kinds`` lists kinds skipped during an unfiltered search because
    their searcher failed; a non-empty value marks the result as partial.
    """

    model_config = ConfigDict(frozen=True)

    document_ids: tuple[str, ...] = ()
    total_hits: int = Field(default=0, ge=0)
    failed_kinds: tuple[EntityKind, ...] = ()

    @model_validator(mode="after")
    def _check_counts(self) -> "SearchResult":
        if self.total_hits < len(self.document_ids):
            raise ValueError(
                f"total_hits ({self.total_hits}) cannot be lower than the number of returned ids "
                f"({len(self.document_ids)})"
            )
        return self

    @classmethod
    def empty(cls) -> "SearchResult":
        return cls()

    @classmethod
    def merge(cls, results: Sequence["SearchResult"], size: int, *, distinct: bool = False) -> "SearchResult":
        """Concatenate ids in the given order, truncate to ``size`` and sum totals.

        With ``distinct`` an id already taken from an earlier result is dropped
        and no longer counted in ``total_hits``. Overlap outside the fetched
        pages is not visible, so the total is then an upper bound.
        """

        document_ids: list[str] = []
        seen: set[str] = set()
        duplicates = 0
        failed: list[EntityKind] = []
        for result in results:
            for document_id in result.document_ids:
                if distinct and document_id in seen:
                    duplicates += 1
                    continue
                seen.add(document_id)
                document_ids.append(document_id)
            failed.extend(kind for kind in result.failed_kinds if kind not in failed)
        return cls(
            document_ids=tuple(document_ids[:size]),
            total_hits=sum(result.total_hits for result in results) - duplicates,
            failed_kinds=tuple(failed),
        )

    def has_results(self) -> bool:
        return bool(self.document_ids)

    def is_partial(self) -> bool:
        return bool(self.failed_kinds)
