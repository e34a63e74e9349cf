"""Configurable searcher for kinds without a dedicated implementation."""

from collections.abc import Iterable, Sequence

from entity_search.builder import DEFAULT_FUZZY_MIN_SIMILARITY
from entity_search.domain.fields import FieldWeight
from entity_search.domain.kinds import EntityKind
from entity_search.search.index import SearchIndex
from entity_search.searchers.base import AbstractDocumentSearcher


class GenericDocumentSearcher(AbstractDocumentSearcher):
    """Searches a family of kinds with one field spec given at construction.

    Useful as a fallback registered next to specialized searchers, or for a
    new kind whose documents only need a handful of fields searched.
    """

    def __init__(
        self,
        index: SearchIndex,
        kinds: Iterable[EntityKind],
        fields: Sequence[FieldWeight],
        *,
        fuzzy_min_similarity: float = DEFAULT_FUZZY_MIN_SIMILARITY,
    ) -> None:
        super().__init__(index, fuzzy_min_similarity=fuzzy_min_similarity, kinds=kinds, fields=fields)

    @property
    def name(self) -> str:
        labels = ",".join(sorted(kind.value for kind in self.kinds))
        return f"GenericDocumentSearcher[{labels}]"
