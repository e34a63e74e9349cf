"""Searcher for API documents."""

from entity_search.domain.fields import FieldWeight, MatchStrategy
from entity_search.domain.kinds import EntityKind
from entity_search.searchers.base import AbstractDocumentSearcher


class ApiDocumentSearcher(AbstractDocumentSearcher):
    KINDS = frozenset({EntityKind.API})
    FIELDS = (
        FieldWeight(field_name="name", strategy=MatchStrategy.WILDCARD, boost=4.0),
        FieldWeight(field_name="name", strategy=MatchStrategy.FUZZY, boost=2.0),
        FieldWeight(field_name="labels", strategy=MatchStrategy.WILDCARD, boost=2.0),
        FieldWeight(field_name="tags", strategy=MatchStrategy.EXACT, boost=2.0),
        FieldWeight(field_name="description", strategy=MatchStrategy.EXACT),
        FieldWeight(field_name="owner", strategy=MatchStrategy.EXACT, boost=0.5),
    )
