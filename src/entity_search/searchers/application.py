"""Searcher for application documents."""

from entity_search.domain.fields import FieldWeight, MatchStrategy
from entity_search.domain.kinds import EntityKind
from entity_search.searchers.base import AbstractDocumentSearcher


class ApplicationDocumentSearcher(AbstractDocumentSearcher):
    KINDS = frozenset({EntityKind.APPLICATION})
    FIELDS = (
        FieldWeight(field_name="name", strategy=MatchStrategy.WILDCARD, boost=3.0),
        FieldWeight(field_name="name", strategy=MatchStrategy.FUZZY, boost=1.5),
        FieldWeight(field_name="description", strategy=MatchStrategy.EXACT),
        FieldWeight(field_name="owner", strategy=MatchStrategy.EXACT, boost=0.5),
    )
