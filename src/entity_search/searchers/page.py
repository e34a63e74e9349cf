"""Searcher for documentation page documents."""

from entity_search.domain.fields import FieldWeight, MatchStrategy
from entity_search.domain.kinds import EntityKind
from entity_search.searchers.base import AbstractDocumentSearcher


class PageDocumentSearcher(AbstractDocumentSearcher):
    """Page names are boosted over body content; bodies are matched on analyzed terms only."""

    KINDS = frozenset({EntityKind.PAGE})
    FIELDS = (
        FieldWeight(field_name="name", strategy=MatchStrategy.WILDCARD, boost=2.0),
        FieldWeight(field_name="content", strategy=MatchStrategy.EXACT),
    )
