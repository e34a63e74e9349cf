"""Searcher for user documents."""

from entity_search.domain.fields import FieldWeight, MatchStrategy
from entity_search.domain.kinds import EntityKind
from entity_search.searchers.base import AbstractDocumentSearcher


class UserDocumentSearcher(AbstractDocumentSearcher):
    """Names and e-mail are matched as substrings so partial input ("joh") finds users."""

    KINDS = frozenset({EntityKind.USER})
    FIELDS = (
        FieldWeight(field_name="firstname", strategy=MatchStrategy.WILDCARD),
        FieldWeight(field_name="lastname", strategy=MatchStrategy.WILDCARD),
        FieldWeight(field_name="email", strategy=MatchStrategy.WILDCARD),
        FieldWeight(field_name="firstname", strategy=MatchStrategy.FUZZY),
        FieldWeight(field_name="lastname", strategy=MatchStrategy.FUZZY),
        FieldWeight(field_name="displayname", strategy=MatchStrategy.EXACT),
    )
