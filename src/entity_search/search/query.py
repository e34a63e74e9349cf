"""Structured query values understood by :class:`~entity_search.search.index.SearchIndex`.

Queries are immutable trees. ``BooleanQuery`` combines clauses with the
classic Lucene occurrence flags:

- ``MUST``: the clause has to match and contributes to the score
- ``SHOULD``: optional; when a boolean query has no MUST clause at least one
  SHOULD clause has to match
- ``MUST_NOT``: documents matching the clause are excluded

Every query carries a ``boost`` multiplied into the score of its matches.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class Occur(str, Enum):
    MUST = "must"
    SHOULD = "should"
    MUST_NOT = "must_not"


@dataclass(frozen=True)
class TermQuery:
    """Exact match of one already-analyzed term in a field."""

    field: str
    term: str
    boost: float = 1.0

    def __str__(self) -> str:
        return _with_boost(f"{self.field}:{self.term}", self.boost)


@dataclass(frozen=True)
class PhraseQuery:
    """Analyzed terms that must appear at consecutive positions."""

    field: str
    terms: tuple[str, ...]
    boost: float = 1.0

    def __str__(self) -> str:
        return _with_boost(f'{self.field}:"{" ".join(self.terms)}"', self.boost)


@dataclass(frozen=True)
class FuzzyQuery:
    """Vocabulary terms within an edit-distance similarity of ``term``."""

    field: str
    term: str
    min_similarity: float = 0.6
    boost: float = 1.0

    def __str__(self) -> str:
        return _with_boost(f"{self.field}:{self.term}~{self.min_similarity:g}", self.boost)


@dataclass(frozen=True)
class WildcardQuery:
    """Pattern match over a field's terms.

    ``*`` matches any run of characters and ``?`` a single character; a
    backslash makes the following character literal. Matches are constant
    scored (``boost``), as with Lucene's constant-score rewrite.
    """

    field: str
    pattern: str
    boost: float = 1.0

    def __str__(self) -> str:
        return _with_boost(f"{self.field}:{self.pattern}", self.boost)


@dataclass(frozen=True)
class BooleanClause:
    query: Query
    occur: Occur


@dataclass(frozen=True)
class BooleanQuery:
    clauses: tuple[BooleanClause, ...]
    boost: float = 1.0

    @classmethod
    def of(cls, *pairs: tuple[Query, Occur], boost: float = 1.0) -> BooleanQuery:
        return cls(tuple(BooleanClause(query, occur) for query, occur in pairs), boost=boost)

    def is_empty(self) -> bool:
        return not self.clauses

    def __str__(self) -> str:
        prefixes = {Occur.MUST: "+", Occur.SHOULD: "", Occur.MUST_NOT: "-"}
        parts = []
        for clause in self.clauses:
            rendered = str(clause.query)
            if isinstance(clause.query, BooleanQuery):
                rendered = f"({rendered})"
            parts.append(prefixes[clause.occur] + rendered)
        joined = " ".join(parts)
        if self.boost == 1.0:
            return joined
        return f"({joined})^{self.boost:g}"


Query = Union[TermQuery, PhraseQuery, FuzzyQuery, WildcardQuery, BooleanQuery]


def _with_boost(rendered: str, boost: float) -> str:
    if boost == 1.0:
        return rendered
    return f"{rendered}^{boost:g}"
