"""In-memory inverted index executing structured queries.

The index keeps an immutable :class:`IndexSnapshot` (postings, field lengths
and stored fields keyed by an internal document number). Writers serialize on
a lock, derive a new snapshot copy-on-write and publish it with a single
reference swap; readers grab the current snapshot without locking, so a search
never observes a half-applied write.

Document numbers grow monotonically. Updating a document deletes the old
number and assigns a new one, so index order (used to break score ties) is
insertion order of the latest version.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from functools import lru_cache
import heapq
import logging
import re
import threading
from types import MappingProxyType
from typing import Any

from entity_search.search.analyzers import Token, get_analyzer
from entity_search.search.fuzzy import expand_fuzzy
from entity_search.search.parser import escape_literal as _escape_literal
from entity_search.search.query import (
    BooleanQuery,
    FuzzyQuery,
    Occur,
    PhraseQuery,
    Query,
    TermQuery,
    WildcardQuery,
)
from entity_search.search.schema import ID_FIELD, TYPE_FIELD, Schema
from entity_search.search.scoring import FieldStats, bm25, idf


logger = logging.getLogger(__name__)

MAX_FUZZY_EXPANSIONS = 50
_POSITION_GAP = 100

Postings = Mapping[str, Mapping[str, Mapping[int, tuple[int, ...]]]]


class IndexAccessError(RuntimeError):
    """Raised when the index cannot serve a read or write."""


class IndexClosedError(IndexAccessError):
    """Raised when the index is used after :meth:`SearchIndex.close`."""


class DocumentError(ValueError):
    """Raised for documents that cannot be indexed."""


@dataclass(frozen=True)
class ScoredHit:
    doc_id: str
    score: float


@dataclass(frozen=True)
class TopDocs:
    """One page of hits plus the total number of matching documents."""

    hits: tuple[ScoredHit, ...]
    total_hits: int

    @property
    def doc_ids(self) -> list[str]:
        return [hit.doc_id for hit in self.hits]


@dataclass(frozen=True)
class IndexSnapshot:
    """Immutable point-in-time view of the index."""

    postings: Postings = field(default_factory=lambda: MappingProxyType({}))
    field_lengths: Mapping[str, Mapping[int, int]] = field(default_factory=lambda: MappingProxyType({}))
    stored: Mapping[int, Mapping[str, Any]] = field(default_factory=lambda: MappingProxyType({}))
    doc_numbers: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    next_doc_number: int = 0

    @property
    def doc_count(self) -> int:
        return len(self.doc_numbers)

    def field_stats(self, field_name: str) -> FieldStats:
        lengths = self.field_lengths.get(field_name, {})
        return FieldStats(total_terms=sum(lengths.values()), document_count=len(lengths))


class _SnapshotWriter:
    """Copy-on-write builder deriving a new snapshot from a base snapshot."""

    def __init__(self, schema: Schema, base: IndexSnapshot) -> None:
        self.schema = schema
        self._postings: dict[str, Any] = dict(base.postings)
        self._field_lengths: dict[str, Any] = dict(base.field_lengths)
        self._stored = dict(base.stored)
        self._doc_numbers = dict(base.doc_numbers)
        self._next = base.next_doc_number
        self._copied: set[tuple[str, ...]] = set()

    def add(self, document: Mapping[str, Any]) -> str:
        doc_id = _required(document, ID_FIELD)
        _required(document, TYPE_FIELD)
        self.remove(doc_id)

        doc_number = self._next
        self._next += 1
        stored: dict[str, Any] = {}
        for schema_field in self.schema:
            value = document.get(schema_field.name)
            if value is None:
                continue
            if schema_field.stored:
                stored[schema_field.name] = value
            tokens = _analyze(schema_field.analyzer_name, value)
            if not tokens:
                continue
            self._lengths_for(schema_field.name)[doc_number] = len(tokens)
            positions: dict[str, list[int]] = {}
            for token in tokens:
                positions.setdefault(token.text, []).append(token.position)
            for term, term_positions in positions.items():
                self._term_postings(schema_field.name, term)[doc_number] = tuple(term_positions)

        ignored = set(document) - {f.name for f in self.schema}
        if ignored:
            logger.debug("Ignoring fields %s not declared in schema '%s'", sorted(ignored), self.schema.name)

        stored[ID_FIELD] = doc_id
        self._stored[doc_number] = MappingProxyType(stored)
        self._doc_numbers[doc_id] = doc_number
        return doc_id

    def remove(self, doc_id: str) -> bool:
        doc_number = self._doc_numbers.pop(doc_id, None)
        if doc_number is None:
            return False
        self._stored.pop(doc_number, None)
        for field_name in list(self._field_lengths):
            if doc_number in self._field_lengths[field_name]:
                self._lengths_for(field_name).pop(doc_number, None)
        for field_name, terms in list(self._postings.items()):
            for term, docs in list(terms.items()):
                if doc_number not in docs:
                    continue
                term_docs = self._term_postings(field_name, term)
                del term_docs[doc_number]
                if not term_docs:
                    del self._field_postings(field_name)[term]
                    self._copied.discard(("term", field_name, term))
        return True

    def build(self) -> IndexSnapshot:
        return IndexSnapshot(
            postings=MappingProxyType(self._postings),
            field_lengths=MappingProxyType(self._field_lengths),
            stored=MappingProxyType(self._stored),
            doc_numbers=MappingProxyType(self._doc_numbers),
            next_doc_number=self._next,
        )

    def _field_postings(self, field_name: str) -> dict[str, Any]:
        key = ("postings", field_name)
        if key not in self._copied:
            self._postings[field_name] = dict(self._postings.get(field_name, {}))
            self._copied.add(key)
        return self._postings[field_name]

    def _term_postings(self, field_name: str, term: str) -> dict[int, tuple[int, ...]]:
        terms = self._field_postings(field_name)
        key = ("term", field_name, term)
        if key not in self._copied:
            terms[term] = dict(terms.get(term, {}))
            self._copied.add(key)
        return terms[term]

    def _lengths_for(self, field_name: str) -> dict[int, int]:
        key = ("lengths", field_name)
        if key not in self._copied:
            self._field_lengths[field_name] = dict(self._field_lengths.get(field_name, {}))
            self._copied.add(key)
        return self._field_lengths[field_name]


class SearchIndex:
    """Thread-safe in-memory index over a fixed schema.

    Example:
        index = SearchIndex(schema)
        index.upsert({"id": "u1", "type": "user", "firstname": "John"})
        top = index.run_query(TermQuery("firstname", "john"), offset=0, size=10)
    """

    def __init__(self, schema: Schema) -> None:
        self.schema = schema
        self._snapshot = IndexSnapshot()
        self._write_lock = threading.Lock()
        self._closed = False

    @staticmethod
    def escape_literal(text: str) -> str:
        return _escape_literal(text)

    def snapshot(self) -> IndexSnapshot:
        if self._closed:
            raise IndexClosedError("Index is closed")
        return self._snapshot

    @property
    def doc_count(self) -> int:
        return self.snapshot().doc_count

    def __len__(self) -> int:
        return self.doc_count

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self.snapshot().doc_numbers

    def get_document(self, doc_id: str) -> Mapping[str, Any] | None:
        snapshot = self.snapshot()
        doc_number = snapshot.doc_numbers.get(doc_id)
        if doc_number is None:
            return None
        return snapshot.stored.get(doc_number)

    def upsert(self, document: Mapping[str, Any]) -> str:
        """Insert or replace one document keyed by its ``id`` field."""

        return self.upsert_many([document])[0]

    def upsert_many(self, documents: Iterable[Mapping[str, Any]]) -> list[str]:
        with self._write_lock:
            writer = _SnapshotWriter(self.schema, self.snapshot())
            doc_ids = [writer.add(document) for document in documents]
            self._snapshot = writer.build()
        logger.debug("Indexed %d document(s) into '%s'", len(doc_ids), self.schema.name)
        return doc_ids

    def delete(self, doc_id: str) -> bool:
        """Remove one document; returns False when it was not indexed."""

        with self._write_lock:
            writer = _SnapshotWriter(self.schema, self.snapshot())
            removed = writer.remove(doc_id)
            if removed:
                self._snapshot = writer.build()
        return removed

    def close(self) -> None:
        with self._write_lock:
            self._closed = True
            self._snapshot = IndexSnapshot()

    def run_query(self, query: Query, offset: int, size: int) -> TopDocs:
        """Execute ``query`` and return the ``[offset, offset + size)`` window of ranked hits.

        Only ``offset + size`` hits are ranked (partial heap selection); the
        total hit count is the size of the match set.
        """
        if offset < 0:
            raise ValueError(f"offset must be >= 0, got {offset}")
        if size < 1:
            raise ValueError(f"size must be >= 1, got {size}")

        snapshot = self.snapshot()
        scores = _Evaluator(snapshot).evaluate(query)
        top = heapq.nsmallest(offset + size, scores.items(), key=lambda item: (-item[1], item[0]))
        hits = tuple(ScoredHit(snapshot.stored[number][ID_FIELD], score) for number, score in top[offset:])
        return TopDocs(hits=hits, total_hits=len(scores))


class _Evaluator:
    """Evaluate a query tree against one snapshot into ``{doc_number: score}``."""

    def __init__(self, snapshot: IndexSnapshot) -> None:
        self.snapshot = snapshot
        self._stats: dict[str, FieldStats] = {}

    def evaluate(self, query: Query) -> dict[int, float]:
        if isinstance(query, BooleanQuery):
            return self._boolean(query)
        if isinstance(query, TermQuery):
            return self._term(query.field, query.term, query.boost)
        if isinstance(query, PhraseQuery):
            return self._phrase(query)
        if isinstance(query, FuzzyQuery):
            return self._fuzzy(query)
        if isinstance(query, WildcardQuery):
            return self._wildcard(query)
        raise TypeError(f"Unsupported query type: {type(query).__name__}")

    def _field_stats(self, field_name: str) -> FieldStats:
        if field_name not in self._stats:
            self._stats[field_name] = self.snapshot.field_stats(field_name)
        return self._stats[field_name]

    def _bm25(self, field_name: str, doc_number: int, tf: int) -> float:
        stats = self._field_stats(field_name)
        doc_length = self.snapshot.field_lengths.get(field_name, {}).get(doc_number, tf)
        return bm25(tf, doc_length, stats.average_length)

    def _term(self, field_name: str, term: str, boost: float) -> dict[int, float]:
        docs = self.snapshot.postings.get(field_name, {}).get(term)
        if not docs:
            return {}
        weight = idf(len(docs), self.snapshot.doc_count) * boost
        return {number: weight * self._bm25(field_name, number, len(positions)) for number, positions in docs.items()}

    def _phrase(self, query: PhraseQuery) -> dict[int, float]:
        terms = self.snapshot.postings.get(query.field, {})
        per_term = [terms.get(term) for term in query.terms]
        if not all(per_term):
            return {}
        common = set(per_term[0]).intersection(*per_term[1:])
        weight = sum(idf(len(docs), self.snapshot.doc_count) for docs in per_term) * query.boost
        scores: dict[int, float] = {}
        for number in common:
            starts = set(per_term[0][number])
            for offset, docs in enumerate(per_term[1:], start=1):
                starts &= {position - offset for position in docs[number]}
            if starts:
                scores[number] = weight * self._bm25(query.field, number, len(starts))
        return scores

    def _fuzzy(self, query: FuzzyQuery) -> dict[int, float]:
        vocabulary = self.snapshot.postings.get(query.field, {})
        expansions = expand_fuzzy(query.term, vocabulary.keys(), query.min_similarity)[:MAX_FUZZY_EXPANSIONS]
        scores: dict[int, float] = {}
        for candidate, candidate_similarity in expansions:
            for number, score in self._term(query.field, candidate, query.boost * candidate_similarity).items():
                if score > scores.get(number, 0.0):
                    scores[number] = score
        return scores

    def _wildcard(self, query: WildcardQuery) -> dict[int, float]:
        matcher = compile_wildcard(query.pattern)
        scores: dict[int, float] = {}
        for term, docs in self.snapshot.postings.get(query.field, {}).items():
            if matcher.fullmatch(term):
                for number in docs:
                    scores[number] = query.boost
        return scores

    def _boolean(self, query: BooleanQuery) -> dict[int, float]:
        required = [self.evaluate(c.query) for c in query.clauses if c.occur == Occur.MUST]
        optional = [self.evaluate(c.query) for c in query.clauses if c.occur == Occur.SHOULD]
        prohibited = [self.evaluate(c.query) for c in query.clauses if c.occur == Occur.MUST_NOT]

        if required:
            candidates = set(required[0]).intersection(*required[1:])
        elif optional:
            candidates = set().union(*optional)
        else:
            return {}
        for excluded in prohibited:
            candidates.difference_update(excluded)

        scores: dict[int, float] = {}
        for number in candidates:
            total = sum(scores_[number] for scores_ in required)
            total += sum(scores_.get(number, 0.0) for scores_ in optional)
            scores[number] = total * query.boost
        return scores


@lru_cache(maxsize=1024)
def compile_wildcard(pattern: str) -> re.Pattern[str]:
    """Translate a wildcard pattern (``*``, ``?``, backslash escapes) into a regex."""

    parts: list[str] = []
    chars = iter(pattern)
    for char in chars:
        if char == "\\":
            parts.append(re.escape(next(chars, "\\")))
        elif char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


def _required(document: Mapping[str, Any], name: str) -> str:
    value = document.get(name)
    if value is None or not str(value).strip():
        msg = f"Document is missing required field '{name}'"
        raise DocumentError(msg)
    return str(value)


def _analyze(analyzer_name: str, value: Any) -> list[Token]:
    analyzer = get_analyzer(analyzer_name)
    values: Sequence[Any] = value if isinstance(value, (list, tuple)) else [value]
    tokens: list[Token] = []
    base = 0
    for entry in values:
        if entry is None:
            continue
        analyzed = analyzer(str(entry))
        tokens.extend(
            Token(token.text, base + token.position, token.start_char, token.end_char) for token in analyzed
        )
        # multi-valued fields: keep a gap so phrases never span two values
        base += len(analyzed) + _POSITION_GAP
    return tokens
