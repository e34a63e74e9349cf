"""Classic query-syntax parser for the entity index.

Supports the subset of Lucene's classic syntax the entity searchers rely on:

- bare terms and ``"quoted phrases"``, analyzed per target field
- ``+term`` / ``-term`` / ``NOT term`` / ``!term`` modifiers
- ``AND`` / ``OR`` (and ``&&`` / ``||``) conjunctions, OR being the default
- ``field:term`` and ``field:(...)`` prefixes, ``(...)`` grouping
- ``term~`` / ``term~0.7`` fuzzy terms and ``te*m`` / ``te?m`` wildcards
- ``term^2`` boosts
- backslash escapes; :func:`escape_literal` escapes every reserved character
  so arbitrary user text is parsed as plain terms

Range queries and phrase proximity are rejected with a parse error.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from enum import Enum

from entity_search.search.analyzers import get_analyzer
from entity_search.search.query import (
    BooleanClause,
    BooleanQuery,
    FuzzyQuery,
    Occur,
    PhraseQuery,
    Query,
    TermQuery,
    WildcardQuery,
)
from entity_search.search.schema import Schema


RESERVED_CHARACTERS = frozenset('\\+-!():^[]"{}~*?|&/')

_STRUCTURAL = frozenset('()":^[]{}')
_UNSUPPORTED = frozenset("[]{}")
_WHITESPACE = frozenset(" \t\r\n\f\v\u3000")


class QueryParseError(ValueError):
    """Raised when query text cannot be parsed; carries the offending position."""

    def __init__(self, message: str, text: str, position: int) -> None:
        super().__init__(f"{message} (at position {position})")
        self.text = text
        self.position = position


def escape_literal(text: str) -> str:
    """Backslash-escape every reserved syntax character in ``text``."""

    return "".join(f"\\{char}" if char in RESERVED_CHARACTERS else char for char in text)


def escape_wildcard(text: str) -> str:
    """Escape ``*``, ``?`` and ``\\`` so they match literally inside a wildcard pattern."""

    return "".join(f"\\{char}" if char in "*?\\" else char for char in text)


class _Kind(str, Enum):
    TERM = "term"
    PHRASE = "phrase"
    LPAREN = "("
    RPAREN = ")"
    COLON = ":"
    PLUS = "+"
    MINUS = "-"
    NOT = "NOT"
    AND = "AND"
    OR = "OR"
    BOOST = "^"


@dataclass(frozen=True)
class _Lexeme:
    kind: _Kind
    position: int
    text: str = ""
    pattern: str = ""
    wildcard: bool = False
    fuzzy: str | None = None
    boost: float = 1.0


class _Lexer:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.lexemes: list[_Lexeme] = []

    def error(self, message: str, position: int | None = None) -> QueryParseError:
        return QueryParseError(message, self.text, self.pos if position is None else position)

    def run(self) -> list[_Lexeme]:
        text = self.text
        while self.pos < len(text):
            char = text[self.pos]
            if char in _WHITESPACE:
                self.pos += 1
            elif char in _UNSUPPORTED:
                raise self.error("range queries are not supported")
            elif char in "()":
                self._emit(_Kind.LPAREN if char == "(" else _Kind.RPAREN)
            elif char == ":":
                self._emit(_Kind.COLON)
            elif char == "^":
                self._read_boost()
            elif char == '"':
                self._read_phrase()
            elif text.startswith("&&", self.pos):
                self._emit(_Kind.AND, width=2)
            elif text.startswith("||", self.pos):
                self._emit(_Kind.OR, width=2)
            elif char in "+-!" and self._at_term_start():
                self._emit({"+": _Kind.PLUS, "-": _Kind.MINUS, "!": _Kind.NOT}[char])
            else:
                self._read_term()
        return self.lexemes

    def _emit(self, kind: _Kind, width: int = 1) -> None:
        self.lexemes.append(_Lexeme(kind, self.pos))
        self.pos += width

    def _at_term_start(self) -> bool:
        return self.pos == 0 or self.text[self.pos - 1] in _WHITESPACE or self.text[self.pos - 1] in "(:"

    def _read_boost(self) -> None:
        start = self.pos
        self.pos += 1
        number = self._read_number()
        if not number:
            raise self.error("boost operator '^' requires a number", start)
        try:
            value = float(number)
        except ValueError as exc:
            raise self.error(f"invalid boost '{number}'", start) from exc
        self.lexemes.append(_Lexeme(_Kind.BOOST, start, boost=value))

    def _read_number(self) -> str:
        begin = self.pos
        while self.pos < len(self.text) and (self.text[self.pos].isdigit() or self.text[self.pos] == "."):
            self.pos += 1
        return self.text[begin : self.pos]

    def _read_phrase(self) -> None:
        start = self.pos
        self.pos += 1
        chars: list[str] = []
        while self.pos < len(self.text):
            char = self.text[self.pos]
            if char == "\\":
                chars.append(self._read_escape())
                continue
            if char == '"':
                self.pos += 1
                if self.pos < len(self.text) and self.text[self.pos] == "~":
                    raise self.error("proximity search is not supported")
                self.lexemes.append(_Lexeme(_Kind.PHRASE, start, text="".join(chars)))
                return
            chars.append(char)
            self.pos += 1
        raise self.error("unterminated phrase", start)

    def _read_escape(self) -> str:
        if self.pos + 1 >= len(self.text):
            raise self.error("dangling escape character at end of query")
        char = self.text[self.pos + 1]
        self.pos += 2
        return char

    def _read_term(self) -> None:
        start = self.pos
        literal: list[str] = []
        pattern: list[str] = []
        wildcard = False
        fuzzy: str | None = None
        while self.pos < len(self.text):
            char = self.text[self.pos]
            if char in _WHITESPACE or char in _STRUCTURAL:
                break
            if char == "\\":
                escaped = self._read_escape()
                literal.append(escaped)
                pattern.append(escape_wildcard(escaped))
                continue
            if char == "~":
                self.pos += 1
                fuzzy = self._read_number()
                break
            if char in "*?":
                wildcard = True
            literal.append(char)
            pattern.append(char)
            self.pos += 1

        word = "".join(literal)
        if not word:
            raise self.error("fuzzy operator '~' requires a term", start)
        kind = _Kind.TERM
        if not wildcard and fuzzy is None and self.text[start : self.pos] in ("AND", "OR", "NOT"):
            kind = _Kind(word)
        self.lexemes.append(
            _Lexeme(kind, start, text=word, pattern="".join(pattern), wildcard=wildcard, fuzzy=fuzzy)
        )


class QueryParser:
    """Parse query text into a structured query over one or more default fields.

    The parser holds only immutable configuration and is safe to share across
    threads.

    Args:
        schema: Field definitions used to pick the analyzer for each field.
        default_fields: ``(field_name, boost)`` pairs searched by unprefixed terms.
        fuzzy_min_similarity: Similarity used for ``term~`` without a value.
        allow_leading_wildcard: Permit patterns such as ``*son``.
    """

    def __init__(
        self,
        schema: Schema,
        default_fields: Sequence[tuple[str, float]],
        *,
        fuzzy_min_similarity: float = 0.6,
        allow_leading_wildcard: bool = True,
    ) -> None:
        if not default_fields:
            raise ValueError("QueryParser requires at least one default field")
        self.schema = schema
        self.default_fields = tuple(default_fields)
        self.fuzzy_min_similarity = fuzzy_min_similarity
        self.allow_leading_wildcard = allow_leading_wildcard

    def parse(self, text: str) -> Query:
        lexemes = _Lexer(text).run()
        state = _ParseState(text, lexemes)
        query = self._parse_clauses(state, fields=self.default_fields)
        if state.peek() is not None:
            raise QueryParseError("unbalanced closing parenthesis", text, state.peek().position)
        return _simplify(query)

    def _parse_clauses(self, state: _ParseState, *, fields: tuple[tuple[str, float], ...]) -> BooleanQuery:
        clauses: list[BooleanClause] = []
        conjunction: _Kind | None = None
        while True:
            lexeme = state.peek()
            if lexeme is None or lexeme.kind == _Kind.RPAREN:
                break
            if lexeme.kind in (_Kind.AND, _Kind.OR):
                if not clauses or conjunction is not None:
                    raise QueryParseError(f"unexpected operator '{lexeme.kind.value}'", state.text, lexeme.position)
                conjunction = lexeme.kind
                state.advance()
                continue

            modifier = self._read_modifier(state)
            query = self._parse_clause(state, fields=fields)

            occur = Occur.SHOULD
            if modifier == _Kind.PLUS:
                occur = Occur.MUST
            elif modifier in (_Kind.MINUS, _Kind.NOT):
                occur = Occur.MUST_NOT
            if conjunction == _Kind.AND:
                if clauses and clauses[-1].occur == Occur.SHOULD:
                    clauses[-1] = BooleanClause(clauses[-1].query, Occur.MUST)
                if occur == Occur.SHOULD:
                    occur = Occur.MUST
            conjunction = None
            if query is not None:
                clauses.append(BooleanClause(query, occur))

        if conjunction is not None:
            raise QueryParseError("query ends with a dangling operator", state.text, len(state.text))
        return BooleanQuery(tuple(clauses))

    def _read_modifier(self, state: _ParseState) -> _Kind | None:
        lexeme = state.peek()
        if lexeme is None or lexeme.kind not in (_Kind.PLUS, _Kind.MINUS, _Kind.NOT):
            return None
        state.advance()
        following = state.peek()
        if following is None or following.kind in (_Kind.AND, _Kind.OR, _Kind.RPAREN, _Kind.PLUS, _Kind.MINUS):
            raise QueryParseError(f"operator '{lexeme.kind.value}' is missing its operand", state.text, lexeme.position)
        return lexeme.kind

    def _parse_clause(
        self,
        state: _ParseState,
        *,
        fields: tuple[tuple[str, float], ...],
    ) -> Query | None:
        lexeme = state.advance()
        if lexeme.kind == _Kind.TERM and state.peek() is not None and state.peek().kind == _Kind.COLON:
            colon = state.advance()
            if state.peek() is None or state.peek().kind not in (_Kind.TERM, _Kind.PHRASE, _Kind.LPAREN):
                raise QueryParseError(f"field '{lexeme.text}' has no value", state.text, colon.position)
            return self._parse_clause(state, fields=((lexeme.text, 1.0),))

        if lexeme.kind == _Kind.LPAREN:
            inner = self._parse_clauses(state, fields=fields)
            closing = state.peek()
            if closing is None or closing.kind != _Kind.RPAREN:
                raise QueryParseError("unbalanced opening parenthesis", state.text, lexeme.position)
            state.advance()
            query: Query | None = None if inner.is_empty() else _simplify(inner)
        elif lexeme.kind == _Kind.TERM:
            query = self._term_query(state, lexeme, fields)
        elif lexeme.kind == _Kind.PHRASE:
            query = self._phrase_query(lexeme, fields)
        else:
            raise QueryParseError(f"unexpected '{lexeme.kind.value}'", state.text, lexeme.position)

        boost_lexeme = state.peek()
        if boost_lexeme is not None and boost_lexeme.kind == _Kind.BOOST:
            state.advance()
            if query is not None:
                query = _boosted(query, boost_lexeme.boost)
        return query

    def _term_query(self, state: _ParseState, lexeme: _Lexeme, fields: tuple[tuple[str, float], ...]) -> Query | None:
        if lexeme.wildcard:
            if not self.allow_leading_wildcard and lexeme.pattern[:1] in ("*", "?"):
                raise QueryParseError("leading wildcards are not allowed", state.text, lexeme.position)
            pattern = lexeme.pattern.lower()
            return _disjunction([WildcardQuery(name, pattern, boost=boost) for name, boost in fields])

        if lexeme.fuzzy is not None:
            term = lexeme.text.lower()
            similarity = self._fuzzy_similarity(lexeme.fuzzy, term, state, lexeme.position)
            return _disjunction([FuzzyQuery(name, term, similarity, boost=boost) for name, boost in fields])

        per_field: list[Query] = []
        for name, boost in fields:
            tokens = [token.text for token in get_analyzer(self.schema.analyzer_for(name))(lexeme.text)]
            if len(tokens) == 1:
                per_field.append(TermQuery(name, tokens[0], boost=boost))
            elif tokens:
                per_field.append(
                    BooleanQuery.of(*((TermQuery(name, token, boost=boost), Occur.SHOULD) for token in tokens))
                )
        return _disjunction(per_field)

    def _phrase_query(self, lexeme: _Lexeme, fields: tuple[tuple[str, float], ...]) -> Query | None:
        per_field: list[Query] = []
        for name, boost in fields:
            tokens = tuple(token.text for token in get_analyzer(self.schema.analyzer_for(name))(lexeme.text))
            if len(tokens) == 1:
                per_field.append(TermQuery(name, tokens[0], boost=boost))
            elif tokens:
                per_field.append(PhraseQuery(name, tokens, boost=boost))
        return _disjunction(per_field)

    def _fuzzy_similarity(self, raw: str, term: str, state: _ParseState, position: int) -> float:
        if not raw:
            return self.fuzzy_min_similarity
        try:
            value = float(raw)
        except ValueError as exc:
            raise QueryParseError(f"invalid fuzzy value '{raw}'", state.text, position) from exc
        if value < 1.0:
            return value
        # whole numbers are edit counts
        return max(0.0, 1.0 - value / max(len(term), 1))


class _ParseState:
    def __init__(self, text: str, lexemes: list[_Lexeme]) -> None:
        self.text = text
        self.lexemes = lexemes
        self.index = 0

    def peek(self) -> _Lexeme | None:
        if self.index < len(self.lexemes):
            return self.lexemes[self.index]
        return None

    def advance(self) -> _Lexeme:
        lexeme = self.lexemes[self.index]
        self.index += 1
        return lexeme


def _disjunction(queries: list[Query]) -> Query | None:
    if not queries:
        return None
    if len(queries) == 1:
        return queries[0]
    return BooleanQuery.of(*((query, Occur.SHOULD) for query in queries))


def _simplify(query: BooleanQuery) -> Query:
    if len(query.clauses) == 1 and query.clauses[0].occur != Occur.MUST_NOT and query.boost == 1.0:
        return query.clauses[0].query
    return query


def _boosted(query: Query, factor: float) -> Query:
    return replace(query, boost=query.boost * factor)
