"""Analyzers for the in-memory entity index.

Analyzers follow the Whoosh/Lucene composable design: a tokenizer produces a
token stream and filters transform it. The same analyzer instance is applied
at indexing time and at query time so that parsed terms line up with the
indexed vocabulary. Analyzers hold no per-call state and are shared freely
across threads.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, replace
import re
from typing import Protocol


@dataclass(frozen=True)
class Token:
    """A single analyzed term with its position in the source text."""

    text: str
    position: int
    start_char: int
    end_char: int


class Analyzer(Protocol):
    """Protocol implemented by analyzers."""

    def __call__(self, text: str) -> list[Token]:  # pragma: no cover - interface definition
        ...


class Tokenizer(Protocol):
    def __call__(self, text: str) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class TokenFilter(Protocol):
    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class RegexTokenizer:
    """Regex-based tokenizer that yields word tokens."""

    def __init__(self, pattern: str = r"[\w']+", flags: int = re.UNICODE) -> None:
        self.pattern = re.compile(pattern, flags)

    def __call__(self, text: str) -> Iterator[Token]:
        for position, match in enumerate(self.pattern.finditer(text)):
            yield Token(
                text=match.group(0),
                position=position,
                start_char=match.start(),
                end_char=match.end(),
            )


class LowercaseFilter:
    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text.islower():
                yield token
            else:
                yield replace(token, text=token.text.lower())


DEFAULT_STOPWORDS = (
    "a",
    "an",
    "and",
    "are",
    "as",
    "at",
    "be",
    "but",
    "by",
    "for",
    "if",
    "in",
    "into",
    "is",
    "it",
    "no",
    "not",
    "of",
    "on",
    "or",
    "such",
    "that",
    "the",
    "their",
    "then",
    "there",
    "these",
    "they",
    "this",
    "to",
    "was",
    "will",
    "with",
)


class StopFilter:
    """Removes stopwords from the stream."""

    def __init__(self, stopwords: Sequence[str] | None = None) -> None:
        vocab = stopwords if stopwords is not None else DEFAULT_STOPWORDS
        self.stopwords = frozenset(word.lower() for word in vocab)

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text.lower() not in self.stopwords:
                yield token


_SIMPLE_SUFFIXES: tuple[str, ...] = ("ingly", "edly", "ing", "ed", "ly", "es", "s")


class SuffixStemFilter:
    """Strips common English inflection suffixes.

    Only used for long-form content fields (page bodies, descriptions); names
    and identifiers are never stemmed.
    """

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            yield replace(token, text=_stem(token.text))


def _stem(word: str) -> str:
    for suffix in _SIMPLE_SUFFIXES:
        if word.endswith(suffix) and len(word) - len(suffix) >= 3:
            return word[: -len(suffix)]
    return word


class AnalyzerPipeline:
    """Composable analyzer pipeline (tokenizer + filters)."""

    def __init__(self, tokenizer: Tokenizer, filters: Sequence[TokenFilter] | None = None) -> None:
        self.tokenizer = tokenizer
        self.filters = tuple(filters or ())

    def __call__(self, text: str) -> list[Token]:
        stream: Iterable[Token] = self.tokenizer(text)
        for token_filter in self.filters:
            stream = token_filter(stream)
        # positions are renumbered after filtering so phrase matching sees adjacent terms
        return [replace(token, position=idx) for idx, token in enumerate(stream)]


class StandardAnalyzer:
    """Word tokenizer + lowercase + stopwords, optionally stemmed."""

    def __init__(self, *, stopwords: Sequence[str] | None = None, apply_stemming: bool = False) -> None:
        filters: list[TokenFilter] = [LowercaseFilter(), StopFilter(stopwords)]
        if apply_stemming:
            filters.append(SuffixStemFilter())
        self.pipeline = AnalyzerPipeline(RegexTokenizer(), filters)

    def __call__(self, text: str) -> list[Token]:
        return self.pipeline(text)


class KeywordAnalyzer:
    """Treats the whole (trimmed, lowercased) value as a single token.

    Used for identifiers such as e-mail addresses and labels where substring
    and exact matching must see the complete value.
    """

    def __call__(self, text: str) -> list[Token]:
        normalized = text.strip().lower()
        if not normalized:
            return []
        return [Token(text=normalized, position=0, start_char=0, end_char=len(text))]


_ANALYZER_FACTORIES: dict[str, Callable[[], Analyzer]] = {
    "standard": StandardAnalyzer,
    "english": lambda: StandardAnalyzer(apply_stemming=True),
    "keyword": KeywordAnalyzer,
}

_SHARED: dict[str, Analyzer] = {name: factory() for name, factory in _ANALYZER_FACTORIES.items()}


def get_analyzer(name: str | None) -> Analyzer:
    """Return the shared analyzer registered under ``name`` (default: standard)."""

    if name is None:
        return _SHARED["standard"]
    normalized = name.lower()
    if normalized not in _SHARED:
        msg = f"Unknown analyzer '{name}'. Available: {sorted(_SHARED)}"
        raise ValueError(msg)
    return _SHARED[normalized]
