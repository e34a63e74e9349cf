"""BM25 scoring primitives shared by term, phrase and fuzzy clauses."""

from __future__ import annotations

from dataclasses import dataclass
import math


DEFAULT_K1 = 1.2
DEFAULT_B = 0.75


@dataclass(frozen=True)
class FieldStats:
    """Aggregate length statistics for one field of an index snapshot."""

    total_terms: int
    document_count: int

    @property
    def average_length(self) -> float:
        if self.document_count == 0:
            return 0.0
        return self.total_terms / self.document_count


def idf(doc_freq: int, total_docs: int) -> float:
    """Lucene-style BM25 inverse document frequency (always positive)."""

    if total_docs <= 0 or doc_freq <= 0:
        return 0.0
    df = min(doc_freq, total_docs)
    return math.log(1.0 + (total_docs - df + 0.5) / (df + 0.5))


def bm25(
    tf: int,
    doc_length: int,
    avg_doc_length: float,
    *,
    k1: float = DEFAULT_K1,
    b: float = DEFAULT_B,
) -> float:
    """Return the BM25 term-frequency weight without IDF."""

    if tf <= 0:
        return 0.0
    normalized_length = doc_length / max(avg_doc_length, 1e-9)
    denominator = tf + k1 * (1 - b + b * normalized_length)
    return (tf * (k1 + 1)) / denominator
