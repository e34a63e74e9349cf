"""Edit-distance helpers backing ``FuzzyQuery``.

Fuzzy clauses carry a normalized minimum similarity (0.0 to 1.0). The
similarity is converted into a maximum number of edits relative to the query
term length, the same way classic Lucene converts ``term~0.6``:

- ``max_edits = int((1 - min_similarity) * len(term))``
- capped at ``MAX_EDITS`` so the vocabulary scan stays cheap

Adjacent transpositions count as a single edit ("jonh" -> "john" is one
edit), which keeps common typing slips inside the threshold.
"""

from __future__ import annotations

from collections.abc import Iterable


MAX_EDITS = 2


def edit_distance(s1: str, s2: str, max_distance: int | None = None) -> int:
    """Return the optimal-string-alignment distance between two strings.

    Insertions, deletions, substitutions and adjacent transpositions each
    cost one edit. When ``max_distance`` is given the computation bails out
    early and returns ``max_distance + 1`` once the threshold cannot be met.

    Examples:
        >>> edit_distance("jonh", "john")
        1
        >>> edit_distance("kitten", "sitting")
        3
        >>> edit_distance("", "abc")
        3
    """
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    m, n = len(s1), len(s2)
    if max_distance is not None and abs(m - n) > max_distance:
        return max_distance + 1

    # three rolling rows: transpositions look two rows back
    before_prev: list[int] = []
    prev_row = list(range(n + 1))
    for i in range(1, m + 1):
        curr_row = [i] + [0] * n
        row_min = i
        for j in range(1, n + 1):
            cost = 0 if s1[i - 1] == s2[j - 1] else 1
            value = min(
                prev_row[j] + 1,  # deletion
                curr_row[j - 1] + 1,  # insertion
                prev_row[j - 1] + cost,  # substitution
            )
            if i > 1 and j > 1 and s1[i - 1] == s2[j - 2] and s1[i - 2] == s2[j - 1]:
                value = min(value, before_prev[j - 2] + 1)
            curr_row[j] = value
            row_min = min(row_min, value)

        if max_distance is not None and row_min > max_distance:
            return max_distance + 1
        before_prev, prev_row = prev_row, curr_row

    return prev_row[n]


def max_edits_for(term: str, min_similarity: float) -> int:
    """Translate a normalized similarity threshold into an edit budget."""

    if min_similarity >= 1.0:
        return 0
    return min(MAX_EDITS, int((1.0 - min_similarity) * len(term)))


def similarity(term: str, candidate: str, distance: int) -> float:
    """Normalized similarity of ``candidate`` to ``term`` given their distance."""

    shortest = min(len(term), len(candidate))
    if shortest == 0:
        return 0.0
    return max(0.0, 1.0 - distance / shortest)


def expand_fuzzy(term: str, vocabulary: Iterable[str], min_similarity: float) -> list[tuple[str, float]]:
    """Return vocabulary terms within the similarity threshold of ``term``.

    Results are ``(candidate, similarity)`` pairs sorted by similarity, best
    first; an exact match always comes first with similarity 1.0.
    """
    if not term:
        return []

    budget = max_edits_for(term, min_similarity)
    matches: list[tuple[str, float]] = []
    for candidate in vocabulary:
        if candidate == term:
            matches.append((candidate, 1.0))
            continue
        if budget == 0 or abs(len(candidate) - len(term)) > budget:
            continue
        distance = edit_distance(term, candidate, budget)
        if distance <= budget:
            matches.append((candidate, similarity(term, candidate, distance)))

    matches.sort(key=lambda item: (-item[1], item[0]))
    return matches
