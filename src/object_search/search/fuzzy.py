"""Edit-distance helpers for typo-tolerant matching.

Used in two places: the index expands fuzzy query terms against a field's
vocabulary, and the relevance scorer classifies query words as fuzzy
matches of the matched text's words. Distances come from rapidfuzz.
"""

from __future__ import annotations

from collections.abc import Iterable

from rapidfuzz import process
from rapidfuzz.distance import Levenshtein


def levenshtein_distance(s1: str, s2: str, max_distance: int | None = None) -> int:
    """Return the number of single-character edits turning ``s1`` into ``s2``.

    With ``max_distance`` set, any distance above it is reported as
    ``max_distance + 1`` so the caller can stop early.

    Examples:
        >>> levenshtein_distance("kitten", "sitting")
        3
        >>> levenshtein_distance("acme", "zenith", max_distance=1)
        2
    """
    return Levenshtein.distance(s1, s2, score_cutoff=max_distance)


def tolerated_edit_distance(word: str, other: str) -> int:
    """Edits tolerated before two words stop counting as a fuzzy match.

    Roughly 25% of the longer word, never less than one edit.
    """
    return max(1, max(len(word), len(other)) // 4)


def is_fuzzy_match(word: str, other: str) -> bool:
    tolerance = tolerated_edit_distance(word, other)
    return levenshtein_distance(word, other, tolerance) <= tolerance


def find_fuzzy_matches(query_term: str, vocabulary: Iterable[str], max_distance: int) -> list[tuple[str, int]]:
    """Return ``(term, distance)`` for vocabulary terms within ``max_distance`` edits.

    ``vocabulary`` is expected lower-cased; the query term is lower-cased
    here. Closest terms come first, ties in alphabetical order. With
    ``max_distance <= 0`` only the exact term can match.
    """
    if not query_term:
        return []

    term = query_term.lower()
    if max_distance <= 0:
        return [(term, 0)] if term in vocabulary else []

    matches = process.extract(
        term,
        vocabulary,
        scorer=Levenshtein.distance,
        score_cutoff=max_distance,
        limit=None,
    )
    return sorted(((choice, int(distance)) for choice, distance, _ in matches), key=lambda item: (item[1], item[0]))
