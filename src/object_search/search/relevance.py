"""Relevance scoring independent of the index-native score.

Three pieces:

- ``match_percentage``: how well a matched field value matches the query,
  on a 0-100 scale, from a cascade of exact/phrase/word/edit-distance rules
- ``position_boost``: a multiplier rewarding matches that are exact or start
  early in the field value
- ``final_score``: combines the tier score with field priority, percentage
  and position boost

Percentages are comparable across fields and queries; the raw index score is
not, which is why thresholds are expressed as percentages.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from rapidfuzz import fuzz
from rapidfuzz.distance import JaroWinkler, Levenshtein

from object_search.search.executor import PropertyMatch
from object_search.search.fuzzy import is_fuzzy_match, levenshtein_distance
from object_search.search.schema import SearchableField


# Weights of the mixed multi-word rule
_EXACT_WEIGHT = 100.0
_PARTIAL_WEIGHT = 60.0
_FUZZY_WEIGHT = 30.0


@dataclass(frozen=True)
class ScoredMatch:
    """A property match that survived the field's threshold."""

    object_index: int
    field_name: str
    matched_text: str
    match_percentage: float
    score: float


def match_percentage(matched_text: str, search_text: str) -> float:
    """Return how closely ``matched_text`` matches ``search_text`` (0-100).

    Rules are tried in order and the first one that applies wins:

    1. identical ignoring case: 100
    2. identical ignoring case and surrounding whitespace: 99
    3. single-word query: whole word 95, word prefix 85, substring 75,
       otherwise 50-70 by edit distance to the closest word
    4. multi-word query: phrase found 90-100 (by anchoring), all words in
       order 85, all words present 82, otherwise 50-80 weighted by
       exact/partial/fuzzy word matches

    Examples:
        >>> match_percentage("Acme Corp", "Acme Corp")
        100.0
        >>> match_percentage("Acme Corp", " acme corp ")
        99.0
        >>> match_percentage("Acme Corp Holdings", "acme")
        95.0
    """
    if not matched_text or not matched_text.strip() or not search_text or not search_text.strip():
        return 0.0

    matched_lower = matched_text.lower()
    search_lower = search_text.lower()

    if matched_lower == search_lower:
        return 100.0

    if matched_lower.strip() == search_lower.strip():
        return 99.0

    search_words = search_lower.split()
    matched_words = matched_lower.split()

    if len(search_words) == 1:
        return _single_word_percentage(search_words[0], matched_lower, matched_words)
    return _multi_word_percentage(search_words, matched_words)


def _single_word_percentage(search_word: str, matched_lower: str, matched_words: Sequence[str]) -> float:
    if search_word in matched_words:
        return 95.0

    if any(word.startswith(search_word) for word in matched_words):
        return 85.0

    if search_word in matched_lower:
        return 75.0

    if not matched_words:
        return 50.0

    # first closest word wins on equal distance
    best_word = min(matched_words, key=lambda word: levenshtein_distance(search_word, word))
    distance = levenshtein_distance(search_word, best_word)
    similarity = 1.0 - distance / max(len(search_word), len(best_word))
    return max(50.0, similarity * 70.0)


def _multi_word_percentage(search_words: Sequence[str], matched_words: Sequence[str]) -> float:
    phrase = " ".join(search_words)
    text = " ".join(matched_words)

    if phrase in text:
        if text == phrase:
            return 100.0
        if text.startswith(phrase):
            return 95.0
        if text.endswith(phrase):
            return 93.0
        return 90.0

    if words_in_order(text, search_words):
        return 85.0

    exact = partial = fuzzy = 0
    for search_word in search_words:
        if search_word in matched_words:
            exact += 1
        elif any(word.startswith(search_word) or search_word.startswith(word) for word in matched_words):
            partial += 1
        elif any(search_word in word or word in search_word for word in matched_words):
            partial += 1
        elif any(is_fuzzy_match(search_word, word) for word in matched_words):
            fuzzy += 1

    total = len(search_words)
    if exact == total:
        return 82.0

    weighted = (exact * _EXACT_WEIGHT + partial * _PARTIAL_WEIGHT + fuzzy * _FUZZY_WEIGHT) / (total * _EXACT_WEIGHT)
    return max(50.0, 50.0 + weighted * 30.0)


def words_in_order(text: str, words: Sequence[str]) -> bool:
    """Return True when every word occurs in ``text`` after the previous one."""
    cursor = 0
    for word in words:
        found = text.find(word, cursor)
        if found < 0:
            return False
        cursor = found + len(word)
    return True


def position_boost(matched_text: str, search_text: str) -> float:
    """Return a multiplier in [1.0, 1.3] rewarding exact and early matches."""
    if not matched_text or not matched_text.strip() or not search_text or not search_text.strip():
        return 1.0

    matched_lower = matched_text.lower()
    search_lower = search_text.lower()

    if matched_lower == search_lower:
        return 1.3

    if matched_lower.startswith(search_lower):
        return 1.2

    first_word = search_lower.split()[0]
    if matched_lower.startswith(first_word):
        return 1.15

    offset = matched_lower.find(search_lower)
    if offset >= 0:
        return 1.0 + 0.1 * (1 - offset / len(matched_lower))

    return 1.0


def final_score(tier_score: float, priority: int, percentage: float, boost: float) -> float:
    """Combine the decayed tier score with priority, percentage and position boost."""
    return tier_score * (100.0 / priority) * (percentage / 100.0) * boost


def score_match(match: PropertyMatch, field: SearchableField, search_text: str) -> ScoredMatch | None:
    """Score ``match`` for ``field``; None when it falls below the field's threshold."""
    percentage = match_percentage(match.matched_text, search_text)
    if percentage < field.match_threshold:
        return None

    boost = position_boost(match.matched_text, search_text)
    return ScoredMatch(
        object_index=match.object_index,
        field_name=match.field_name,
        matched_text=match.matched_text,
        match_percentage=percentage,
        score=final_score(match.raw_tier_score, field.priority, percentage, boost),
    )


def name_similarity(left: str, right: str) -> float:
    """Blend of Jaro-Winkler, token-set ratio and Levenshtein similarity (0-1).

    Suited to company and issuer names where word order and legal suffixes
    vary ("Acme Corp" vs "ACME Corporation").
    """
    if not left or not right:
        return 0.0

    jaro_winkler = JaroWinkler.similarity(left, right)
    token_set = fuzz.token_set_ratio(left, right) / 100.0
    levenshtein = Levenshtein.normalized_similarity(left, right)
    return 0.5 * jaro_winkler + 0.3 * token_set + 0.2 * levenshtein
