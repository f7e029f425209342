"""Query planning: from raw search text to an ordered list of query tiers.

Tiers run from most to least specific. The executor stops at the first tier
that produces hits, so the order here is the ranking policy.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import math

from object_search.search.analyzers import Analyzer, analyze_words, get_analyzer
from object_search.search.schema import SearchableField


class QueryStrategy(str, Enum):
    """Query strategies understood by the index."""

    EXACT_PHRASE = "exact_phrase"
    NEAR_PHRASE = "near_phrase"
    ALL_WORDS = "all_words"
    MAJORITY_WORDS = "majority_words"
    WORDS_PLUS_FUZZY = "words_plus_fuzzy"
    FUZZY_TERM = "fuzzy_term"


@dataclass(frozen=True)
class QueryTier:
    """One query against a single field.

    Args:
        field: Field the tier is scoped to.
        strategy: How ``terms`` must match.
        terms: Lower-cased query words, in query order.
        slop: Total intervening tokens allowed for NEAR_PHRASE.
        minimum_should_match: Words required for MAJORITY_WORDS.
        max_edits: Edit distance for fuzzy terms.
        fuzzy_terms: Words that may also match fuzzily (WORDS_PLUS_FUZZY).
    """

    field: str
    strategy: QueryStrategy
    terms: tuple[str, ...]
    slop: int = 0
    minimum_should_match: int = 0
    max_edits: int = 0
    fuzzy_terms: tuple[str, ...] = ()

    def describe(self) -> str:
        return f"{self.strategy.value}({self.field}: {' '.join(self.terms)})"


class QueryPlanner:
    """Builds the tier sequence for a field and a search text."""

    def __init__(
        self,
        analyzer: Analyzer | None = None,
        *,
        near_phrase_slop: int = 2,
        majority_ratio: float = 0.6,
        fuzzy_min_word_length: int = 4,
        fuzzy_max_edits: int = 1,
    ) -> None:
        self.analyzer = analyzer or get_analyzer(None)
        self.near_phrase_slop = near_phrase_slop
        self.majority_ratio = majority_ratio
        self.fuzzy_min_word_length = fuzzy_min_word_length
        self.fuzzy_max_edits = fuzzy_max_edits

    def words(self, search_text: str) -> tuple[str, ...]:
        return tuple(analyze_words(self.analyzer, search_text))

    def plan(self, field: SearchableField, search_text: str) -> list[QueryTier]:
        words = self.words(search_text)
        if not words:
            return []

        if field.exact_match_only:
            return [QueryTier(field.name, QueryStrategy.EXACT_PHRASE, words)]

        if len(words) == 1:
            word = words[0]
            if len(word) < self.fuzzy_min_word_length:
                return []
            return [QueryTier(field.name, QueryStrategy.FUZZY_TERM, words, max_edits=self.fuzzy_max_edits)]

        # rounded first so 5 * 0.6 does not ceil to 4
        majority = max(1, math.ceil(round(len(words) * self.majority_ratio, 9)))
        fuzzy_terms = tuple(word for word in words if len(word) >= self.fuzzy_min_word_length)
        return [
            QueryTier(field.name, QueryStrategy.EXACT_PHRASE, words),
            QueryTier(field.name, QueryStrategy.NEAR_PHRASE, words, slop=self.near_phrase_slop),
            QueryTier(field.name, QueryStrategy.ALL_WORDS, words),
            QueryTier(field.name, QueryStrategy.MAJORITY_WORDS, words, minimum_should_match=majority),
            QueryTier(
                field.name,
                QueryStrategy.WORDS_PLUS_FUZZY,
                words,
                max_edits=self.fuzzy_max_edits,
                fuzzy_terms=fuzzy_terms,
            ),
        ]


def plan_queries(field: SearchableField, search_text: str, planner: QueryPlanner | None = None) -> list[QueryTier]:
    """Plan tiers for ``field`` with a default planner unless one is given."""
    return (planner or QueryPlanner()).plan(field, search_text)
