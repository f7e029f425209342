"""Unit tests for query tier planning."""

import pytest

from object_search.search.analyzers import get_analyzer
from object_search.search.planner import QueryPlanner, QueryStrategy, QueryTier, plan_queries
from object_search.search.schema import SearchableField


@pytest.fixture
def name_field():
    return SearchableField.attribute("name")


@pytest.fixture
def code_field():
    return SearchableField.attribute("code", exact_match_only=True)


@pytest.mark.unit
class TestQueryPlanner:
    """Tier sequence construction."""

    def test_blank_text_plans_nothing(self, name_field):
        planner = QueryPlanner()

        assert planner.plan(name_field, "") == []
        assert planner.plan(name_field, "   ") == []
        assert planner.plan(name_field, "--- !!") == []

    def test_words_are_lowercased_tokens(self):
        planner = QueryPlanner()

        assert planner.words("  Acme   CORP, Ltd. ") == ("acme", "corp", "ltd")

    def test_exact_only_field_gets_single_phrase_tier(self, code_field):
        tiers = QueryPlanner().plan(code_field, "ACM")

        assert tiers == [QueryTier("code", QueryStrategy.EXACT_PHRASE, ("acm",))]

    def test_exact_only_field_with_several_words(self, code_field):
        tiers = QueryPlanner().plan(code_field, "acme corp")

        assert [tier.strategy for tier in tiers] == [QueryStrategy.EXACT_PHRASE]
        assert tiers[0].terms == ("acme", "corp")

    def test_single_long_word_is_fuzzy(self, name_field):
        tiers = QueryPlanner().plan(name_field, "Acme")

        assert len(tiers) == 1
        assert tiers[0].strategy is QueryStrategy.FUZZY_TERM
        assert tiers[0].terms == ("acme",)
        assert tiers[0].max_edits == 1

    def test_single_short_word_plans_nothing(self, name_field):
        assert QueryPlanner().plan(name_field, "abc") == []

    def test_multi_word_tier_order(self, name_field):
        tiers = QueryPlanner().plan(name_field, "acme global corp")

        assert [tier.strategy for tier in tiers] == [
            QueryStrategy.EXACT_PHRASE,
            QueryStrategy.NEAR_PHRASE,
            QueryStrategy.ALL_WORDS,
            QueryStrategy.MAJORITY_WORDS,
            QueryStrategy.WORDS_PLUS_FUZZY,
        ]
        assert all(tier.field == "name" for tier in tiers)
        assert all(tier.terms == ("acme", "global", "corp") for tier in tiers)

    def test_multi_word_tier_parameters(self, name_field):
        tiers = QueryPlanner().plan(name_field, "acme global corp")

        assert tiers[1].slop == 2
        assert tiers[3].minimum_should_match == 2
        assert tiers[4].max_edits == 1
        # only words of four or more characters get a fuzzy clause
        assert tiers[4].fuzzy_terms == ("acme", "global", "corp")

    def test_short_words_excluded_from_fuzzy_clauses(self, name_field):
        tiers = QueryPlanner().plan(name_field, "bank of acme")

        assert tiers[4].fuzzy_terms == ("bank", "acme")

    @pytest.mark.parametrize(
        ("words", "expected"),
        [
            (2, 2),
            (3, 2),
            (4, 3),
            (5, 3),
            (10, 6),
        ],
    )
    def test_majority_is_ceiling_of_sixty_percent(self, name_field, words, expected):
        text = " ".join(f"word{i}" for i in range(words))

        tiers = QueryPlanner().plan(name_field, text)

        assert tiers[3].minimum_should_match == expected

    def test_settings_are_applied(self, name_field):
        planner = QueryPlanner(near_phrase_slop=4, majority_ratio=1.0, fuzzy_min_word_length=6, fuzzy_max_edits=2)

        tiers = planner.plan(name_field, "acme global corp")

        assert tiers[1].slop == 4
        assert tiers[3].minimum_should_match == 3
        assert tiers[4].fuzzy_terms == ("global",)
        assert tiers[4].max_edits == 2

    def test_stopwords_removed_by_english_analyzer(self, name_field):
        planner = QueryPlanner(get_analyzer("english"))

        assert planner.words("Bank of the Acme") == ("bank", "acme")

    def test_plan_queries_uses_default_planner(self, name_field):
        assert plan_queries(name_field, "acme corp") == QueryPlanner().plan(name_field, "acme corp")


@pytest.mark.unit
def test_describe_names_strategy_and_terms():
    tier = QueryTier("name", QueryStrategy.NEAR_PHRASE, ("acme", "corp"), slop=2)

    assert tier.describe() == "near_phrase(name: acme corp)"
