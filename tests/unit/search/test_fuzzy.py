"""Unit tests for edit-distance helpers."""

import pytest

from object_search.search.fuzzy import (
    find_fuzzy_matches,
    is_fuzzy_match,
    levenshtein_distance,
    tolerated_edit_distance,
)


@pytest.mark.unit
class TestLevenshteinDistance:
    """Tests for levenshtein_distance function."""

    def test_identical_strings(self):
        assert levenshtein_distance("acme", "acme") == 0

    def test_empty_strings(self):
        assert levenshtein_distance("", "") == 0
        assert levenshtein_distance("abc", "") == 3
        assert levenshtein_distance("", "abc") == 3

    def test_single_edits(self):
        assert levenshtein_distance("corp", "corps") == 1
        assert levenshtein_distance("corps", "corp") == 1
        assert levenshtein_distance("acme", "acne") == 1

    def test_multiple_edits(self):
        assert levenshtein_distance("kitten", "sitting") == 3

    def test_case_sensitive(self):
        assert levenshtein_distance("Acme", "acme") == 1

    def test_max_distance_short_circuits(self):
        assert levenshtein_distance("acme", "zenith", max_distance=1) == 2
        assert levenshtein_distance("a", "abcdef", max_distance=2) == 3


@pytest.mark.unit
class TestFuzzyTolerance:
    """Tests for the per-word fuzzy tolerance."""

    def test_short_words_tolerate_one_edit(self):
        assert tolerated_edit_distance("acme", "acne") == 1
        assert tolerated_edit_distance("ab", "abc") == 1

    def test_long_words_tolerate_a_quarter(self):
        assert tolerated_edit_distance("corporation", "corporatoin") == 2

    def test_is_fuzzy_match(self):
        assert is_fuzzy_match("widgets", "widgetz")
        assert not is_fuzzy_match("gadgets", "widgets")


@pytest.mark.unit
class TestFindFuzzyMatches:
    """Tests for find_fuzzy_matches function."""

    def test_exact_match_first(self):
        matches = find_fuzzy_matches("acme", ["acne", "acme", "acmes"], max_distance=1)

        assert matches[0] == ("acme", 0)
        assert {term for term, _ in matches} == {"acme", "acne", "acmes"}

    def test_ties_sorted_alphabetically(self):
        matches = find_fuzzy_matches("acme", ["acne", "acmes"], max_distance=1)

        assert matches == [("acmes", 1), ("acne", 1)]

    def test_query_is_lowercased(self):
        assert find_fuzzy_matches("ACME", ["acme"], max_distance=1) == [("acme", 0)]

    def test_zero_distance_only_exact(self):
        assert find_fuzzy_matches("acme", ["acne", "acme"], max_distance=0) == [("acme", 0)]
        assert find_fuzzy_matches("acme", ["acne"], max_distance=0) == []

    def test_empty_query(self):
        assert find_fuzzy_matches("", ["acme"], max_distance=1) == []

    def test_far_terms_excluded(self):
        assert find_fuzzy_matches("acme", ["zenith", "bank"], max_distance=1) == []
