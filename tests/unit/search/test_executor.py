"""Unit tests for tiered query execution."""

import pytest

from object_search.exceptions import QueryExecutionError
from object_search.search.executor import PropertyMatch, execute_tiers, tier_multiplier
from object_search.search.models import IndexedDocument, IndexHit
from object_search.search.planner import QueryStrategy, QueryTier


class FakeIndex:
    """Index double returning canned hits per strategy and recording calls."""

    def __init__(self, hits_by_strategy, texts=("Acme Corp", "Corp Acme", "Beta")):
        self.hits_by_strategy = hits_by_strategy
        self.calls = []
        self._documents = tuple(
            IndexedDocument(object_index=i, stored_fields={"name": text}) for i, text in enumerate(texts)
        )

    def build(self, documents):
        raise NotImplementedError

    def query(self, tier, limit):
        self.calls.append((tier.strategy, limit))
        hits = self.hits_by_strategy.get(tier.strategy, [])
        if isinstance(hits, Exception):
            raise hits
        return hits[:limit]

    def document(self, object_index):
        return self._documents[object_index]

    @property
    def doc_count(self):
        return len(self._documents)


TIERS = [
    QueryTier("name", QueryStrategy.EXACT_PHRASE, ("acme", "corp")),
    QueryTier("name", QueryStrategy.NEAR_PHRASE, ("acme", "corp"), slop=2),
    QueryTier("name", QueryStrategy.ALL_WORDS, ("acme", "corp")),
]


@pytest.mark.unit
class TestExecuteTiers:
    """First productive tier wins."""

    def test_first_tier_hits_are_undecayed(self):
        index = FakeIndex({QueryStrategy.EXACT_PHRASE: [IndexHit(0, 2.0)]})

        matches = execute_tiers(index, TIERS, 10)

        assert matches == [PropertyMatch("name", 0, "Acme Corp", 2.0, 0)]
        assert [strategy for strategy, _ in index.calls] == [QueryStrategy.EXACT_PHRASE]

    def test_falls_through_to_later_tier_with_decay(self):
        index = FakeIndex({QueryStrategy.ALL_WORDS: [IndexHit(1, 2.0), IndexHit(0, 1.0)]})

        matches = execute_tiers(index, TIERS, 10)

        assert [match.object_index for match in matches] == [1, 0]
        assert matches[0].raw_tier_score == pytest.approx(1.8)
        assert matches[1].raw_tier_score == pytest.approx(0.9)
        assert matches[0].tier_index == 2
        assert matches[0].matched_text == "Corp Acme"

    def test_later_tiers_not_attempted(self):
        index = FakeIndex(
            {
                QueryStrategy.NEAR_PHRASE: [IndexHit(0, 1.0)],
                QueryStrategy.ALL_WORDS: [IndexHit(1, 5.0)],
            }
        )

        matches = execute_tiers(index, TIERS, 10)

        assert [match.object_index for match in matches] == [0]
        assert [strategy for strategy, _ in index.calls] == [QueryStrategy.EXACT_PHRASE, QueryStrategy.NEAR_PHRASE]

    def test_no_hits_anywhere(self):
        index = FakeIndex({})

        assert execute_tiers(index, TIERS, 10) == []
        assert len(index.calls) == 3

    def test_max_hits_passed_to_index(self):
        index = FakeIndex({QueryStrategy.EXACT_PHRASE: [IndexHit(0, 2.0), IndexHit(1, 1.0)]})

        matches = execute_tiers(index, TIERS, 1)

        assert len(matches) == 1
        assert index.calls == [(QueryStrategy.EXACT_PHRASE, 1)]

    def test_custom_decay_step(self):
        index = FakeIndex({QueryStrategy.NEAR_PHRASE: [IndexHit(0, 1.0)]})

        matches = execute_tiers(index, TIERS, 10, decay_step=0.1)

        assert matches[0].raw_tier_score == pytest.approx(0.9)

    def test_index_failure_is_wrapped(self):
        failure = RuntimeError("disk on fire")
        index = FakeIndex({QueryStrategy.NEAR_PHRASE: failure})

        with pytest.raises(QueryExecutionError) as exc_info:
            execute_tiers(index, TIERS, 10)

        assert exc_info.value.__cause__ is failure
        assert exc_info.value.field == "name"
        assert exc_info.value.strategy == "near_phrase"
        assert "Query tier 1 failed" in str(exc_info.value)

    def test_empty_tier_list(self):
        assert execute_tiers(FakeIndex({}), [], 10) == []


@pytest.mark.unit
@pytest.mark.parametrize(
    ("tier_index", "expected"),
    [(0, 1.0), (1, 0.95), (2, 0.9), (4, 0.8)],
)
def test_tier_multiplier(tier_index, expected):
    assert tier_multiplier(tier_index) == pytest.approx(expected)
