"""Merge per-field matches into one best match per object."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from object_search.search.relevance import ScoredMatch


class ResultAggregator:
    """Keeps the best scored match per object in an arena indexed by ``object_index``.

    A later match only replaces the stored one when its score is strictly
    higher, so on ties the field offered first (schema order) wins.
    """

    def __init__(self, doc_count: int) -> None:
        self._best: list[ScoredMatch | None] = [None] * doc_count
        self._seen: list[int] = []

    def offer(self, match: ScoredMatch) -> bool:
        """Record ``match``; return True when it became the object's best match."""
        current = self._best[match.object_index]
        if current is None:
            self._best[match.object_index] = match
            self._seen.append(match.object_index)
            return True
        if match.score > current.score:
            self._best[match.object_index] = match
            return True
        return False

    def offer_all(self, matches: Iterable[ScoredMatch]) -> None:
        for match in matches:
            self.offer(match)

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, object_index: object) -> bool:
        return isinstance(object_index, int) and 0 <= object_index < len(self._best) and (
            self._best[object_index] is not None
        )

    @property
    def matched_indices(self) -> frozenset[int]:
        """Every object with a surviving match, before truncation."""
        return frozenset(self._seen)

    def ranked(
        self,
        limit: int,
        *,
        tie_breaker: Callable[[ScoredMatch], float] | None = None,
    ) -> list[ScoredMatch]:
        """Best matches sorted by descending score, truncated to ``limit``.

        Equal scores are ordered by ``tie_breaker`` (higher first) when given,
        then by ascending ``object_index``.
        """
        if limit <= 0:
            return []
        retained = [match for match in self._best if match is not None]
        if tie_breaker is None:
            retained.sort(key=lambda match: (-match.score, match.object_index))
        else:
            retained.sort(key=lambda match: (-match.score, -tie_breaker(match), match.object_index))
        return retained[:limit]
