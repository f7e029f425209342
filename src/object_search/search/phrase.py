"""Ordered phrase matching over term positions.

Both helpers take one sorted position list per phrase term, in phrase order.
Positions come straight from the postings, so no field text is re-analyzed.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Sequence


def count_exact_phrases(term_positions: Sequence[Sequence[int]]) -> int:
    """Return how many times the terms occur adjacent and in order."""
    if not term_positions or any(not positions for positions in term_positions):
        return 0

    following = [set(positions) for positions in term_positions[1:]]
    count = 0
    for start in term_positions[0]:
        if all(start + offset + 1 in positions for offset, positions in enumerate(following)):
            count += 1
    return count


def sloppy_phrase_frequency(term_positions: Sequence[Sequence[int]], slop: int) -> float:
    """Return the weighted frequency of in-order phrase occurrences.

    An occurrence may have up to ``slop`` intervening tokens in total between
    its terms. Each occurrence contributes ``1 / (1 + gap)``, so an adjacent
    occurrence counts fully and looser ones count less.

    Examples:
        >>> sloppy_phrase_frequency([[0], [1]], slop=2)
        1.0
        >>> sloppy_phrase_frequency([[0], [3]], slop=2)
        0.3333333333333333
        >>> sloppy_phrase_frequency([[0], [4]], slop=2)
        0.0
    """
    if not term_positions or any(not positions for positions in term_positions):
        return 0.0

    frequency = 0.0
    for start in term_positions[0]:
        previous = start
        gap = 0
        for positions in term_positions[1:]:
            # earliest position after the previous term keeps the gap minimal
            idx = bisect_right(positions, previous)
            if idx == len(positions):
                gap = slop + 1
                break
            gap += positions[idx] - previous - 1
            if gap > slop:
                break
            previous = positions[idx]
        if gap <= slop:
            frequency += 1.0 / (1 + gap)
    return frequency
