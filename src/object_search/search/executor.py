"""Tier execution: run a field's tiers in order until one produces hits."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import logging

from object_search.exceptions import QueryExecutionError
from object_search.search.index import SearchIndex
from object_search.search.planner import QueryTier


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PropertyMatch:
    """A hit on one field of one object, before relevance scoring."""

    field_name: str
    object_index: int
    matched_text: str
    raw_tier_score: float
    tier_index: int = 0


def tier_multiplier(tier_index: int, decay_step: float = 0.05) -> float:
    """Score multiplier for the tier at ``tier_index`` (0 is undecayed)."""
    return 1.0 - decay_step * tier_index


def execute_tiers(
    index: SearchIndex,
    tiers: Sequence[QueryTier],
    max_hits: int,
    *,
    decay_step: float = 0.05,
) -> list[PropertyMatch]:
    """Run ``tiers`` against ``index`` and return the hits of the first productive tier.

    Later tiers are never attempted once a tier returns hits. Failures of the
    index are raised as :class:`QueryExecutionError`.
    """
    for tier_index, tier in enumerate(tiers):
        try:
            hits = index.query(tier, max_hits)
        except Exception as exc:
            msg = f"Query tier {tier_index} failed: {tier.describe()}"
            raise QueryExecutionError(msg, field=tier.field, strategy=tier.strategy.value) from exc

        if not hits:
            continue

        multiplier = tier_multiplier(tier_index, decay_step)
        logger.debug("Field %s matched %d objects via %s", tier.field, len(hits), tier.strategy.value)
        return [
            PropertyMatch(
                field_name=tier.field,
                object_index=hit.object_index,
                matched_text=index.document(hit.object_index).get(tier.field) or "",
                raw_tier_score=hit.score * multiplier,
                tier_index=tier_index,
            )
            for hit in hits
        ]
    return []
