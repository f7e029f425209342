"""Domain models for search results.

Value objects are immutable (frozen=True). ``ObjectSearchResult`` holds a
reference to the caller's object, not a deserialized copy.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar


T = TypeVar("T")


class EngineState(str, Enum):
    """Lifecycle of a search engine instance."""

    BUILDING = "building"
    READY = "ready"
    CLOSED = "closed"


@dataclass(frozen=True)
class ObjectSearchResult(Generic[T]):
    """One ranked object in a search response.

    Args:
        object: The indexed object itself.
        matched_property: Name of the field that produced the best match.
        match_percentage: Textual match quality, 0-100.
        score: Final ranking score (higher is better).
        matched_text: Stored value of the matched field.
        object_index: Position of ``object`` in the indexed collection.
    """

    object: T
    matched_property: str
    match_percentage: float
    score: float
    matched_text: str
    object_index: int = -1

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization (without the object)."""
        return {
            "object_index": self.object_index,
            "matched_property": self.matched_property,
            "match_percentage": self.match_percentage,
            "score": self.score,
            "matched_text": self.matched_text,
        }
