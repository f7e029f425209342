"""Index records: postings, indexed documents and hits."""

from __future__ import annotations

from array import array
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


@dataclass(frozen=True)
class Posting:
    """Occurrences of one term in one object's field.

    ``positions`` are token positions in ascending order; ``frequency`` is
    their count.
    """

    object_index: int
    frequency: int = 0
    positions: array[int] = field(default_factory=lambda: array("I"))


@dataclass(frozen=True)
class IndexedDocument:
    """One indexed object: its stable index, stored field texts and payload.

    ``stored_fields`` only contains the fields that had a non-blank value and
    is exposed read-only.
    """

    object_index: int
    stored_fields: Mapping[str, str]
    payload: bytes = b""

    def __post_init__(self) -> None:
        if not isinstance(self.stored_fields, MappingProxyType):
            object.__setattr__(self, "stored_fields", MappingProxyType(dict(self.stored_fields)))

    def get(self, field_name: str) -> str | None:
        return self.stored_fields.get(field_name)


@dataclass(frozen=True)
class IndexHit:
    """A scored hit returned by an index query."""

    object_index: int
    score: float
