"""BM25 building blocks shared by index backends.

Nothing here knows about postings or fields beyond plain numbers, so another
backend can score with the same formula.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import math


# Longest field, relative to the average, that still gets extra length penalty
MAX_LENGTH_RATIO = 4.0


@dataclass(frozen=True)
class FieldLengthStats:
    """Token count totals of one field across the indexed objects."""

    field: str
    total_terms: int
    document_count: int

    @property
    def average_length(self) -> float:
        return self.total_terms / self.document_count if self.document_count else 0.0


def compute_field_length_stats(field_lengths: Mapping[str, Mapping[int, int]]) -> dict[str, FieldLengthStats]:
    """Summarize per-object token counts (``field -> object_index -> length``)."""
    return {
        field_name: FieldLengthStats(
            field=field_name,
            total_terms=sum(max(length, 0) for length in lengths.values()),
            document_count=len(lengths),
        )
        for field_name, lengths in field_lengths.items()
    }


def calculate_idf(doc_freq: int, total_docs: int, *, floor: float = 1e-6) -> float:
    """Smoothed inverse document frequency, never below ``floor``.

    Terms present in most objects of a small collection would otherwise get
    a negative weight.
    """
    if total_docs <= 0:
        return 0.0
    df = min(max(doc_freq, 0), total_docs)
    ratio = (total_docs - df + 0.5) / (df + 0.5)
    return max(math.log(max(ratio, floor) + floor) + 1.0, floor)


def bm25(tf: float, doc_length: int, avg_doc_length: float, *, k1: float = 1.2, b: float = 0.75) -> float:
    """BM25 term weight without the IDF factor.

    ``tf`` may be fractional: sloppy phrase occurrences count for less than
    one each.
    """
    if tf <= 0:
        return 0.0
    length_ratio = min(doc_length / max(avg_doc_length, 1e-9), MAX_LENGTH_RATIO)
    return tf * (k1 + 1) / (tf + k1 * (1 - b + b * length_ratio))
