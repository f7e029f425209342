"""In-memory positional index over searchable object fields.

The engine only talks to the index through :class:`SearchIndex`, so any
backend able to build from :class:`IndexedDocument` records and answer a
:class:`QueryTier` with scored hits can be plugged in. :class:`InMemoryIndex`
is the default: per-field positional postings scored with BM25.

Building is a one-shot operation. Postings are accumulated in plain dicts and
frozen into tuples and ``MappingProxyType`` views before :meth:`build`
returns, so queries never observe a partially built index and never write
shared state.
"""

from __future__ import annotations

from array import array
from collections import defaultdict
from collections.abc import Callable, Iterable, Mapping, Sequence
import heapq
import logging
from types import MappingProxyType
from typing import Any, Protocol

import orjson

from object_search.exceptions import EngineStateError
from object_search.search.analyzers import Analyzer, get_analyzer
from object_search.search.fuzzy import find_fuzzy_matches
from object_search.search.models import IndexedDocument, IndexHit, Posting
from object_search.search.phrase import count_exact_phrases, sloppy_phrase_frequency
from object_search.search.planner import QueryStrategy, QueryTier
from object_search.search.schema import FieldSchema
from object_search.search.stats import FieldLengthStats, bm25, calculate_idf, compute_field_length_stats


logger = logging.getLogger(__name__)

# Fuzzy variants are discounted to prefer exact matches
_FUZZY_DISCOUNT = 0.8

PayloadSerializer = Callable[[Any], bytes]


class SearchIndex(Protocol):
    """Capability the engine needs from an index backend."""

    def build(self, documents: Sequence[IndexedDocument]) -> None:  # pragma: no cover - interface definition
        ...

    def query(self, tier: QueryTier, limit: int) -> list[IndexHit]:  # pragma: no cover - interface definition
        ...

    def document(self, object_index: int) -> IndexedDocument:  # pragma: no cover - interface definition
        ...

    @property
    def doc_count(self) -> int:  # pragma: no cover - interface definition
        ...


def _json_default(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, (set, frozenset)):
        try:
            return sorted(value)
        except TypeError:
            return list(value)
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    if hasattr(value, "__dict__"):
        return {key: item for key, item in vars(value).items() if not key.startswith("_")}
    return repr(value)


def serialize_payload(obj: Any) -> bytes:
    """Serialize an object to JSON bytes for storage alongside its postings."""
    return orjson.dumps(obj, default=_json_default, option=orjson.OPT_NON_STR_KEYS)


def build_documents(
    objects: Iterable[Any],
    schema: FieldSchema,
    *,
    serializer: PayloadSerializer | None = None,
) -> tuple[IndexedDocument, ...]:
    """Turn objects into indexed documents.

    ``object_index`` is the object's position in ``objects``. Blank field
    values are left out of ``stored_fields`` entirely.
    """
    serialize = serializer or serialize_payload
    documents: list[IndexedDocument] = []
    for object_index, obj in enumerate(objects):
        stored: dict[str, str] = {}
        for field in schema:
            text = field.text_of(obj)
            if text is not None:
                stored[field.name] = text
        documents.append(
            IndexedDocument(
                object_index=object_index,
                stored_fields=stored,
                payload=serialize(obj),
            )
        )
    return tuple(documents)


class InMemoryIndex:
    """Positional inverted index with BM25 scoring for tiered queries."""

    def __init__(self, analyzer: Analyzer | None = None, *, k1: float = 1.2, b: float = 0.75) -> None:
        self.analyzer = analyzer or get_analyzer(None)
        self.k1 = k1
        self.b = b
        self._built = False
        self._documents: tuple[IndexedDocument, ...] = ()
        self._postings: Mapping[str, Mapping[str, Mapping[int, Posting]]] = MappingProxyType({})
        self._field_lengths: Mapping[str, Mapping[int, int]] = MappingProxyType({})
        self._stats: Mapping[str, FieldLengthStats] = MappingProxyType({})
        self._vocabulary: Mapping[str, tuple[str, ...]] = MappingProxyType({})

    # ------------------------------------------------------------------ build

    def build(self, documents: Sequence[IndexedDocument]) -> None:
        """Index every stored field of ``documents``. May only be called once."""
        if self._built:
            raise EngineStateError("Index has already been built")

        postings: dict[str, dict[str, dict[int, list[int]]]] = defaultdict(lambda: defaultdict(dict))
        field_lengths: dict[str, dict[int, int]] = defaultdict(dict)

        for document in documents:
            for field_name, text in document.stored_fields.items():
                tokens = self.analyzer(text)
                field_lengths[field_name][document.object_index] = len(tokens)
                field_postings = postings[field_name]
                for token in tokens:
                    field_postings[token.text].setdefault(document.object_index, []).append(token.position)

        frozen_postings: dict[str, Mapping[str, Mapping[int, Posting]]] = {}
        vocabulary: dict[str, tuple[str, ...]] = {}
        for field_name, terms in postings.items():
            frozen_terms: dict[str, Mapping[int, Posting]] = {}
            for term, by_object in terms.items():
                frozen_terms[term] = MappingProxyType(
                    {
                        object_index: Posting(
                            object_index=object_index,
                            frequency=len(positions),
                            positions=array("I", positions),
                        )
                        for object_index, positions in by_object.items()
                    }
                )
            frozen_postings[field_name] = MappingProxyType(frozen_terms)
            vocabulary[field_name] = tuple(sorted(frozen_terms))

        # commit: swap everything in at once
        self._documents = tuple(documents)
        self._postings = MappingProxyType(frozen_postings)
        self._field_lengths = MappingProxyType(
            {name: MappingProxyType(lengths) for name, lengths in field_lengths.items()}
        )
        self._stats = MappingProxyType(compute_field_length_stats(self._field_lengths))
        self._vocabulary = MappingProxyType(vocabulary)
        self._built = True
        logger.debug(
            "Indexed %d documents across %d fields (%d terms)",
            len(self._documents),
            len(self._postings),
            sum(len(terms) for terms in self._vocabulary.values()),
        )

    def close(self) -> None:
        """Drop all index structures."""
        self._documents = ()
        self._postings = MappingProxyType({})
        self._field_lengths = MappingProxyType({})
        self._stats = MappingProxyType({})
        self._vocabulary = MappingProxyType({})

    # --------------------------------------------------------------- accessors

    @property
    def doc_count(self) -> int:
        return len(self._documents)

    @property
    def documents(self) -> tuple[IndexedDocument, ...]:
        return self._documents

    def document(self, object_index: int) -> IndexedDocument:
        return self._documents[object_index]

    def vocabulary(self, field_name: str) -> tuple[str, ...]:
        return self._vocabulary.get(field_name, ())

    def get_postings(self, field_name: str, term: str) -> Mapping[int, Posting]:
        return self._postings.get(field_name, MappingProxyType({})).get(term, MappingProxyType({}))

    # ------------------------------------------------------------------ query

    def query(self, tier: QueryTier, limit: int) -> list[IndexHit]:
        """Return up to ``limit`` hits for ``tier``, best first."""
        if not self._built:
            raise EngineStateError("Index has not been built")
        if limit <= 0 or not tier.terms:
            return []

        scorer = self._SCORERS[tier.strategy]
        scores = scorer(self, tier)
        if not scores:
            return []

        best = heapq.nsmallest(limit, scores.items(), key=lambda item: (-item[1], item[0]))
        return [IndexHit(object_index=object_index, score=score) for object_index, score in best]

    def _term_weight(self, field_name: str, posting: Posting, doc_freq: int) -> float:
        idf = calculate_idf(doc_freq, self.doc_count)
        return idf * self._bm25(field_name, posting.object_index, posting.frequency)

    def _bm25(self, field_name: str, object_index: int, frequency: float) -> float:
        stats = self._stats.get(field_name)
        avg_length = stats.average_length if stats else 1.0
        doc_length = self._field_lengths.get(field_name, {}).get(object_index, 1)
        return bm25(frequency, doc_length, avg_length, k1=self.k1, b=self.b)

    def _term_postings(self, tier: QueryTier) -> list[Mapping[int, Posting]] | None:
        """Postings per query term, or None when any term is missing from the field."""
        per_term = [self.get_postings(tier.field, term) for term in tier.terms]
        if any(not postings for postings in per_term):
            return None
        return per_term

    def _score_phrase(self, tier: QueryTier) -> dict[int, float]:
        per_term = self._term_postings(tier)
        if per_term is None:
            return {}

        candidates = set(per_term[0]).intersection(*per_term[1:])
        idf_sum = sum(calculate_idf(len(postings), self.doc_count) for postings in per_term)
        scores: dict[int, float] = {}
        for object_index in candidates:
            positions = [postings[object_index].positions for postings in per_term]
            if tier.strategy is QueryStrategy.EXACT_PHRASE:
                frequency: float = count_exact_phrases(positions)
            else:
                frequency = sloppy_phrase_frequency(positions, tier.slop)
            if frequency <= 0:
                continue
            scores[object_index] = idf_sum * self._bm25(tier.field, object_index, frequency)
        return scores

    def _score_all_words(self, tier: QueryTier) -> dict[int, float]:
        per_term = self._term_postings(tier)
        if per_term is None:
            return {}

        candidates = set(per_term[0]).intersection(*per_term[1:])
        return {
            object_index: sum(
                self._term_weight(tier.field, postings[object_index], len(postings)) for postings in per_term
            )
            for object_index in candidates
        }

    def _score_majority(self, tier: QueryTier) -> dict[int, float]:
        distinct_terms = dict.fromkeys(tier.terms)
        matched: dict[int, int] = defaultdict(int)
        weights: dict[int, float] = defaultdict(float)
        for term in distinct_terms:
            postings = self.get_postings(tier.field, term)
            for object_index, posting in postings.items():
                matched[object_index] += 1
                weights[object_index] += self._term_weight(tier.field, posting, len(postings))

        required = max(1, tier.minimum_should_match)
        total = len(distinct_terms)
        # coordination factor: more matched words score higher
        return {
            object_index: weights[object_index] * (count / total)
            for object_index, count in matched.items()
            if count >= min(required, total)
        }

    def _fuzzy_weights(self, field_name: str, term: str, max_edits: int) -> dict[int, float]:
        """Best weight per object for any vocabulary term within ``max_edits`` of ``term``."""
        best: dict[int, float] = {}
        for variant, distance in find_fuzzy_matches(term, self.vocabulary(field_name), max_edits):
            postings = self.get_postings(field_name, variant)
            discount = 1.0 if distance == 0 else _FUZZY_DISCOUNT
            for object_index, posting in postings.items():
                weight = self._term_weight(field_name, posting, len(postings)) * discount
                if weight > best.get(object_index, 0.0):
                    best[object_index] = weight
        return best

    def _score_fuzzy_term(self, tier: QueryTier) -> dict[int, float]:
        return self._fuzzy_weights(tier.field, tier.terms[0], tier.max_edits)

    def _score_words_plus_fuzzy(self, tier: QueryTier) -> dict[int, float]:
        scores: dict[int, float] = defaultdict(float)
        for term in dict.fromkeys(tier.terms):
            postings = self.get_postings(tier.field, term)
            for object_index, posting in postings.items():
                scores[object_index] += self._term_weight(tier.field, posting, len(postings))

        if not scores:
            return {}

        # fuzzy clauses only add to objects that already matched an exact word
        for term in dict.fromkeys(tier.fuzzy_terms):
            for object_index, weight in self._fuzzy_weights(tier.field, term, tier.max_edits).items():
                if object_index in scores:
                    scores[object_index] += weight
        return dict(scores)

    _SCORERS: Mapping[QueryStrategy, Callable[[InMemoryIndex, QueryTier], dict[int, float]]] = MappingProxyType(
        {
            QueryStrategy.EXACT_PHRASE: _score_phrase,
            QueryStrategy.NEAR_PHRASE: _score_phrase,
            QueryStrategy.ALL_WORDS: _score_all_words,
            QueryStrategy.MAJORITY_WORDS: _score_majority,
            QueryStrategy.WORDS_PLUS_FUZZY: _score_words_plus_fuzzy,
            QueryStrategy.FUZZY_TERM: _score_fuzzy_term,
        }
    )
