"""Object search engine: build once, search many.

Hides the whole pipeline (schema, index, tier planning, relevance scoring,
aggregation, relation expansion) behind a constructor and a single
:meth:`ObjectSearchEngine.search` method.

The engine has two working states. ``BUILDING`` lasts for the duration of
``__init__``; any failure there propagates and no engine is returned.
``READY`` is entered exactly once at the end of construction, after which
nothing the engine holds is mutated by ``search``, so concurrent searches
need no locking. ``close()`` moves the engine to ``CLOSED``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
import logging
from typing import Generic, Self, TypeVar

from object_search.config import EngineSettings, get_settings
from object_search.domain.search import EngineState, ObjectSearchResult
from object_search.exceptions import EngineClosedError, EngineStateError, ObjectSearchError
from object_search.observability.metrics import (
    ERROR_COUNT,
    INDEX_DOC_COUNT,
    SEARCH_LATENCY,
    SEARCH_RESULTS,
    track_latency,
)
from object_search.observability.tracing import create_span
from object_search.search.aggregator import ResultAggregator
from object_search.search.analyzers import get_analyzer
from object_search.search.executor import execute_tiers
from object_search.search.index import InMemoryIndex, PayloadSerializer, SearchIndex, build_documents
from object_search.search.models import IndexedDocument
from object_search.search.planner import QueryPlanner
from object_search.search.relations import NoRelationExpander, RelationExpander
from object_search.search.relevance import ScoredMatch, name_similarity, score_match
from object_search.search.schema import FieldSchema, SearchableField, build_field_schema


logger = logging.getLogger(__name__)

T = TypeVar("T")


class ObjectSearchEngine(Generic[T]):
    """Multi-field fuzzy search over a fixed collection of objects.

    Args:
        objects: The collection to index. Result ``object_index`` values are
            positions in this sequence.
        fields: Searchable field table. Defaults to ``item_type.search_fields()``
            or the first object's type's ``search_fields()``.
        item_type: Type whose ``search_fields()`` declares the table; needed
            for empty collections without explicit ``fields``.
        relation_expander: Post-aggregation expansion strategy. Defaults to
            no expansion.
        index: Index backend to build into. Defaults to :class:`InMemoryIndex`.
        serializer: Payload serializer. Defaults to orjson.
        settings: Engine settings. Defaults to :func:`get_settings`.
        name: Label used in metrics and spans.

    Raises:
        SchemaError: No searchable fields, or duplicate field names.
    """

    def __init__(
        self,
        objects: Iterable[T],
        *,
        fields: Sequence[SearchableField] | None = None,
        item_type: type | None = None,
        relation_expander: RelationExpander | None = None,
        index: SearchIndex | None = None,
        serializer: PayloadSerializer | None = None,
        settings: EngineSettings | None = None,
        name: str = "default",
    ) -> None:
        self._state = EngineState.BUILDING
        self.name = name
        self.settings = settings or get_settings()
        self._objects: tuple[T, ...] = tuple(objects)

        with create_span("object_search.build", attributes={"engine": name, "objects": len(self._objects)}):
            self._schema = build_field_schema(self._objects, fields=fields, item_type=item_type)
            analyzer = get_analyzer(self.settings.analyzer_name)
            self._planner = QueryPlanner(
                analyzer,
                near_phrase_slop=self.settings.near_phrase_slop,
                majority_ratio=self.settings.majority_ratio,
                fuzzy_min_word_length=self.settings.fuzzy_min_word_length,
                fuzzy_max_edits=self.settings.fuzzy_max_edits,
            )
            self._relation_expander: RelationExpander = relation_expander or NoRelationExpander()
            self._index: SearchIndex = index or InMemoryIndex(
                analyzer,
                k1=self.settings.bm25_k1,
                b=self.settings.bm25_b,
            )
            documents = build_documents(self._objects, self._schema, serializer=serializer)
            self._index.build(documents)

        INDEX_DOC_COUNT.labels(engine=name).set(len(self._objects))
        logger.info(
            "Search engine '%s' ready: %d objects, fields=%s",
            name,
            len(self._objects),
            ",".join(self._schema.names),
        )
        self._state = EngineState.READY

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self) -> Iterator[T]:
        return iter(self._objects)

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def schema(self) -> FieldSchema:
        return self._schema

    @property
    def index(self) -> SearchIndex:
        return self._index

    @property
    def documents(self) -> tuple[IndexedDocument, ...]:
        return tuple(self._index.document(i) for i in range(self._index.doc_count))

    def get(self, object_index: int) -> T:
        """Return the object stored at ``object_index``."""
        return self._objects[object_index]

    def payload(self, object_index: int) -> bytes:
        """Return the serialized payload stored for ``object_index``."""
        return self._index.document(object_index).payload

    def close(self) -> None:
        """Release the index. Further searches raise :class:`EngineClosedError`."""
        if self._state is EngineState.CLOSED:
            return
        close = getattr(self._index, "close", None)
        if callable(close):
            close()
        self._state = EngineState.CLOSED
        logger.debug("Search engine '%s' closed", self.name)

    def search(self, search_text: str, max_results: int | None = None) -> list[ObjectSearchResult[T]]:
        """Return up to ``max_results`` objects ranked by descending score.

        Blank search text returns an empty list. Index failures are raised as
        :class:`~object_search.exceptions.QueryExecutionError`.
        """
        if self._state is EngineState.CLOSED:
            raise EngineClosedError(f"Search engine '{self.name}' is closed")
        if self._state is not EngineState.READY:
            raise EngineStateError(f"Search engine '{self.name}' is not ready ({self._state.value})")

        if not search_text or not search_text.strip():
            return []

        limit = self.settings.default_max_results if max_results is None else max_results
        if limit <= 0:
            return []

        with (
            track_latency(SEARCH_LATENCY, engine=self.name),
            create_span("object_search.search", attributes={"engine": self.name, "max_results": limit}) as span,
        ):
            try:
                results = self._search(search_text, limit)
            except ObjectSearchError as exc:
                ERROR_COUNT.labels(engine=self.name, error_type=type(exc).__name__).inc()
                logger.error("Search failed for engine '%s': %s", self.name, exc, exc_info=True)
                raise
            span.set_attribute("results", len(results))

        SEARCH_RESULTS.labels(engine=self.name).observe(len(results))
        return results

    def _search(self, search_text: str, limit: int) -> list[ObjectSearchResult[T]]:
        fetch = limit * self.settings.fetch_multiplier
        aggregator = ResultAggregator(len(self._objects))

        for field in self._schema:
            tiers = self._planner.plan(field, search_text)
            if not tiers:
                continue
            matches = execute_tiers(self._index, tiers, fetch, decay_step=self.settings.tier_decay_step)
            for match in matches:
                scored = score_match(match, field, search_text)
                if scored is not None:
                    aggregator.offer(scored)

        tie_breaker = _similarity_tie_breaker(search_text) if self.settings.tie_break_by_similarity else None
        ranked = [self._to_result(match) for match in aggregator.ranked(limit, tie_breaker=tie_breaker)]
        results = self._relation_expander.expand(ranked, aggregator.matched_indices, self._objects, limit)
        logger.debug(
            "Search %r on '%s': %d matched, %d returned",
            search_text,
            self.name,
            len(aggregator),
            len(results),
        )
        return results

    def _to_result(self, match: ScoredMatch) -> ObjectSearchResult[T]:
        return ObjectSearchResult(
            object=self._objects[match.object_index],
            matched_property=match.field_name,
            match_percentage=match.match_percentage,
            score=match.score,
            matched_text=match.matched_text,
            object_index=match.object_index,
        )


def _similarity_tie_breaker(search_text: str) -> Callable[[ScoredMatch], float]:
    query = search_text.strip().lower()

    def similarity(match: ScoredMatch) -> float:
        return name_similarity(match.matched_text.lower(), query)

    return similarity
