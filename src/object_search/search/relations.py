"""Relation expansion: append records related to the matched set.

The expander is chosen when the engine is built. The default does nothing;
:class:`HierarchyRelationExpander` follows a code / parent-code hierarchy.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Mapping, Sequence
import logging
from typing import Any, Protocol

from object_search.domain.search import ObjectSearchResult
from object_search.search.schema import read_attribute


logger = logging.getLogger(__name__)

CodeAccessor = Callable[[Any], Any]


class RelationExpander(Protocol):
    """Post-aggregation step that may add related objects to the results."""

    def expand(
        self,
        results: Sequence[ObjectSearchResult[Any]],
        matched_indices: Collection[int],
        objects: Sequence[Any],
        max_results: int,
    ) -> list[ObjectSearchResult[Any]]:  # pragma: no cover - interface definition
        ...


class NoRelationExpander:
    """Pass-through expander for types without relations."""

    def expand(
        self,
        results: Sequence[ObjectSearchResult[Any]],
        matched_indices: Collection[int],
        objects: Sequence[Any],
        max_results: int,
    ) -> list[ObjectSearchResult[Any]]:
        return list(results)


def _code_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_accessor(source: str | CodeAccessor) -> CodeAccessor:
    if callable(source):
        return source

    def accessor(obj: Any) -> Any:
        return read_attribute(obj, source)

    return accessor


class HierarchyRelationExpander:
    """Pull in objects sharing a hierarchy with the matched ones.

    The parent codes of the current results form a set. Every indexed object
    that produced no match of its own is added when its code is in that set
    (the parent of a match) or its parent code is (a member of the same
    hierarchy). Added objects get a 100% match, their code as matched text,
    and a score below every genuine match.
    """

    def __init__(
        self,
        *,
        code: str | CodeAccessor = "code",
        parent_code: str | CodeAccessor = "parent_code",
        score: float = 0.1,
        property_name: str = "parent_code",
    ) -> None:
        self._code = _as_accessor(code)
        self._parent_code = _as_accessor(parent_code)
        self.score = score
        self.property_name = property_name

    @classmethod
    def for_objects(
        cls,
        objects: Sequence[Any],
        *,
        code: str = "code",
        parent_code: str = "parent_code",
        score: float = 0.1,
    ) -> RelationExpander:
        """Return a hierarchy expander when the objects expose both attributes.

        Falls back to :class:`NoRelationExpander` otherwise, including for an
        empty collection.
        """
        if not objects:
            return NoRelationExpander()
        sample = objects[0]
        has_attributes = (
            code in sample and parent_code in sample
            if isinstance(sample, Mapping)
            else hasattr(sample, code) and hasattr(sample, parent_code)
        )
        if not has_attributes:
            return NoRelationExpander()
        return cls(code=code, parent_code=parent_code, score=score, property_name=parent_code)

    def expand(
        self,
        results: Sequence[ObjectSearchResult[Any]],
        matched_indices: Collection[int],
        objects: Sequence[Any],
        max_results: int,
    ) -> list[ObjectSearchResult[Any]]:
        parent_codes = {code for code in (_code_text(self._parent_code(r.object)) for r in results) if code}
        if not parent_codes:
            return list(results)

        related_score = self._related_score(results)
        related: list[ObjectSearchResult[Any]] = []
        for object_index, obj in enumerate(objects):
            if object_index in matched_indices:
                continue
            code = _code_text(self._code(obj))
            if code is None:
                continue
            if code in parent_codes or _code_text(self._parent_code(obj)) in parent_codes:
                related.append(
                    ObjectSearchResult(
                        object=obj,
                        matched_property=self.property_name,
                        match_percentage=100.0,
                        score=related_score,
                        matched_text=code,
                        object_index=object_index,
                    )
                )

        if not related:
            return list(results)

        logger.debug("Relation expansion added %d objects for %d parent codes", len(related), len(parent_codes))
        combined = [*results, *related]
        combined.sort(key=lambda result: -result.score)
        return combined[:max_results]

    def _related_score(self, results: Sequence[ObjectSearchResult[Any]]) -> float:
        lowest = min((result.score for result in results), default=self.score * 2)
        if lowest > self.score:
            return self.score
        # keep related records strictly below the weakest genuine match
        return lowest / 2
