"""Domain value objects returned by the engine."""

from object_search.domain.search import EngineState, ObjectSearchResult


__all__ = ["EngineState", "ObjectSearchResult"]
