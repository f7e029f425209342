"""Exception hierarchy for the object search engine."""


class ObjectSearchError(Exception):
    """Base class for all engine errors."""


class SchemaError(ObjectSearchError, ValueError):
    """Raised when the searchable field schema cannot be built."""


class QueryExecutionError(ObjectSearchError, RuntimeError):
    """Raised when the underlying index fails while executing a query tier."""

    def __init__(self, message: str, *, field: str | None = None, strategy: str | None = None) -> None:
        super().__init__(message)
        self.field = field
        self.strategy = strategy


class EngineStateError(ObjectSearchError, RuntimeError):
    """Raised when the engine is used outside of its READY state."""


class EngineClosedError(EngineStateError):
    """Raised when searching an engine that has been closed."""
