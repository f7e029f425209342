"""
Searchable field schema.

Each indexed type declares a static table of searchable fields instead of
marking attributes for runtime discovery. A field couples a name with an
accessor and the knobs that drive ranking:

- priority: lower is more important; scores are scaled by ``100 / priority``
- match_threshold: minimum match percentage (0-100) a hit needs to survive
- exact_match_only: only the exact ordered phrase tier is attempted

Example:
    class Issuer:
        @classmethod
        def search_fields(cls):
            return (
                SearchableField.attribute("name", priority=1, match_threshold=60),
                SearchableField.attribute("code", priority=2, exact_match_only=True),
            )
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from types import MappingProxyType
from typing import Annotated, Any, Protocol, runtime_checkable

from pydantic import Field
from pydantic.dataclasses import dataclass

from object_search.exceptions import SchemaError


def read_attribute(obj: Any, name: str) -> Any:
    """Read ``name`` from a mapping key or an object attribute."""
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


@dataclass(frozen=True)
class SearchableField:
    """Immutable declaration of one searchable attribute.

    Validated at construction: priority must be >= 1 and the match threshold
    must lie in [0, 100].
    """

    name: Annotated[str, Field(min_length=1)]
    accessor: Callable[[Any], Any]
    priority: Annotated[int, Field(ge=1)] = 1
    match_threshold: Annotated[int, Field(ge=0, le=100)] = 0
    exact_match_only: bool = False

    @classmethod
    def attribute(
        cls,
        name: str,
        *,
        priority: int = 1,
        match_threshold: int = 0,
        exact_match_only: bool = False,
        attribute_name: str | None = None,
    ) -> SearchableField:
        """Declare a field read from the attribute (or mapping key) ``attribute_name or name``."""
        source = attribute_name or name

        def accessor(obj: Any) -> Any:
            return read_attribute(obj, source)

        return cls(
            name=name,
            accessor=accessor,
            priority=priority,
            match_threshold=match_threshold,
            exact_match_only=exact_match_only,
        )

    def text_of(self, obj: Any) -> str | None:
        """Return the field's text for ``obj``, or None when it is blank."""
        value = self.accessor(obj)
        if value is None:
            return None
        text = value if isinstance(value, str) else str(value)
        if not text.strip():
            return None
        return text


@runtime_checkable
class SearchableType(Protocol):
    """Capability implemented by types that declare their own search fields."""

    @classmethod
    def search_fields(cls) -> Sequence[SearchableField]:  # pragma: no cover - interface definition
        ...


class FieldSchema:
    """Ordered, read-only mapping of field name to :class:`SearchableField`.

    Iteration follows declaration order, which is also the tie-break order
    when two fields score an object equally.
    """

    def __init__(self, fields: Iterable[SearchableField]) -> None:
        ordered = tuple(fields)
        if not ordered:
            raise SchemaError("No searchable fields declared")

        field_map: dict[str, SearchableField] = {}
        for field in ordered:
            if field.name in field_map:
                msg = f"Duplicate searchable field name: '{field.name}'"
                raise SchemaError(msg)
            field_map[field.name] = field

        self._fields = ordered
        self._field_map = MappingProxyType(field_map)

    def __getitem__(self, name: str) -> SearchableField:
        return self._field_map[name]

    def __contains__(self, name: object) -> bool:
        return name in self._field_map

    def __iter__(self) -> Iterator[SearchableField]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"FieldSchema({', '.join(self.names)})"

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(field.name for field in self._fields)


def resolve_search_fields(
    objects: Sequence[Any],
    *,
    fields: Sequence[SearchableField] | None = None,
    item_type: type | None = None,
) -> Sequence[SearchableField]:
    """Find the field table for a collection.

    Explicit ``fields`` win. Otherwise the table comes from
    ``item_type.search_fields()``, falling back to the type of the first
    object. Raises SchemaError when no table can be found.
    """
    if fields is not None:
        return fields

    source = item_type
    if source is None and objects:
        source = type(objects[0])
    if source is None:
        raise SchemaError("Cannot resolve searchable fields for an empty collection without an item type")

    declare = getattr(source, "search_fields", None)
    if not callable(declare):
        msg = f"Type '{source.__name__}' declares no searchable fields"
        raise SchemaError(msg)
    return tuple(declare())


def build_field_schema(
    objects: Sequence[Any],
    *,
    fields: Sequence[SearchableField] | None = None,
    item_type: type | None = None,
) -> FieldSchema:
    """Resolve and validate the field schema for ``objects``."""
    return FieldSchema(resolve_search_fields(objects, fields=fields, item_type=item_type))
