"""OpenTelemetry spans around engine construction and searches."""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.trace import SpanKind

from object_search.observability.context import bind_span_ids, restore_trace_context


if TYPE_CHECKING:
    from collections.abc import Iterator

    from opentelemetry.trace import Span, Tracer

logger = logging.getLogger(__name__)

_INSTRUMENTATION_NAME = "object_search"

_tracer_holder: dict[str, Tracer | None] = {"tracer": None}


def init_tracing(
    service_name: str = "object-search",
    resource_attributes: dict[str, str] | None = None,
) -> TracerProvider:
    """Install an SDK tracer provider and use it for engine spans.

    Exporters are left to the host application: add span processors to the
    returned provider.
    """
    resource = Resource.create({"service.name": service_name, **(resource_attributes or {})})
    provider = TracerProvider(resource=resource)
    trace.set_tracer_provider(provider)
    _tracer_holder["tracer"] = provider.get_tracer(_INSTRUMENTATION_NAME)
    logger.info("Tracing initialized for %s", service_name)
    return provider


def get_tracer() -> Tracer:
    tracer = _tracer_holder["tracer"]
    if tracer is None:
        tracer = trace.get_tracer(_INSTRUMENTATION_NAME)
        _tracer_holder["tracer"] = tracer
    return tracer


@contextmanager
def create_span(
    name: str,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: dict[str, Any] | None = None,
) -> Iterator[Span]:
    """Run the block inside a span; exceptions mark the span as failed and propagate."""
    with get_tracer().start_as_current_span(
        name,
        kind=kind,
        attributes=attributes,
        record_exception=True,
        set_status_on_exception=True,
    ) as span:
        span_context = span.get_span_context()
        if not span_context.is_valid:
            yield span
            return
        token = bind_span_ids(span_context.trace_id, span_context.span_id)
        try:
            yield span
        finally:
            restore_trace_context(token)
