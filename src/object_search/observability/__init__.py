"""Logging, tracing and metrics for search engines."""

from object_search.observability.context import get_trace_context, set_trace_context
from object_search.observability.logging import JsonFormatter, configure_logging
from object_search.observability.metrics import (
    ERROR_COUNT,
    INDEX_DOC_COUNT,
    SEARCH_LATENCY,
    SEARCH_RESULTS,
    get_metrics,
    get_metrics_content_type,
    init_metrics,
    track_latency,
)
from object_search.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "ERROR_COUNT",
    "INDEX_DOC_COUNT",
    "SEARCH_LATENCY",
    "SEARCH_RESULTS",
    "JsonFormatter",
    "configure_logging",
    "create_span",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "init_metrics",
    "init_tracing",
    "set_trace_context",
    "track_latency",
]
