"""Search metrics recorded in Prometheus and mirrored to OpenTelemetry.

Prometheus holds the authoritative values (see :func:`get_metrics`); each
update is also forwarded to an OpenTelemetry instrument so a host that
installs a meter provider gets the same series without scraping.
"""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING, Any

from opentelemetry import metrics as otel_metrics
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.resources import Resource
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, Counter, Gauge, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Iterator

    from opentelemetry.sdk.metrics.export import MetricReader

_INSTRUMENTATION_NAME = "object_search"

_meter_holder: dict[str, Any] = {"meter": None, "provider": None}

# OTel instrument factory per metric kind; gauges are tracked as up-down counters
_OTEL_FACTORIES = {
    "counter": "create_counter",
    "histogram": "create_histogram",
    "gauge": "create_up_down_counter",
}


def init_metrics(
    service_name: str = "object-search",
    resource_attributes: dict[str, str] | None = None,
    metric_readers: list[MetricReader] | None = None,
) -> MeterProvider:
    """Install an SDK meter provider once and return it on later calls."""
    provider = _meter_holder["provider"]
    if provider is not None:
        return provider

    resource = Resource.create({"service.name": service_name, **(resource_attributes or {})})
    provider = MeterProvider(resource=resource, metric_readers=metric_readers or [])
    otel_metrics.set_meter_provider(provider)
    _meter_holder["provider"] = provider
    _meter_holder["meter"] = provider.get_meter(_INSTRUMENTATION_NAME)
    return provider


def _get_meter():
    if _meter_holder["meter"] is None:
        _meter_holder["meter"] = otel_metrics.get_meter(_INSTRUMENTATION_NAME)
    return _meter_holder["meter"]


class _LabeledMetric:
    def __init__(self, bridge: MetricBridge, labels: dict[str, str]) -> None:
        self._bridge = bridge
        self._labels = labels

    def inc(self, amount: float = 1.0) -> None:
        self._bridge.inc(self._labels, amount)

    def observe(self, value: float) -> None:
        self._bridge.observe(self._labels, value)

    def set(self, value: float) -> None:
        self._bridge.set(self._labels, value)


class MetricBridge:
    """A Prometheus metric whose updates are mirrored to an OTel instrument.

    The instrument is created lazily from whichever meter is current at the
    first update.
    """

    def __init__(
        self,
        prom_metric: Counter | Histogram | Gauge,
        *,
        otel_name: str,
        otel_description: str,
        otel_kind: str,
    ) -> None:
        self._prom_metric = prom_metric
        self.otel_name = otel_name
        self.otel_description = otel_description
        self.otel_kind = otel_kind
        self._instrument: Any = None
        self._gauge_values: dict[tuple[tuple[str, str], ...], float] = {}

    def labels(self, **labels: str) -> _LabeledMetric:
        return _LabeledMetric(self, labels)

    def _otel(self) -> Any:
        if self._instrument is None:
            try:
                factory_name = _OTEL_FACTORIES[self.otel_kind]
            except KeyError:
                raise ValueError(f"Unknown metric kind: {self.otel_kind}") from None
            factory = getattr(_get_meter(), factory_name)
            self._instrument = factory(self.otel_name, description=self.otel_description)
        return self._instrument

    def inc(self, labels: dict[str, str], amount: float) -> None:
        instrument = self._otel()
        self._prom_metric.labels(**labels).inc(amount)
        instrument.add(amount, labels)

    def observe(self, labels: dict[str, str], value: float) -> None:
        instrument = self._otel()
        self._prom_metric.labels(**labels).observe(value)
        instrument.record(value, labels)

    def set(self, labels: dict[str, str], value: float) -> None:
        instrument = self._otel()
        self._prom_metric.labels(**labels).set(value)
        key = tuple(sorted(labels.items()))
        delta = value - self._gauge_values.get(key, 0.0)
        self._gauge_values[key] = value
        if delta:
            instrument.add(delta, labels)


def _bridge(prom_metric: Counter | Histogram | Gauge, name: str, description: str, kind: str) -> MetricBridge:
    return MetricBridge(prom_metric, otel_name=name, otel_description=description, otel_kind=kind)


SEARCH_LATENCY = _bridge(
    Histogram(
        "object_search_latency_seconds",
        "Search latency",
        ["engine"],
        buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5),
    ),
    "object_search_latency_seconds",
    "Search latency",
    "histogram",
)

SEARCH_RESULTS = _bridge(
    Histogram(
        "object_search_results",
        "Results returned per search",
        ["engine"],
        buckets=(0, 1, 5, 10, 20, 50, 100),
    ),
    "object_search_results",
    "Results returned per search",
    "histogram",
)

INDEX_DOC_COUNT = _bridge(
    Gauge("object_search_index_documents", "Objects indexed by an engine", ["engine"]),
    "object_search_index_documents",
    "Objects indexed by an engine",
    "gauge",
)

ERROR_COUNT = _bridge(
    Counter("object_search_errors_total", "Failed searches", ["engine", "error_type"]),
    "object_search_errors_total",
    "Failed searches",
    "counter",
)


@contextmanager
def track_latency(histogram: MetricBridge, **labels: str) -> Iterator[None]:
    """Observe the block's wall time in ``histogram``, even when it raises."""
    start = time.perf_counter()
    try:
        yield
    finally:
        histogram.labels(**labels).observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    """Prometheus text exposition of the default registry."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
