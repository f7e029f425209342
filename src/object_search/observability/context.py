"""Correlation ids shared by spans and log records.

Each search runs inside an OpenTelemetry span. Its ids are copied into a
``ContextVar`` so every record logged while the search runs carries them,
including records from threads searching concurrently.
"""

from __future__ import annotations

from contextvars import ContextVar, Token
import secrets


_correlation: ContextVar[dict[str, str] | None] = ContextVar("object_search_correlation", default=None)


def get_trace_context() -> dict[str, str]:
    """Return the current ids, minting fresh random ones outside any span."""
    ctx = _correlation.get()
    if not ctx or not ctx.get("trace_id"):
        ctx = {"trace_id": secrets.token_hex(16), "span_id": secrets.token_hex(8)}
        _correlation.set(ctx)
    return ctx


def set_trace_context(trace_id: str, span_id: str, **extra: str) -> None:
    _correlation.set({"trace_id": trace_id, "span_id": span_id, **extra})


def update_span_id(span_id: str) -> None:
    """Replace the span id, keeping the trace id and any extras."""
    _correlation.set({**(_correlation.get() or {}), "span_id": span_id})


def bind_span_ids(trace_id: int, span_id: int) -> Token[dict[str, str] | None]:
    """Copy numeric OpenTelemetry ids into the correlation context as hex.

    Returns the token that restores the previous ids via ``restore_trace_context``.
    """
    return _correlation.set(
        {
            **(_correlation.get() or {}),
            "trace_id": format(trace_id, "032x"),
            "span_id": format(span_id, "016x"),
        }
    )


def restore_trace_context(token: Token[dict[str, str] | None]) -> None:
    _correlation.reset(token)
