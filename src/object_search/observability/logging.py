"""Structured JSON log lines correlated with the active search span."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import sys
from typing import Any

import orjson

from object_search.observability.context import get_trace_context


# Attributes every LogRecord has; anything else was passed through ``extra``
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_PLAIN_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _clip(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


class JsonFormatter(logging.Formatter):
    """One JSON object per record, stamped with the current trace and span ids.

    ``extra`` fields are copied to the top level. Keys that look like
    credentials are redacted and long string values are clipped.
    """

    REDACT_KEYS = frozenset({"password", "token", "api_key", "secret", "authorization"})
    MAX_MESSAGE_LEN = 2000
    MAX_EXTRA_LEN = 500

    def format(self, record: logging.LogRecord) -> str:
        correlation = get_trace_context()
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "component": record.name.rpartition(".")[2],
            "message": _clip(record.getMessage(), self.MAX_MESSAGE_LEN),
            "trace_id": correlation.get("trace_id", ""),
            "span_id": correlation.get("span_id", ""),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in vars(record).items():
            if key in _STANDARD_ATTRS or key.startswith("_"):
                continue
            if key.lower() in self.REDACT_KEYS:
                entry[key] = "[REDACTED]"
            elif isinstance(value, str):
                entry[key] = _clip(value, self.MAX_EXTRA_LEN)
            else:
                entry[key] = value

        return orjson.dumps(entry, default=self._json_default).decode("utf-8")

    @staticmethod
    def _json_default(value: Any) -> Any:
        if isinstance(value, (set, frozenset)):
            try:
                return sorted(value)
            except TypeError:
                return list(value)
        if isinstance(value, (bytes, bytearray)):
            return value.decode("utf-8", errors="replace")
        return str(value)


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    *,
    logger_levels: dict[str, str] | None = None,
) -> None:
    """Route all logging to stdout, as JSON lines or plain text.

    Replaces any handlers already on the root logger. Unknown level names
    fall back to INFO.
    """
    levels = logging.getLevelNamesMapping()
    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if json_output else logging.Formatter(_PLAIN_FORMAT))
    root.addHandler(handler)
    root.setLevel(levels.get(level.upper(), logging.INFO))

    for name, logger_level in (logger_levels or {}).items():
        logging.getLogger(name).setLevel(levels.get(logger_level.upper(), logging.INFO))
