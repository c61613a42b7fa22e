"""
Structured JSON logging for the measurement import system.

Every record under the ``envmon`` logger is written as one JSON object per
line. Messages are event names (``import_confirm_completed``); details go in
``extra``. Fields bound with ``LogContext.bind`` (correlation id of a
Preview, batch id and actor of a Confirm) are added to every record written
inside the block.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from types import MappingProxyType
from typing import Any, TextIO

LOGGER_NAMESPACE = "envmon"

CONTEXT_FIELDS = frozenset({"correlation_id", "batch_id", "actor_id", "producer"})

_EMPTY_CONTEXT: Mapping[str, str] = MappingProxyType({})
_context: ContextVar[Mapping[str, str]] = ContextVar("envmon_log_context", default=_EMPTY_CONTEXT)

# Attributes every LogRecord carries; anything else on a record came from ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


class LogContext:
    """Per-call log fields, safe across threads and async tasks."""

    @staticmethod
    @contextmanager
    def bind(**fields: str | None) -> Iterator[None]:
        """
        Add fields to every record logged inside the block.

        None values are skipped, so an optional actor id can be passed as is.
        Outer bindings are restored on exit.
        """
        unknown = set(fields) - CONTEXT_FIELDS
        if unknown:
            raise TypeError(f"Unknown log context fields: {', '.join(sorted(unknown))}")
        merged = dict(_context.get())
        merged.update({k: v for k, v in fields.items() if v is not None})
        token = _context.set(MappingProxyType(merged))
        try:
            yield
        finally:
            _context.reset(token)

    @staticmethod
    def current() -> Mapping[str, str]:
        return _context.get()


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: event, level, context, extras, exception."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.current(),
        }
        entry.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in entry
        )

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            entry["exc_type"] = type(exc).__name__
            entry["exc_message"] = str(exc)
            # typed EnvMonitorError subclasses carry a machine-readable code
            code = getattr(exc, "code", None)
            if isinstance(code, str):
                entry["exc_code"] = code
            entry["traceback"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Logger ``envmon.<name>``."""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


def _structured_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if isinstance(h.formatter, StructuredFormatter)]


def configure_logging(*, level: int | str = logging.INFO, stream: TextIO | None = None) -> None:
    """
    Send ``envmon`` records to ``stream`` (stderr by default) as JSON lines.

    Calling it again only updates the level; no second handler is added.
    """
    root = logging.getLogger(LOGGER_NAMESPACE)
    root.setLevel(level)
    root.propagate = False
    if _structured_handlers(root):
        return
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())
    root.addHandler(handler)


def reset_logging() -> None:
    """Remove the JSON handlers added by ``configure_logging``. Used by tests."""
    root = logging.getLogger(LOGGER_NAMESPACE)
    for handler in _structured_handlers(root):
        root.removeHandler(handler)
    root.setLevel(logging.NOTSET)
    root.propagate = True
