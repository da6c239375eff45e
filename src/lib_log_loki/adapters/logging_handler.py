"""Bridge between the stdlib :mod:`logging` module and the shipping pipeline.

Purpose
-------
Let applications attach Loki delivery to ordinary ``logging`` loggers, either
one request per record (:class:`LokiHandler`) or one request per flushed buffer
(:class:`BufferedLokiHandler`).

Contents
--------
* :func:`record_from_logging` – convert ``logging.LogRecord`` into
  :class:`~lib_log_loki.domain.records.LogRecord`.
* :class:`LokiHandler` / :class:`BufferedLokiHandler` – handler classes.

System Role
-----------
Outer adapter for the host's logging framework. The framework decides which
records reach the handler; the handler converts them and calls ``handle_one`` or
``handle_batch``. Network failures never raise out of ``emit``; a
:class:`~lib_log_loki.domain.errors.SerializationError` does, because it points
at a non-serializable value passed by the caller.
"""

from __future__ import annotations

import logging
import logging.handlers
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any, Protocol

from lib_log_loki.domain.levels import LogLevel
from lib_log_loki.domain.records import LogRecord

_STANDARD_ATTRIBUTES = frozenset(logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__) | {
    "message",
    "asctime",
    "taskName",
}
_BRIDGE_ATTRIBUTES = frozenset({"context", "labels", "loki_labels"})

#: Loggers whose records are never shipped, to avoid feedback loops.
INTERNAL_LOGGER_PREFIXES = ("lib_log_loki", "urllib3", "requests")

_EXCEPTION_FORMATTER = logging.Formatter()


class _Shipper(Protocol):
    def handle_one(self, record: LogRecord) -> Any: ...

    def handle_batch(self, records: Iterable[LogRecord]) -> Any: ...


def is_internal_record(record: logging.LogRecord) -> bool:
    """Return ``True`` for records emitted by the delivery stack itself."""

    name = record.name or ""
    return any(name == prefix or name.startswith(prefix + ".") for prefix in INTERNAL_LOGGER_PREFIXES)


def record_from_logging(record: logging.LogRecord, *, formatter: logging.Formatter | None = None) -> LogRecord:
    """Convert a stdlib ``logging`` record.

    * ``message`` – ``formatter.format(record)`` when a formatter is given,
      ``record.getMessage()`` otherwise.
    * ``context`` – ``extra={"context": {...}}`` plus every other non-standard
      attribute passed through ``extra``; exception text under ``exception``.
    * ``labels`` – ``extra={"labels": {...}}`` (or ``loki_labels``).

    Examples
    --------
    >>> raw = logging.LogRecord("svc.api", logging.WARNING, __file__, 1, "disk at %d%%", (91,), None)
    >>> raw.context = {"disk": "/dev/sda"}
    >>> raw.request_id = "r-1"
    >>> converted = record_from_logging(raw)
    >>> converted.message, converted.level, converted.channel
    ('disk at 91%', <LogLevel.WARNING: 30>, 'svc.api')
    >>> sorted(converted.context.items())
    [('disk', '/dev/sda'), ('request_id', 'r-1')]
    """

    message = formatter.format(record) if formatter is not None else record.getMessage()

    context: dict[str, Any] = {}
    explicit = getattr(record, "context", None)
    if isinstance(explicit, Mapping):
        context.update(explicit)
    for key, value in record.__dict__.items():
        if key in _STANDARD_ATTRIBUTES or key in _BRIDGE_ATTRIBUTES or key.startswith("_"):
            continue
        context.setdefault(key, value)
    if record.exc_info and record.exc_info[0] is not None:
        context["exception"] = _EXCEPTION_FORMATTER.formatException(record.exc_info)
    if record.stack_info:
        context["stack"] = record.stack_info

    labels = getattr(record, "labels", None)
    if not isinstance(labels, Mapping):
        labels = getattr(record, "loki_labels", None)

    return LogRecord(
        timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
        level=LogLevel.nearest(record.levelno),
        message=message,
        channel=record.name,
        context=context,
        labels=labels if isinstance(labels, Mapping) else {},
    )


class LokiHandler(logging.Handler):
    """Ship every handled record with its own push request."""

    def __init__(self, shipper: _Shipper, *, level: int = logging.NOTSET) -> None:
        super().__init__(level=level)
        self._shipper = shipper

    def emit(self, record: logging.LogRecord) -> None:
        if is_internal_record(record):
            return
        try:
            converted = record_from_logging(record, formatter=self.formatter)
        except Exception:  # noqa: BLE001
            self.handleError(record)
            return
        self._shipper.handle_one(converted)


class BufferedLokiHandler(logging.handlers.BufferingHandler):
    """Collect records and ship them with one request per flush.

    The buffer flushes when ``capacity`` records are held, when a record at or
    above ``flush_level`` arrives, and on :meth:`flush` / :meth:`close`.
    """

    def __init__(
        self,
        shipper: _Shipper,
        *,
        capacity: int = 100,
        flush_level: int = logging.ERROR,
        level: int = logging.NOTSET,
    ) -> None:
        super().__init__(capacity)
        self.setLevel(level)
        self._shipper = shipper
        self._flush_level = flush_level
        self.buffer: list[LogRecord] = []  # type: ignore[assignment]

    def shouldFlush(self, record: logging.LogRecord) -> bool:  # noqa: N802 - stdlib API
        return len(self.buffer) >= self.capacity or record.levelno >= self._flush_level

    def emit(self, record: logging.LogRecord) -> None:
        if is_internal_record(record):
            return
        try:
            converted = record_from_logging(record, formatter=self.formatter)
        except Exception:  # noqa: BLE001
            self.handleError(record)
            return
        self.buffer.append(converted)
        if self.shouldFlush(record):
            self.flush()

    def flush(self) -> None:
        self.acquire()
        try:
            batch, self.buffer = list(self.buffer), []
        finally:
            self.release()
        if batch:
            self._shipper.handle_batch(batch)


__all__ = [
    "BufferedLokiHandler",
    "INTERNAL_LOGGER_PREFIXES",
    "LokiHandler",
    "is_internal_record",
    "record_from_logging",
]
