"""Domain record describing one log entry handed over by the host application.

Purpose
-------
Provide an immutable input type for the shipping pipeline so that filters,
processors, and the entry formatter never depend on the stdlib
:class:`logging.LogRecord` layout.

Contents
--------
* :class:`LogRecord` dataclass.
* Utility function ``_ensure_aware`` for timestamp validation.

System Role
-----------
Sits in the domain layer. The stdlib bridge in
:mod:`lib_log_loki.adapters.logging_handler` converts ``logging`` records into
this shape; library users may also build records directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Mapping

from .levels import LogLevel


def _ensure_aware(ts: datetime) -> datetime:
    """Validate that ``ts`` is timezone-aware and normalise to UTC."""
    if ts.tzinfo is None or ts.tzinfo.utcoffset(ts) is None:
        raise ValueError("timestamp must be timezone-aware")
    return ts.astimezone(timezone.utc)


@dataclass(slots=True, frozen=True)
class LogRecord:
    """Immutable log record awaiting delivery.

    Attributes
    ----------
    timestamp:
        Time of the record in timezone-aware UTC.
    level:
        :class:`LogLevel` severity associated with the record.
    message:
        Fully rendered message text; placeholder interpolation happens upstream.
    channel:
        Logical logger emitting the record.
    context:
        Structured fields attached to this record only. They override the
        adapter-wide context on key collision.
    labels:
        Per-record stream label overrides. Keep them low-cardinality: every
        distinct label set becomes a separate Loki stream.
    """

    timestamp: datetime
    level: LogLevel
    message: str
    channel: str = "app"
    context: Mapping[str, Any] = field(default_factory=dict)
    labels: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", _ensure_aware(self.timestamp))
        object.__setattr__(self, "context", dict(self.context))
        object.__setattr__(self, "labels", dict(self.labels))

    def replace(self, **changes: Any) -> "LogRecord":
        """Return a copied record with ``changes`` applied."""

        return replace(self, **changes)


__all__ = ["LogRecord"]
