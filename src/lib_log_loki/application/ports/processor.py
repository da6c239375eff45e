"""Port for record processors applied before formatting."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from lib_log_loki.domain.records import LogRecord


@runtime_checkable
class RecordProcessorPort(Protocol):
    """Transform a record (enrich, redact) before it is formatted."""

    def process(self, record: LogRecord) -> LogRecord:
        """Return the record to ship in place of ``record``."""


__all__ = ["RecordProcessorPort"]
