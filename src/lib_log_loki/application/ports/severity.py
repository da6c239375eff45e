"""Port for the severity filter deciding which records reach Loki."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from lib_log_loki.domain.records import LogRecord


@runtime_checkable
class SeverityFilterPort(Protocol):
    """Decide whether a record is forwarded by the adapter."""

    def is_handling(self, record: LogRecord) -> bool:
        """Return ``True`` when ``record`` should be shipped."""


__all__ = ["SeverityFilterPort"]
