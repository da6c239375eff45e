"""Minimum-level severity filter."""

from __future__ import annotations

from lib_log_loki.application.ports.severity import SeverityFilterPort
from lib_log_loki.domain.levels import LogLevel
from lib_log_loki.domain.records import LogRecord


class LevelThresholdFilter(SeverityFilterPort):
    """Accept records whose level is at or above ``level``.

    Examples
    --------
    >>> from datetime import datetime, timezone
    >>> at = datetime(2025, 1, 1, tzinfo=timezone.utc)
    >>> check = LevelThresholdFilter(LogLevel.WARNING)
    >>> check.is_handling(LogRecord(at, LogLevel.ERROR, "boom"))
    True
    >>> check.is_handling(LogRecord(at, LogLevel.INFO, "fine"))
    False
    """

    def __init__(self, level: LogLevel = LogLevel.DEBUG) -> None:
        self._level = level

    @property
    def level(self) -> LogLevel:
        return self._level

    def is_handling(self, record: LogRecord) -> bool:
        return record.level.value >= self._level.value


__all__ = ["LevelThresholdFilter"]
