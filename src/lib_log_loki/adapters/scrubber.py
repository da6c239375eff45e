"""Regex-based context scrubber.

Purpose
-------
Apply configurable regular expressions to the ``context`` of
:class:`LogRecord` objects so secrets are masked before they leave the process
inside a Loki log line.

Contents
--------
* :class:`RegexScrubber` – concrete :class:`RecordProcessorPort` implementation.

System Role
-----------
Runs as a record processor between the severity filter and the entry formatter.
Labels are not scrubbed: they are static, low-cardinality configuration.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence, Set as AbstractSet
from typing import Any, Dict, Pattern

from lib_log_loki.application.ports.processor import RecordProcessorPort
from lib_log_loki.domain.records import LogRecord


class RegexScrubber(RecordProcessorPort):
    """Redact sensitive context fields using regular expressions.

    Parameters
    ----------
    patterns:
        Mapping of field name → regex string; matching values are redacted.
    replacement:
        Token replacing matched values (defaults to ``"***"``).

    Examples
    --------
    >>> from datetime import datetime, timezone
    >>> from lib_log_loki.domain.levels import LogLevel
    >>> record = LogRecord(datetime(2025, 9, 30, 12, 0, tzinfo=timezone.utc), LogLevel.INFO, 'msg', context={'token': 'secret123'})
    >>> scrubber = RegexScrubber(patterns={'token': 'secret'})
    >>> scrubber.process(record).context['token']
    '***'
    """

    def __init__(self, *, patterns: dict[str, str], replacement: str = "***") -> None:
        """Compile the provided ``patterns`` and store the replacement token."""
        self._patterns: Dict[str, Pattern[str]] = {key: re.compile(pattern) for key, pattern in patterns.items()}
        self._replacement = replacement

    def process(self, record: LogRecord) -> LogRecord:
        """Return a copy of ``record`` with matching context fields redacted."""
        if not any(key in record.context for key in self._patterns):
            return record
        context = dict(record.context)
        for key, regex in self._patterns.items():
            if key not in context:
                continue
            context[key] = self._scrub_value(context[key], regex)
        return record.replace(context=context)

    def _scrub_value(self, value: Any, pattern: Pattern[str]) -> Any:
        """Recursively scrub ``value`` across mappings, sequences, sets, and bytes."""

        if isinstance(value, str):
            return self._replacement if pattern.search(value) else value
        if isinstance(value, bytes):
            text = value.decode("utf-8", errors="ignore")
            return self._replacement if pattern.search(text) else value
        if isinstance(value, Mapping):
            return {k: self._scrub_value(v, pattern) for k, v in value.items()}
        if isinstance(value, AbstractSet):
            return type(value)(self._scrub_value(item, pattern) for item in value)
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
            converted = [self._scrub_value(item, pattern) for item in value]
            if isinstance(value, tuple):
                return tuple(converted)
            return type(value)(converted)
        return value


__all__ = ["RegexScrubber"]
