"""Entry formatter turning one record into one Loki stream entry.

Purpose
-------
Merge adapter-wide labels and context with the record's own values and express
the timestamp in the nanosecond epoch format required by the push API.

Contents
--------
* :func:`format_entry` – the pure formatting function.
* :func:`to_epoch_nanoseconds` – exact datetime → nanosecond conversion.

System Role
-----------
Called by the record pipeline for every accepted record. It performs no I/O and
holds no state, so concurrent callers may share it freely. Values that cannot be
serialised are passed through untouched; the encoder reports them.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from lib_log_loki.domain.records import LogRecord
from lib_log_loki.domain.settings import TENANT_FIELD
from lib_log_loki.domain.streams import LogLine, StreamEntry

SYSTEM_NAME_FIELD = "systemName"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_epoch_nanoseconds(timestamp: datetime) -> str:
    """Return ``timestamp`` as nanoseconds since the epoch, without float rounding.

    Examples
    --------
    >>> to_epoch_nanoseconds(datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc))
    '1700000000000000000'
    >>> to_epoch_nanoseconds(datetime(1970, 1, 1, 0, 0, 0, 1, tzinfo=timezone.utc))
    '1000'
    """

    delta = timestamp - _EPOCH
    seconds = delta.days * 86_400 + delta.seconds
    return str(seconds * 1_000_000_000 + delta.microseconds * 1_000)


def format_entry(
    record: LogRecord,
    *,
    global_labels: Mapping[str, Any],
    global_context: Mapping[str, Any],
    system_name: str | None = None,
) -> StreamEntry:
    """Convert ``record`` into a single-line :class:`StreamEntry`.

    Record labels and record context win over the global values on key
    collision. ``system_name`` is injected before the record context is merged,
    so a record may still override it explicitly. The configured tenant
    (``tenantId`` in ``global_context``) is re-applied last; a record cannot
    relabel its own tenant.

    Examples
    --------
    >>> from lib_log_loki.domain.levels import LogLevel
    >>> record = LogRecord(
    ...     timestamp=datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc),
    ...     level=LogLevel.INFO,
    ...     message="hello",
    ...     context={"user": "ada"},
    ...     labels={"env": "prod"},
    ... )
    >>> entry = format_entry(record, global_labels={"app": "api", "env": "dev"}, global_context={}, system_name="web-1")
    >>> dict(entry.labels)
    {'app': 'api', 'env': 'prod'}
    >>> dict(entry.lines[0].fields)
    {'systemName': 'web-1', 'user': 'ada'}
    """

    labels = {str(key): str(value) for key, value in {**global_labels, **record.labels}.items()}

    fields: dict[str, Any] = dict(global_context)
    if system_name is not None:
        fields[SYSTEM_NAME_FIELD] = system_name
    fields.update(record.context)
    if TENANT_FIELD in global_context:
        fields[TENANT_FIELD] = global_context[TENANT_FIELD]

    line = LogLine(
        timestamp=to_epoch_nanoseconds(record.timestamp),
        line=record.message,
        fields=fields,
        level=record.level.severity,
        channel=record.channel,
    )
    return StreamEntry(labels=labels, lines=(line,))


__all__ = ["SYSTEM_NAME_FIELD", "format_entry", "to_epoch_nanoseconds"]
