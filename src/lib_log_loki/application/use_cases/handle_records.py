"""Use case assembling records into delivery units.

Purpose
-------
Filter records by severity, run processors, format each accepted record into its
own stream entry, and hand the resulting group to the batch sender.

Contents
--------
* :class:`RecordPipeline` – ``handle_one`` / ``handle_batch`` entry points.
* :func:`create_record_pipeline` – factory wiring the collaborators.

System Role
-----------
Application-layer orchestrator invoked by :class:`lib_log_loki.runtime.LokiShipper`
and the stdlib logging bridge. Calls are synchronous: they return after the HTTP
attempt completes.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence

from lib_log_loki.application.ports.processor import RecordProcessorPort
from lib_log_loki.application.ports.severity import SeverityFilterPort
from lib_log_loki.domain.errors import SerializationError
from lib_log_loki.domain.records import LogRecord
from lib_log_loki.domain.settings import LokiSettings
from lib_log_loki.domain.streams import PushPayload, StreamEntry

from ._types import DeliveryResult, SendBatchCallable
from .format_entry import format_entry

Formatter = Callable[[LogRecord], StreamEntry]
RejectedCallback = Callable[[LogRecord, SerializationError], None]


class RecordPipeline:
    """Turn records into push requests.

    Examples
    --------
    >>> from datetime import datetime, timezone
    >>> from lib_log_loki.domain.levels import LogLevel
    >>> from lib_log_loki.domain.settings import build_settings
    >>> class Threshold:
    ...     def is_handling(self, record):
    ...         return record.level.value >= LogLevel.INFO.value
    >>> batches = []
    >>> def fake_send(entries):
    ...     batches.append(list(entries))
    ...     return DeliveryResult.sent(len(entries), 204)
    >>> pipeline = create_record_pipeline(
    ...     settings=build_settings({"entrypoint": "http://loki:3100"}),
    ...     severity_filter=Threshold(),
    ...     send_batch=fake_send,
    ... )
    >>> at = datetime(2025, 1, 1, tzinfo=timezone.utc)
    >>> pipeline.handle_batch([
    ...     LogRecord(at, LogLevel.DEBUG, "noise"),
    ...     LogRecord(at, LogLevel.INFO, "kept"),
    ... ]).entries
    1
    >>> len(batches)
    1
    """

    def __init__(
        self,
        *,
        severity_filter: SeverityFilterPort,
        send_batch: SendBatchCallable,
        formatter: Formatter,
        processors: Sequence[RecordProcessorPort] = (),
    ) -> None:
        self._severity_filter = severity_filter
        self._send_batch = send_batch
        self._formatter = formatter
        self._processors = tuple(processors)

    def is_handling(self, record: LogRecord) -> bool:
        return self._severity_filter.is_handling(record)

    def handle_one(self, record: LogRecord) -> DeliveryResult:
        """Ship ``record`` alone when it passes the severity filter."""

        if not self.is_handling(record):
            return DeliveryResult.skipped("below_threshold")
        return self._send_batch([self._format(record)])

    def handle_batch(self, records: Iterable[LogRecord], *, on_rejected: RejectedCallback | None = None) -> DeliveryResult:
        """Ship every accepted record of ``records`` with a single request.

        Without ``on_rejected`` a record that cannot be serialised fails the whole
        call with :class:`SerializationError`. With it, such records are handed to
        the callback one by one and the rest of the batch is still shipped.
        """

        accepted = [(record, self._format(record)) for record in records if self.is_handling(record)]
        if not accepted:
            return DeliveryResult.skipped("empty_batch")
        entries = [entry for _, entry in accepted]
        if on_rejected is None:
            return self._send_batch(entries)
        try:
            return self._send_batch(entries)
        except SerializationError:
            kept = _reject_unserializable(accepted, on_rejected)
        if not kept:
            return DeliveryResult.skipped("empty_batch")
        return self._send_batch(kept)

    def _format(self, record: LogRecord) -> StreamEntry:
        for processor in self._processors:
            record = processor.process(record)
        return self._formatter(record)


def _reject_unserializable(
    accepted: Sequence[tuple[LogRecord, StreamEntry]],
    on_rejected: RejectedCallback,
) -> list[StreamEntry]:
    kept: list[StreamEntry] = []
    for record, entry in accepted:
        try:
            PushPayload(streams=(entry,)).encode()
        except SerializationError as exc:
            on_rejected(record, exc)
        else:
            kept.append(entry)
    return kept


def create_record_pipeline(
    *,
    settings: LokiSettings,
    severity_filter: SeverityFilterPort,
    send_batch: SendBatchCallable,
    processors: Sequence[RecordProcessorPort] = (),
) -> RecordPipeline:
    """Bind the entry formatter to ``settings`` and build the pipeline."""

    def formatter(record: LogRecord) -> StreamEntry:
        return format_entry(
            record,
            global_labels=settings.global_labels,
            global_context=settings.global_context,
            system_name=settings.system_name,
        )

    return RecordPipeline(
        severity_filter=severity_filter,
        send_batch=send_batch,
        formatter=formatter,
        processors=processors,
    )


__all__ = ["RecordPipeline", "RejectedCallback", "create_record_pipeline"]
