"""Host-facing shipper object returned by :func:`lib_log_loki.build_shipper`."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from threading import RLock

from lib_log_loki.adapters.queue import QueueAdapter
from lib_log_loki.application.use_cases._diagnostics import build_diagnostic_emitter
from lib_log_loki.application.use_cases._types import DeliveryResult, DiagnosticHook
from lib_log_loki.application.use_cases.handle_records import RecordPipeline
from lib_log_loki.domain.errors import SerializationError
from lib_log_loki.domain.records import LogRecord
from lib_log_loki.domain.settings import LokiSettings

logger = logging.getLogger(__name__)


class LokiShipper:
    """Synchronous Loki delivery with an optional background queue.

    ``handle_one`` and ``handle_batch`` return once the HTTP attempt finished.
    They raise only :class:`~lib_log_loki.domain.errors.SerializationError`;
    transport failures are reported through the returned
    :class:`DeliveryResult`.
    """

    def __init__(self, *, settings: LokiSettings, pipeline: RecordPipeline, diagnostic: DiagnosticHook = None) -> None:
        self._settings = settings
        self._pipeline = pipeline
        self._diagnostic = diagnostic
        self._emit = build_diagnostic_emitter(diagnostic)
        self._queue: QueueAdapter | None = None
        self._queue_lock = RLock()

    @property
    def settings(self) -> LokiSettings:
        return self._settings

    def is_handling(self, record: LogRecord) -> bool:
        return self._pipeline.is_handling(record)

    def handle_one(self, record: LogRecord) -> DeliveryResult:
        return self._pipeline.handle_one(record)

    def handle_batch(self, records: Iterable[LogRecord]) -> DeliveryResult:
        return self._pipeline.handle_batch(records)

    def handle(self, record: LogRecord) -> bool:
        """Ship ``record`` and report whether a handler chain should stop here.

        Returns ``True`` only when the record was accepted by the severity filter
        and ``bubble`` is disabled.
        """

        if not self.is_handling(record):
            return False
        self.handle_one(record)
        return not self._settings.bubble

    @property
    def background_active(self) -> bool:
        return self._queue is not None

    def start_background(
        self,
        *,
        maxsize: int = 2048,
        max_batch: int = 100,
        drop_policy: str = "drop",
        timeout: float | None = 1.0,
        stop_timeout: float | None = 5.0,
    ) -> QueueAdapter:
        """Start a worker thread shipping :meth:`enqueue`-d records in batches."""

        with self._queue_lock:
            if self._queue is None:
                adapter = QueueAdapter(
                    worker=self._ship_queued,
                    maxsize=maxsize,
                    max_batch=max_batch,
                    drop_policy=drop_policy,
                    timeout=timeout,
                    stop_timeout=stop_timeout,
                    diagnostic=self._diagnostic,
                )
                adapter.start()
                self._queue = adapter
            return self._queue

    def enqueue(self, record: LogRecord) -> bool:
        """Queue ``record`` for background delivery; ship inline when no worker runs.

        Records below the severity threshold are discarded before queueing.
        Returns ``False`` when the queue rejected the record.
        """

        if not self.is_handling(record):
            return False
        queue = self._queue
        if queue is None:
            self.handle_one(record)
            return True
        return queue.put(record)

    def _ship_queued(self, batch: Sequence[LogRecord]) -> DeliveryResult:
        return self._pipeline.handle_batch(batch, on_rejected=self._reject_queued)

    def _reject_queued(self, record: LogRecord, exc: SerializationError) -> None:
        logger.error("Dropping queued %s record from channel %r: %s", record.level.name, record.channel, exc)
        self._emit("queue_worker_error", {"records": 1, "exception": repr(exc)})

    def stop_background(self, *, drain: bool = True, timeout: float | None = None) -> None:
        """Stop the worker, shipping queued records first when ``drain`` is set."""

        with self._queue_lock:
            queue, self._queue = self._queue, None
        if queue is not None:
            queue.stop(drain=drain, timeout=timeout)
            logger.debug("Background Loki delivery stopped (drain=%s)", drain)


__all__ = ["LokiShipper"]
