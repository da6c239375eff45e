"""Thread-based queue adapter for background delivery.

Purpose
-------
Decouple producers from the network: records are enqueued without blocking on
HTTP and a daemon worker ships them in batches.

Contents
--------
* :class:`QueueAdapter` - background worker implementation of :class:`QueuePort`.

System Role
-----------
Optional non-blocking variant of the synchronous pipeline. The worker hands each
batch to :meth:`RecordPipeline.handle_batch`; failures inside the worker
(including serialization errors, which cannot reach the original caller any
more) are logged and reported to the diagnostic hook, and the worker keeps
running.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable, Sequence

from lib_log_loki.application.ports.queue import QueuePort
from lib_log_loki.application.use_cases._diagnostics import build_diagnostic_emitter
from lib_log_loki.application.use_cases._types import DiagnosticHook
from lib_log_loki.domain.records import LogRecord


LOGGER = logging.getLogger(__name__)

BatchWorker = Callable[[Sequence[LogRecord]], object]


class QueueAdapter(QueuePort):
    """Ship queued records on a background thread.

    Examples
    --------
    >>> processed = []
    >>> adapter = QueueAdapter(worker=lambda batch: processed.extend(batch))
    >>> adapter.start()
    >>> from datetime import datetime, timezone
    >>> from lib_log_loki.domain.levels import LogLevel
    >>> record = LogRecord(datetime(2025, 9, 30, 12, 0, tzinfo=timezone.utc), LogLevel.INFO, 'msg')
    >>> adapter.put(record)
    True
    >>> adapter.stop(drain=True)
    >>> processed[0].message
    'msg'
    """

    def __init__(
        self,
        *,
        worker: BatchWorker | None = None,
        maxsize: int = 2048,
        max_batch: int = 100,
        drop_policy: str = "block",
        on_drop: Callable[[LogRecord], None] | None = None,
        timeout: float | None = 1.0,
        stop_timeout: float | None = 5.0,
        diagnostic: DiagnosticHook = None,
    ) -> None:
        """Create the queue with an optional initial worker and capacity.

        Parameters
        ----------
        worker:
            Callable invoked with each batch of records; defaults to ``None``
            until :meth:`set_worker` installs the delivery closure.
        maxsize:
            Maximum number of queued records before backpressure or drops apply.
        max_batch:
            Upper bound of records handed to the worker in one call.
        drop_policy:
            Either ``"block"`` (producers wait up to ``timeout``) or ``"drop"``
            (new records are rejected when the queue is full).
        on_drop:
            Optional callback invoked when records are dropped.
        timeout:
            Timeout (seconds) for producers when using the blocking policy.
            ``None`` blocks indefinitely.
        stop_timeout:
            Default drain deadline (seconds) applied by :meth:`stop`. ``None``
            disables the deadline.
        """
        if max_batch < 1:
            raise ValueError("max_batch must be positive")
        policy = drop_policy.lower()
        if policy not in {"block", "drop"}:
            raise ValueError("drop_policy must be 'block' or 'drop'")
        self._worker = worker
        self._queue: queue.Queue[LogRecord | None] = queue.Queue(maxsize=maxsize)
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._drop_pending = False
        self._drain_event = threading.Event()
        self._drain_event.set()
        self._max_batch = max_batch
        self._drop_policy = policy
        self._on_drop = on_drop
        self._timeout = timeout
        self._stop_timeout = stop_timeout
        self._emit = build_diagnostic_emitter(diagnostic)
        self._worker_failed = False
        self._degraded_drop_mode = False

    def start(self) -> None:
        """Start the background worker thread if it is not already running."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._drop_pending = False
        self._worker_failed = False
        self._degraded_drop_mode = False
        self._thread = threading.Thread(target=self._run, name="lib-log-loki-queue", daemon=True)
        self._thread.start()

    def stop(self, *, drain: bool = True, timeout: float | None = None) -> None:
        """Stop the worker thread, optionally draining queued records.

        Parameters
        ----------
        drain:
            When ``True`` queued records are shipped before the worker exits.
            When ``False`` pending records are dropped via the drop handler.
        timeout:
            Per-call override for the drain deadline.
        """
        thread = self._thread
        if thread is None:
            return

        effective_timeout = timeout if timeout is not None else self._stop_timeout
        deadline = time.monotonic() + effective_timeout if effective_timeout is not None else None

        self._drop_pending = not drain
        self._stop_event.set()
        if not drain:
            self._drain_pending_items()
        self._enqueue_stop_signal(deadline)

        if deadline is None:
            thread.join()
        else:
            thread.join(max(0.0, deadline - time.monotonic()))

        if thread.is_alive():
            self._emit("queue_shutdown_timeout", {"timeout": effective_timeout, "drain": drain})
            raise RuntimeError("Queue worker failed to stop within the allotted timeout")

        self._thread = None
        self._stop_event.clear()
        self._drop_pending = False
        self._drain_event.set()

    def put(self, record: LogRecord) -> bool:
        """Enqueue ``record`` for background delivery.

        Returns ``True`` when the record was accepted, ``False`` when the queue
        was full and the configured drop policy discarded it."""
        effective_policy = self._drop_policy
        if effective_policy == "block" and self._worker_failed:
            effective_policy = "drop"
            self._note_degraded_drop_mode()

        self._drain_event.clear()
        try:
            if effective_policy == "drop":
                self._queue.put(record, block=False)
            elif self._timeout is not None:
                self._queue.put(record, timeout=self._timeout)
            else:
                self._queue.put(record)
        except queue.Full:
            self._handle_drop(record)
            return False
        return True

    def set_worker(self, worker: BatchWorker) -> None:
        """Swap the worker callable used to ship batches."""
        self._worker = worker

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        """Block until all queued records are processed or ``timeout`` elapses."""

        if self._queue.unfinished_tasks == 0:
            return True
        return self._drain_event.wait(timeout)

    @property
    def worker_failed(self) -> bool:
        """Return ``True`` while the most recent batch raised inside the worker."""

        return self._worker_failed

    def _run(self) -> None:
        """Internal worker loop draining the queue until stopped."""
        while True:
            batch, taken, stop_seen = self._collect_batch()
            try:
                if batch:
                    self._process(batch)
            finally:
                for _ in range(taken):
                    self._queue.task_done()
                if self._queue.unfinished_tasks == 0:
                    self._drain_event.set()

            if stop_seen and self._stop_event.is_set():
                break

    def _collect_batch(self) -> tuple[list[LogRecord], int, bool]:
        """Block for one item, then take whatever else is ready up to ``max_batch``."""
        batch: list[LogRecord] = []
        item = self._queue.get()
        taken = 1
        stop_seen = item is None
        if item is not None:
            batch.append(item)
        while not stop_seen and len(batch) < self._max_batch:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                break
            taken += 1
            if item is None:
                stop_seen = True
            else:
                batch.append(item)
        return batch, taken, stop_seen

    def _process(self, batch: list[LogRecord]) -> None:
        if self._drop_pending:
            for record in batch:
                self._handle_drop(record)
            return
        if self._worker is None:
            return
        try:
            self._worker(batch)
        except Exception as exc:  # noqa: BLE001
            self._worker_failed = True
            LOGGER.error("Queue worker raised an exception; continuing", exc_info=exc)
            self._emit("queue_worker_error", {"records": len(batch), "exception": repr(exc)})
        else:
            self._worker_failed = False
            self._degraded_drop_mode = False

    def _handle_drop(self, record: LogRecord) -> None:
        """Invoke the drop callback when the queue rejects a record."""
        self._emit("queue_dropped", {"channel": record.channel, "level": record.level.name})
        if self._on_drop is None:
            return
        try:
            self._on_drop(record)
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Queue drop handler raised an exception; continuing", exc_info=exc)

    def _note_degraded_drop_mode(self) -> None:
        """Record the transition to drop mode after worker failure."""

        if self._degraded_drop_mode:
            return
        self._degraded_drop_mode = True
        self._emit("queue_degraded_drop_mode", {"reason": "worker_failed"})

    def _drain_pending_items(self) -> None:
        """Remove any queued records left for a non-draining stop."""

        while True:
            try:
                dropped = self._queue.get_nowait()
            except queue.Empty:
                break
            else:
                if dropped is not None:
                    self._handle_drop(dropped)
                self._queue.task_done()

    def _enqueue_stop_signal(self, deadline: float | None) -> None:
        """Ensure the worker thread wakes up to observe the stop event."""

        while True:
            try:
                if deadline is None:
                    self._queue.put(None)
                else:
                    self._queue.put(None, timeout=max(0.0, deadline - time.monotonic()))
                self._drain_event.clear()
                break
            except queue.Full:
                try:
                    dropped = self._queue.get_nowait()
                except queue.Empty:
                    continue
                else:
                    if dropped is not None:
                        self._handle_drop(dropped)
                    self._queue.task_done()


__all__ = ["QueueAdapter"]
