"""Port describing the queue infrastructure for background delivery."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from lib_log_loki.domain.records import LogRecord


@runtime_checkable
class QueuePort(Protocol):
    """Bridge between producer threads and the delivery worker."""

    def start(self) -> None:
        """Start the queue worker."""

    def stop(self, *, drain: bool = True) -> None:
        """Stop the queue worker, optionally draining queued records."""

    def put(self, record: LogRecord) -> bool:
        """Enqueue ``record`` for asynchronous delivery."""


__all__ = ["QueuePort"]
