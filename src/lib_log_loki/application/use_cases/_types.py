"""Shared result types and callable signatures for the delivery use cases."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from lib_log_loki.domain.errors import TransportError
from lib_log_loki.domain.streams import StreamEntry

DiagnosticHook = Callable[[str, dict[str, Any]], None] | None


@dataclass(slots=True, frozen=True)
class DeliveryResult:
    """Outcome of one delivery unit.

    ``delivered`` is ``True`` only when the endpoint acknowledged the push with a
    2xx status. ``reason`` names why nothing was delivered: ``below_threshold``
    and ``empty_batch`` mean no request was attempted, ``http_status`` and
    ``transport_error`` mean the attempt failed.
    """

    delivered: bool
    entries: int = 0
    status_code: int | None = None
    reason: str | None = None
    error: TransportError | None = None

    @property
    def attempted(self) -> bool:
        return self.status_code is not None or self.error is not None

    @classmethod
    def sent(cls, entries: int, status_code: int) -> "DeliveryResult":
        return cls(delivered=True, entries=entries, status_code=status_code)

    @classmethod
    def skipped(cls, reason: str) -> "DeliveryResult":
        return cls(delivered=False, reason=reason)

    @classmethod
    def failed(cls, entries: int, error: TransportError, *, reason: str) -> "DeliveryResult":
        return cls(delivered=False, entries=entries, status_code=error.status_code, reason=reason, error=error)


class SendBatchCallable(Protocol):
    def __call__(self, entries: Sequence[StreamEntry]) -> DeliveryResult: ...


__all__ = ["DeliveryResult", "DiagnosticHook", "SendBatchCallable"]
