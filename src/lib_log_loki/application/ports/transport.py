"""Port describing the HTTP transport used to deliver push payloads."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass(slots=True, frozen=True)
class TransportResponse:
    """Status line and (truncated) body returned by the ingestion endpoint."""

    status_code: int
    body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


@runtime_checkable
class HttpTransportPort(Protocol):
    """POST an encoded payload and report the HTTP outcome."""

    def post(
        self,
        url: str,
        *,
        body: bytes,
        headers: Mapping[str, str],
        auth: tuple[str, str] | None,
        options: Mapping[str, Any],
    ) -> TransportResponse:
        """Send ``body`` to ``url``.

        Raises :class:`~lib_log_loki.domain.errors.TransportError` when no HTTP
        response could be obtained (connection refused, DNS failure, timeout).
        """


__all__ = ["HttpTransportPort", "TransportResponse"]
