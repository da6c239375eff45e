"""Shared fixtures: deterministic records and a recording HTTP transport."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import pytest

from lib_log_loki.application.ports.transport import HttpTransportPort, TransportResponse
from lib_log_loki.domain.errors import TransportError
from lib_log_loki.domain.levels import LogLevel
from lib_log_loki.domain.records import LogRecord
from lib_log_loki.domain.streams import decode_packet

FIXED_TIME = datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
FIXED_NS = "1700000000000000000"


@dataclass
class PostedRequest:
    url: str
    body: bytes
    headers: dict[str, str]
    auth: tuple[str, str] | None
    options: dict[str, Any]

    @property
    def payload(self) -> dict[str, Any]:
        return decode_packet(self.body)


class RecordingTransport(HttpTransportPort):
    """Transport double answering with scripted statuses or errors."""

    def __init__(self, *outcomes: int | TransportError) -> None:
        self.requests: list[PostedRequest] = []
        self._outcomes = list(outcomes)

    def post(
        self,
        url: str,
        *,
        body: bytes,
        headers: Mapping[str, str],
        auth: tuple[str, str] | None,
        options: Mapping[str, Any],
    ) -> TransportResponse:
        self.requests.append(PostedRequest(url, body, dict(headers), auth, dict(options)))
        outcome = self._outcomes.pop(0) if self._outcomes else 204
        if isinstance(outcome, TransportError):
            raise outcome
        return TransportResponse(status_code=outcome, body="" if outcome < 300 else "rejected")


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def transport_factory() -> Callable[..., RecordingTransport]:
    return RecordingTransport


@pytest.fixture
def make_record() -> Callable[..., LogRecord]:
    def _make(
        message: str = "hello",
        level: LogLevel = LogLevel.INFO,
        *,
        channel: str = "app",
        context: Mapping[str, Any] | None = None,
        labels: Mapping[str, Any] | None = None,
        timestamp: datetime = FIXED_TIME,
    ) -> LogRecord:
        return LogRecord(
            timestamp=timestamp,
            level=level,
            message=message,
            channel=channel,
            context=context or {},
            labels=labels or {},
        )

    return _make
