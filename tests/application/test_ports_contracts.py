from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from lib_log_loki.adapters import LevelThresholdFilter, QueueAdapter, RegexScrubber, RequestsTransport
from lib_log_loki.application.ports import (
    HttpTransportPort,
    QueuePort,
    RecordProcessorPort,
    SeverityFilterPort,
    TransportResponse,
)
from lib_log_loki.domain.levels import LogLevel
from lib_log_loki.domain.records import LogRecord


class _Recorder:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []

    def record(self, name: str, **payload) -> None:
        self.calls.append((name, payload))


class _FakeTransport(HttpTransportPort):
    def __init__(self, recorder: _Recorder) -> None:
        self.recorder = recorder

    def post(
        self,
        url: str,
        *,
        body: bytes,
        headers: Mapping[str, str],
        auth: tuple[str, str] | None,
        options: Mapping[str, Any],
    ) -> TransportResponse:
        self.recorder.record("post", url=url, size=len(body))
        return TransportResponse(204)


class _FakeQueue(QueuePort):
    def __init__(self, recorder: _Recorder) -> None:
        self.recorder = recorder

    def start(self) -> None:
        self.recorder.record("start")

    def stop(self, *, drain: bool = True) -> None:
        self.recorder.record("stop", drain=drain)

    def put(self, record: LogRecord) -> bool:
        self.recorder.record("put", message=record.message)
        return True


def test_fakes_satisfy_ports(make_record) -> None:
    recorder = _Recorder()
    transport = _FakeTransport(recorder)
    queue = _FakeQueue(recorder)

    assert isinstance(transport, HttpTransportPort)
    assert isinstance(queue, QueuePort)

    transport.post("http://loki/loki/api/v1/push", body=b"{}", headers={}, auth=None, options={})
    queue.start()
    assert queue.put(make_record("queued")) is True
    queue.stop(drain=False)

    assert [name for name, _ in recorder.calls] == ["post", "start", "put", "stop"]


def test_shipped_adapters_satisfy_ports() -> None:
    assert isinstance(RequestsTransport(), HttpTransportPort)
    assert isinstance(LevelThresholdFilter(LogLevel.INFO), SeverityFilterPort)
    assert isinstance(RegexScrubber(patterns={"password": ".+"}), RecordProcessorPort)
    assert isinstance(QueueAdapter(), QueuePort)


def test_transport_response_ok_covers_2xx_only() -> None:
    assert TransportResponse(200).ok
    assert TransportResponse(204).ok
    assert not TransportResponse(199).ok
    assert not TransportResponse(301).ok
    assert not TransportResponse(500, "boom").ok
