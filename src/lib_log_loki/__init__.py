"""Public package surface for shipping log records to Grafana Loki.

Host applications call :func:`build_shipper` with an ``api_config`` mapping and
hand :class:`LogRecord` instances (or stdlib records through
:class:`LokiHandler`) to the returned :class:`LokiShipper`.

Examples
--------
>>> shipper = build_shipper({"entrypoint": "https://logs.example.com"})
>>> shipper.settings.push_url
'https://logs.example.com/loki/api/v1/push'
"""

from __future__ import annotations

from .adapters import BufferedLokiHandler, LokiHandler, QueueAdapter, RegexScrubber, RequestsTransport
from .application.ports import TransportResponse
from .application.use_cases import DeliveryResult
from .domain import (
    ConfigurationError,
    LogLevel,
    LogRecord,
    LokiError,
    LokiSettings,
    PushPayload,
    SerializationError,
    TransportError,
    build_settings,
    decode_packet,
    encode_packet,
)
from .runtime import LokiShipper, build_shipper

__all__ = [
    "BufferedLokiHandler",
    "ConfigurationError",
    "DeliveryResult",
    "LogLevel",
    "LogRecord",
    "LokiError",
    "LokiHandler",
    "LokiSettings",
    "LokiShipper",
    "PushPayload",
    "QueueAdapter",
    "RegexScrubber",
    "RequestsTransport",
    "SerializationError",
    "TransportError",
    "TransportResponse",
    "build_settings",
    "build_shipper",
    "decode_packet",
    "encode_packet",
]
