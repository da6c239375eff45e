"""Domain entities and value objects used by the Loki shipping pipeline."""

from __future__ import annotations

from .errors import ConfigurationError, LokiError, SerializationError, TransportError
from .levels import LogLevel
from .records import LogRecord
from .settings import BasicAuth, LokiSettings, build_settings
from .streams import LogLine, PushPayload, StreamEntry, decode_packet, encode_packet

__all__ = [
    "BasicAuth",
    "ConfigurationError",
    "LogLevel",
    "LogLine",
    "LogRecord",
    "LokiError",
    "LokiSettings",
    "PushPayload",
    "SerializationError",
    "StreamEntry",
    "TransportError",
    "build_settings",
    "decode_packet",
    "encode_packet",
]
