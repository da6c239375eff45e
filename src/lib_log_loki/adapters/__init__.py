"""Concrete adapters: HTTP transport, severity filter, scrubber, queue, logging bridge."""

from __future__ import annotations

from .http_transport import RequestsTransport
from .logging_handler import BufferedLokiHandler, LokiHandler, record_from_logging
from .queue import QueueAdapter
from .scrubber import RegexScrubber
from .severity import LevelThresholdFilter

__all__ = [
    "BufferedLokiHandler",
    "LevelThresholdFilter",
    "LokiHandler",
    "QueueAdapter",
    "RegexScrubber",
    "RequestsTransport",
    "record_from_logging",
]
