"""Protocols the application layer depends on."""

from __future__ import annotations

from .processor import RecordProcessorPort
from .queue import QueuePort
from .severity import SeverityFilterPort
from .transport import HttpTransportPort, TransportResponse

__all__ = [
    "HttpTransportPort",
    "QueuePort",
    "RecordProcessorPort",
    "SeverityFilterPort",
    "TransportResponse",
]
