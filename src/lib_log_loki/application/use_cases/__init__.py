"""Application use cases: formatting, batch assembly, and delivery."""

from __future__ import annotations

from ._types import DeliveryResult
from .format_entry import format_entry
from .handle_records import RecordPipeline, create_record_pipeline
from .send_batch import build_push_request, create_send_batch

__all__ = [
    "DeliveryResult",
    "RecordPipeline",
    "build_push_request",
    "create_record_pipeline",
    "create_send_batch",
    "format_entry",
]
