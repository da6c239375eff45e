"""Runtime composition wiring settings, adapters, and use cases.

Purpose
-------
Translate the host's ``api_config`` mapping into a ready-to-use
:class:`LokiShipper`. Adapters (HTTP transport, severity filter) are chosen here
so the application layer depends only on ports.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from lib_log_loki.adapters.http_transport import RequestsTransport
from lib_log_loki.adapters.severity import LevelThresholdFilter
from lib_log_loki.application.ports import HttpTransportPort, RecordProcessorPort, SeverityFilterPort
from lib_log_loki.application.use_cases._types import DiagnosticHook
from lib_log_loki.application.use_cases.handle_records import create_record_pipeline
from lib_log_loki.application.use_cases.send_batch import create_send_batch
from lib_log_loki.domain.levels import LogLevel
from lib_log_loki.domain.settings import build_settings

from ._shipper import LokiShipper


def build_shipper(
    api_config: Mapping[str, Any],
    *,
    level: LogLevel | str | int = LogLevel.DEBUG,
    bubble: bool = True,
    transport: HttpTransportPort | None = None,
    severity_filter: SeverityFilterPort | None = None,
    processors: Sequence[RecordProcessorPort] = (),
    diagnostic: DiagnosticHook = None,
) -> LokiShipper:
    """Assemble a :class:`LokiShipper` from configuration.

    Parameters
    ----------
    api_config:
        ``entrypoint`` (required), ``labels``, ``context``, ``client_name``,
        ``tenant_id``, ``auth`` (``{"basic": (user, password)}``) and
        ``transport_options`` / ``curl_options``.
    level:
        Minimum severity forwarded; names, stdlib integers, or members.
    bubble:
        Handler-chain flag reported by :meth:`LokiShipper.handle`.
    transport:
        HTTP adapter; defaults to :class:`RequestsTransport`.
    severity_filter:
        Replacement for the default :class:`LevelThresholdFilter`.
    processors:
        Record processors applied before formatting (e.g. :class:`RegexScrubber`).
    diagnostic:
        Optional hook receiving delivery and queue milestones.

    Examples
    --------
    >>> shipper = build_shipper({"entrypoint": "http://loki:3100/"}, level="warning")
    >>> shipper.settings.push_url, shipper.settings.level
    ('http://loki:3100/loki/api/v1/push', <LogLevel.WARNING: 30>)
    """

    settings = build_settings(api_config, level=level, bubble=bubble)
    send_batch = create_send_batch(
        settings=settings,
        transport=transport or RequestsTransport(),
        diagnostic=diagnostic,
    )
    pipeline = create_record_pipeline(
        settings=settings,
        severity_filter=severity_filter or LevelThresholdFilter(settings.level),
        send_batch=send_batch,
        processors=processors,
    )
    return LokiShipper(settings=settings, pipeline=pipeline, diagnostic=diagnostic)


__all__ = ["build_shipper"]
