"""Batch sender wrapping stream entries into one push request.

Purpose
-------
Serialise a group of :class:`StreamEntry` objects, attach transport metadata
(content headers, tenant header, basic authentication), and perform a single
delivery attempt through the :class:`HttpTransportPort`.

Contents
--------
* :class:`PushRequest` – fully prepared request description.
* :func:`build_push_request` – pure request construction.
* :func:`create_send_batch` – factory returning the send callable.

System Role
-----------
Application-layer use case. Serialisation failures are raised synchronously
because they indicate a programming defect. Transport failures are logged and
returned as :class:`DeliveryResult` values; they are never retried and never
raised, so shipping logs cannot destabilise the host application.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from lib_log_loki.application.ports.transport import HttpTransportPort
from lib_log_loki.domain.errors import SerializationError, TransportError
from lib_log_loki.domain.settings import TENANT_HEADER, LokiSettings
from lib_log_loki.domain.streams import PushPayload, StreamEntry

from ._diagnostics import build_diagnostic_emitter
from ._types import DeliveryResult, DiagnosticHook, SendBatchCallable

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class PushRequest:
    """Everything the transport needs to deliver one payload."""

    url: str
    body: bytes
    headers: Mapping[str, str]
    auth: tuple[str, str] | None
    options: Mapping[str, Any]
    entries: int


def build_push_request(entries: Sequence[StreamEntry], settings: LokiSettings) -> PushRequest:
    """Encode ``entries`` and describe the request delivering them.

    Raises :class:`SerializationError` when the payload cannot be encoded.

    Examples
    --------
    >>> from lib_log_loki.domain.settings import build_settings
    >>> settings = build_settings({"entrypoint": "http://loki:3100", "tenant_id": "acme"})
    >>> request = build_push_request([], settings)
    >>> request.url, request.body
    ('http://loki:3100/loki/api/v1/push', b'{"streams":[]}')
    >>> dict(request.headers)
    {'Content-Type': 'application/json', 'Content-Length': '14', 'X-Scope-OrgID': 'acme'}
    """

    payload = PushPayload(streams=tuple(entries))
    body = payload.encode()
    headers = {
        "Content-Type": "application/json",
        "Content-Length": str(len(body)),
    }
    if settings.tenant_id is not None:
        headers[TENANT_HEADER] = settings.tenant_id
    auth = settings.basic_auth.as_tuple() if settings.basic_auth is not None else None
    return PushRequest(
        url=settings.push_url,
        body=body,
        headers=headers,
        auth=auth,
        options=dict(settings.transport_options),
        entries=len(payload),
    )


def create_send_batch(
    *,
    settings: LokiSettings,
    transport: HttpTransportPort,
    diagnostic: DiagnosticHook = None,
) -> SendBatchCallable:
    """Build the callable delivering one group of entries per invocation.

    Parameters
    ----------
    settings:
        Immutable adapter configuration.
    transport:
        Adapter implementing :class:`HttpTransportPort`.
    diagnostic:
        Optional hook receiving ``delivery_succeeded``, ``delivery_failed`` and
        ``serialization_failed`` milestones.
    """

    emit = build_diagnostic_emitter(diagnostic)

    def send_batch(entries: Sequence[StreamEntry]) -> DeliveryResult:
        try:
            request = build_push_request(entries, settings)
        except SerializationError as exc:
            emit("serialization_failed", {"entries": len(entries), "error": str(exc)})
            raise

        try:
            response = transport.post(
                request.url,
                body=request.body,
                headers=request.headers,
                auth=request.auth,
                options=request.options,
            )
        except TransportError as exc:
            logger.warning("Loki push to %s failed for %d entries: %s", request.url, request.entries, exc)
            emit("delivery_failed", {"url": request.url, "entries": request.entries, "reason": "transport_error", "error": str(exc)})
            return DeliveryResult.failed(request.entries, exc, reason="transport_error")

        if not response.ok:
            message = f"Loki answered HTTP {response.status_code}"
            if response.body:
                message = f"{message}: {response.body}"
            error = TransportError(message, status_code=response.status_code)
            logger.warning("Loki push to %s rejected %d entries: %s", request.url, request.entries, error)
            emit(
                "delivery_failed",
                {"url": request.url, "entries": request.entries, "reason": "http_status", "status_code": response.status_code},
            )
            return DeliveryResult.failed(request.entries, error, reason="http_status")

        emit("delivery_succeeded", {"url": request.url, "entries": request.entries, "status_code": response.status_code})
        return DeliveryResult.sent(request.entries, response.status_code)

    return send_batch


__all__ = ["PushRequest", "TENANT_HEADER", "build_push_request", "create_send_batch"]
