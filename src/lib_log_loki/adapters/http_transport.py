"""HTTP transport delivering push payloads with :mod:`requests`.

Purpose
-------
Implement :class:`HttpTransportPort` on top of :func:`requests.request`, keeping
method, body, headers, and response capture under adapter control while passing
the user's tuning options (timeouts, proxies, TLS verification) through.

System Role
-----------
Outer adapter. Every network-level failure, unreadable CA bundle, or value
requests refuses to put on the wire is converted into
:class:`~lib_log_loki.domain.errors.TransportError`; HTTP statuses are returned
as data so the sender decides what counts as success.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

import requests

from lib_log_loki.application.ports.transport import HttpTransportPort, TransportResponse
from lib_log_loki.domain.errors import TransportError

RequestFunc = Callable[..., requests.Response]

_BODY_PREVIEW_CHARS = 512


class RequestsTransport(HttpTransportPort):
    """POST payloads using ``requests``; one request per call, no retries."""

    def __init__(self, *, request: RequestFunc | None = None, default_timeout: float | None = None) -> None:
        """Create the transport.

        Parameters
        ----------
        request:
            Replacement for :func:`requests.request` (tests, custom sessions).
        default_timeout:
            Timeout applied when the configuration does not provide ``timeout``.
            ``None`` keeps the ``requests`` default of waiting indefinitely.
        """
        self._request = request or requests.request
        self._default_timeout = default_timeout

    def post(
        self,
        url: str,
        *,
        body: bytes,
        headers: Mapping[str, str],
        auth: tuple[str, str] | None,
        options: Mapping[str, Any],
    ) -> TransportResponse:
        """Send ``body`` to ``url`` and return the status and a body preview."""
        kwargs: dict[str, Any] = dict(options)
        credentials = None if auth is None else (auth[0].encode("utf-8"), auth[1].encode("utf-8"))
        if self._default_timeout is not None:
            kwargs.setdefault("timeout", self._default_timeout)
        try:
            response = self._request(
                "POST",
                url,
                data=body,
                headers=dict(headers),
                auth=credentials,
                stream=False,
                **kwargs,
            )
        except (requests.RequestException, OSError, ValueError) as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc
        return TransportResponse(status_code=response.status_code, body=_preview(response))


def _preview(response: requests.Response) -> str:
    try:
        text = response.text
    except (UnicodeDecodeError, requests.RequestException):
        return ""
    return (text or "").strip()[:_BODY_PREVIEW_CHARS]


__all__ = ["RequestsTransport"]
