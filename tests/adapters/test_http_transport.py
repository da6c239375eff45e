from __future__ import annotations

import base64
import socket
import threading
from collections.abc import Iterator
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any

import pytest
import requests

from lib_log_loki.adapters.http_transport import RequestsTransport
from lib_log_loki.domain.errors import TransportError


class _Capture(BaseHTTPRequestHandler):
    status = 204
    captured: list[dict[str, Any]] = []

    def do_POST(self) -> None:  # noqa: N802 - http.server API
        length = int(self.headers.get("Content-Length", "0"))
        self.captured.append(
            {
                "path": self.path,
                "headers": {key.lower(): value for key, value in self.headers.items()},
                "body": self.rfile.read(length),
            }
        )
        body = b"" if self.status < 300 else b"entry out of order"
        self.send_response(self.status)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        return None


@pytest.fixture
def server() -> Iterator[tuple[str, type[_Capture]]]:
    handler = type("Handler", (_Capture,), {"captured": [], "status": 204})
    httpd = HTTPServer(("127.0.0.1", 0), handler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{httpd.server_address[1]}", handler
    finally:
        httpd.shutdown()
        httpd.server_close()
        thread.join(timeout=2)


def _free_port() -> int:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_post_delivers_body_headers_and_basic_auth(server) -> None:
    base, handler = server
    body = b'{"streams":[]}'

    response = RequestsTransport().post(
        f"{base}/loki/api/v1/push",
        body=body,
        headers={"Content-Type": "application/json", "Content-Length": str(len(body)), "X-Scope-OrgID": "acme"},
        auth=("ops", "pw"),
        options={"timeout": 5},
    )

    assert response.status_code == 204
    assert response.ok
    captured = handler.captured[0]
    assert captured["path"] == "/loki/api/v1/push"
    assert captured["body"] == body
    assert captured["headers"]["x-scope-orgid"] == "acme"
    assert captured["headers"]["content-type"] == "application/json"
    assert captured["headers"]["authorization"] == "Basic " + base64.b64encode(b"ops:pw").decode("ascii")


def test_post_without_auth_sends_no_authorization_header(server) -> None:
    base, handler = server

    RequestsTransport().post(f"{base}/loki/api/v1/push", body=b"{}", headers={}, auth=None, options={"timeout": 5})

    assert "authorization" not in handler.captured[0]["headers"]


def test_error_status_is_returned_with_body_preview(server) -> None:
    base, handler = server
    handler.status = 400

    response = RequestsTransport().post(f"{base}/loki/api/v1/push", body=b"{}", headers={}, auth=None, options={"timeout": 5})

    assert response.status_code == 400
    assert not response.ok
    assert response.body == "entry out of order"


def test_connection_refused_becomes_transport_error() -> None:
    url = f"http://127.0.0.1:{_free_port()}/loki/api/v1/push"

    with pytest.raises(TransportError) as excinfo:
        RequestsTransport().post(url, body=b"{}", headers={}, auth=None, options={"timeout": 2})

    assert excinfo.value.status_code is None
    assert "ConnectionError" in str(excinfo.value)


def test_adapter_controls_method_body_and_headers() -> None:
    calls: list[tuple[tuple[Any, ...], dict[str, Any]]] = []

    class _Response:
        status_code = 204
        text = ""

    def fake_request(*args: Any, **kwargs: Any) -> _Response:
        calls.append((args, kwargs))
        return _Response()

    transport = RequestsTransport(request=fake_request, default_timeout=3.0)
    transport.post("http://loki/push", body=b"{}", headers={"A": "1"}, auth=None, options={"verify": False})

    args, kwargs = calls[0]
    assert args == ("POST", "http://loki/push")
    assert kwargs["data"] == b"{}"
    assert kwargs["headers"] == {"A": "1"}
    assert kwargs["stream"] is False
    assert kwargs["verify"] is False
    assert kwargs["timeout"] == 3.0


def test_configured_timeout_wins_over_default() -> None:
    seen: dict[str, Any] = {}

    class _Response:
        status_code = 200
        text = "ok"

    def fake_request(method: str, url: str, **kwargs: Any) -> _Response:
        seen.update(kwargs)
        return _Response()

    RequestsTransport(request=fake_request, default_timeout=3.0).post("http://loki", body=b"", headers={}, auth=None, options={"timeout": 1})

    assert seen["timeout"] == 1


def test_requests_timeout_is_wrapped(monkeypatch: pytest.MonkeyPatch) -> None:
    def raise_timeout(*args: Any, **kwargs: Any) -> None:
        raise requests.Timeout("read timed out")

    monkeypatch.setattr(requests, "request", raise_timeout)

    with pytest.raises(TransportError, match="Timeout: read timed out"):
        RequestsTransport().post("http://loki", body=b"", headers={}, auth=None, options={})


def test_non_latin1_credentials_are_sent_as_utf8(server) -> None:
    base, handler = server

    response = RequestsTransport().post(
        f"{base}/loki/api/v1/push", body=b"{}", headers={}, auth=("ops", "pässwörd€"), options={"timeout": 5}
    )

    assert response.status_code == 204
    expected = base64.b64encode(b"ops:" + "pässwörd€".encode("utf-8")).decode("ascii")
    assert handler.captured[0]["headers"]["authorization"] == f"Basic {expected}"


def test_header_that_cannot_be_encoded_becomes_transport_error(server) -> None:
    base, _ = server

    with pytest.raises(TransportError):
        RequestsTransport().post(
            f"{base}/loki/api/v1/push", body=b"{}", headers={"X-Scope-OrgID": "租户"}, auth=None, options={"timeout": 5}
        )


@pytest.mark.parametrize(
    ("error", "name"),
    [
        (OSError("Could not find a suitable TLS CA certificate bundle, invalid path: /missing/ca.pem"), "OSError"),
        (ValueError("Timeout value connect was 5, but it must be an int, float or None."), "ValueError"),
    ],
)
def test_local_request_errors_are_wrapped(error: Exception, name: str) -> None:
    def fake_request(*args: Any, **kwargs: Any) -> None:
        raise error

    with pytest.raises(TransportError, match=f"^{name}: ") as excinfo:
        RequestsTransport(request=fake_request).post("http://loki", body=b"", headers={}, auth=None, options={})

    assert excinfo.value.__cause__ is error
