"""Wire-level stream entries and the Loki push payload codec.

Purpose
-------
Model the JSON body accepted by ``POST /loki/api/v1/push`` and centralise the
encoding rules so every push is byte-for-byte predictable.

Contents
--------
* :class:`LogLine` – one timestamped line plus its structured fields.
* :class:`StreamEntry` – a label set with its lines.
* :class:`PushPayload` – the ``{"streams": [...]}`` envelope.
* :func:`encode_packet` / :func:`decode_packet` – JSON codec helpers.

System Role
-----------
Domain layer. The entry formatter produces :class:`StreamEntry` objects; the
batch sender wraps them in a :class:`PushPayload` and encodes it. Encoding is
the single place where a non-serializable field turns into a
:class:`~lib_log_loki.domain.errors.SerializationError`.

Wire shape
----------
``{"streams": [{"stream": {"label": "value"}, "values": [["<ns>", "<line>"]]}]}``
where ``<line>`` is a compact JSON document carrying the message, level,
channel, and structured context of the record.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping

from .errors import SerializationError


def _dumps(value: Any) -> str:
    """Encode ``value`` without escaping ``/`` or non-ASCII characters."""
    try:
        return json.dumps(value, ensure_ascii=False, allow_nan=False, separators=(",", ":"))
    except (TypeError, ValueError, RecursionError) as exc:
        raise SerializationError(f"payload is not JSON serializable: {exc}") from exc


def encode_packet(packet: Mapping[str, Any]) -> bytes:
    """Encode a push packet to UTF-8 JSON bytes.

    Examples
    --------
    >>> encode_packet({"streams": [{"stream": {"app": "api/v1"}, "values": [["1", "héllo"]]}]}).decode("utf-8")
    '{"streams":[{"stream":{"app":"api/v1"},"values":[["1","héllo"]]}]}'
    """

    return _dumps(dict(packet)).encode("utf-8")


def decode_packet(data: bytes | str) -> dict[str, Any]:
    """Decode JSON produced by :func:`encode_packet` back into a dictionary."""

    if isinstance(data, bytes):
        data = data.decode("utf-8")
    try:
        decoded = json.loads(data)
    except ValueError as exc:
        raise SerializationError(f"payload is not valid JSON: {exc}") from exc
    if not isinstance(decoded, dict):
        raise SerializationError("push payload must be a JSON object")
    return decoded


@dataclass(slots=True, frozen=True)
class LogLine:
    """A single timestamped line of a stream.

    Attributes
    ----------
    timestamp:
        Nanoseconds since the Unix epoch, rendered as a decimal string.
    line:
        Rendered message text.
    fields:
        Structured fields travelling with the line.
    level, channel:
        Optional record metadata rendered next to the message.
    """

    timestamp: str
    line: str
    fields: Mapping[str, Any] = field(default_factory=dict)
    level: str | None = None
    channel: str | None = None

    def render(self) -> str:
        """Return the JSON document stored as the Loki log line.

        Examples
        --------
        >>> LogLine("1", "hello", {"user": "ada"}, level="info").render()
        '{"message":"hello","level":"info","context":{"user":"ada"}}'
        """

        document: dict[str, Any] = {"message": self.line}
        if self.level is not None:
            document["level"] = self.level
        if self.channel is not None:
            document["channel"] = self.channel
        if self.fields:
            document["context"] = dict(self.fields)
        return _dumps(document)


@dataclass(slots=True, frozen=True)
class StreamEntry:
    """Label set plus the lines pushed under it."""

    labels: Mapping[str, str]
    lines: tuple[LogLine, ...] = ()

    def to_wire(self) -> dict[str, Any]:
        """Return the ``{"stream": ..., "values": ...}`` dictionary for this entry."""

        return {
            "stream": dict(self.labels),
            "values": [[line.timestamp, line.render()] for line in self.lines],
        }


@dataclass(slots=True, frozen=True)
class PushPayload:
    """Envelope grouping every stream entry of one delivery."""

    streams: tuple[StreamEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.streams)

    def to_wire(self) -> dict[str, Any]:
        """Return the dictionary sent as the request body."""

        return {"streams": [entry.to_wire() for entry in self.streams]}

    def encode(self) -> bytes:
        """Serialise the payload, raising :class:`SerializationError` on failure."""

        return encode_packet(self.to_wire())


__all__ = ["LogLine", "PushPayload", "StreamEntry", "decode_packet", "encode_packet"]
