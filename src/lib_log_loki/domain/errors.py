"""Error taxonomy for the Loki shipping pipeline.

Configuration problems surface once, at construction. Serialization problems
are programming errors and abort the current push. Transport problems are
environmental: they are reported inside :class:`DeliveryResult` objects and
never raised to the host application.
"""

from __future__ import annotations


class LokiError(Exception):
    """Base class for every error raised by :mod:`lib_log_loki`."""


class ConfigurationError(LokiError, ValueError):
    """Raised when the adapter cannot be built from the supplied configuration."""


class SerializationError(LokiError, ValueError):
    """Raised when a push payload cannot be encoded to JSON."""


class TransportError(LokiError):
    """Describe a failed delivery attempt.

    ``status_code`` is set when the endpoint answered with a non-2xx status and
    ``None`` when no HTTP response was received at all.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


__all__ = ["ConfigurationError", "LokiError", "SerializationError", "TransportError"]
