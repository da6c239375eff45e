"""Adapter configuration built once from the host's ``api_config`` mapping.

Purpose
-------
Validate and normalise the configuration surface (entrypoint, labels, context,
client name, tenant, basic authentication, transport options) into an
immutable :class:`LokiSettings` value.

Contents
--------
* :class:`BasicAuth` – credential pair with a redacted ``repr``.
* :class:`LokiSettings` – frozen configuration consumed by the pipeline.
* :func:`build_settings` – the single construction path.
* :data:`RESERVED_TRANSPORT_OPTIONS` / :data:`SUPPORTED_TRANSPORT_OPTIONS`.

System Role
-----------
Configuration-time issues are normalised here so the send path never has to
re-check them: reserved transport options are dropped, a malformed basic-auth
pair becomes ``None``, and the tenant id is injected into the global context.
Only a missing or malformed entrypoint, a tenant id that cannot travel in an
HTTP header, a bad ``timeout``, or non-mapping sections raise.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any
from urllib.parse import urlsplit

from .errors import ConfigurationError
from .levels import LogLevel

logger = logging.getLogger(__name__)

PUSH_PATH = "/loki/api/v1/push"
TENANT_FIELD = "tenantId"
TENANT_HEADER = "X-Scope-OrgID"

#: Request arguments the adapter always controls; user values are discarded.
RESERVED_TRANSPORT_OPTIONS = frozenset({"method", "url", "stream", "data", "json", "headers", "auth"})

#: Keyword arguments of :func:`requests.request` that callers may tune.
SUPPORTED_TRANSPORT_OPTIONS = frozenset({"timeout", "proxies", "verify", "cert", "allow_redirects", "params", "cookies"})


def _empty() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(slots=True, frozen=True)
class BasicAuth:
    """HTTP Basic Authentication credentials."""

    username: str
    password: str = field(repr=False)

    def as_tuple(self) -> tuple[str, str]:
        return (self.username, self.password)


@dataclass(slots=True, frozen=True)
class LokiSettings:
    """Immutable adapter configuration.

    Attributes
    ----------
    entrypoint:
        Scheme, host, and optional path prefix of the Loki service, without a
        trailing slash.
    global_labels:
        Stream labels merged into every entry. Keep them low-cardinality.
    global_context:
        Structured fields merged into every line (includes ``tenantId`` when a
        tenant is configured).
    system_name:
        Identifier of the emitting host/service, injected into every line.
    tenant_id:
        Value of the ``X-Scope-OrgID`` header, or ``None``.
    basic_auth:
        Credentials for HTTP Basic Authentication, or ``None``.
    transport_options:
        Keyword arguments forwarded to the HTTP transport.
    level:
        Minimum severity forwarded to Loki.
    bubble:
        Whether records continue to later handlers in a handler chain.
    """

    entrypoint: str
    global_labels: Mapping[str, Any] = field(default_factory=_empty)
    global_context: Mapping[str, Any] = field(default_factory=_empty)
    system_name: str | None = None
    tenant_id: str | None = None
    basic_auth: BasicAuth | None = None
    transport_options: Mapping[str, Any] = field(default_factory=_empty)
    level: LogLevel = LogLevel.DEBUG
    bubble: bool = True

    @property
    def push_url(self) -> str:
        """Return the absolute URL of the push endpoint."""

        return f"{self.entrypoint}{PUSH_PATH}"


def normalise_entrypoint(entrypoint: Any) -> str:
    """Validate ``entrypoint`` and strip trailing slashes.

    Examples
    --------
    >>> normalise_entrypoint("https://loki.example:3100/")
    'https://loki.example:3100'
    >>> normalise_entrypoint("http://gateway/tenant-a")
    'http://gateway/tenant-a'
    """

    if not isinstance(entrypoint, str) or not entrypoint.strip():
        raise ConfigurationError("entrypoint must be a non-empty URL string")
    candidate = entrypoint.strip().rstrip("/")
    parts = urlsplit(candidate)
    if parts.scheme not in {"http", "https"} or not parts.netloc:
        raise ConfigurationError(f"entrypoint must be an absolute http(s) URL, got {entrypoint!r}")
    return candidate


def sanitize_transport_options(options: Mapping[str, Any]) -> dict[str, Any]:
    """Drop reserved and unsupported transport options.

    Examples
    --------
    >>> sorted(sanitize_transport_options({"timeout": 2, "method": "GET", "headers": {}, "bogus": 1}))
    ['timeout']
    """

    accepted: dict[str, Any] = {}
    for name, value in options.items():
        if name in RESERVED_TRANSPORT_OPTIONS:
            logger.debug("Ignoring reserved transport option %r", name)
            continue
        if name not in SUPPORTED_TRANSPORT_OPTIONS:
            logger.debug("Ignoring unsupported transport option %r", name)
            continue
        accepted[name] = value
    return accepted


def _validate_timeout(value: Any) -> None:
    """Accept a positive number or a ``(connect, read)`` pair of positive numbers or ``None``.

    Examples
    --------
    >>> _validate_timeout((2, None))
    >>> _validate_timeout("5")
    Traceback (most recent call last):
    ...
    lib_log_loki.domain.errors.ConfigurationError: timeout must be a positive number or a (connect, read) pair, got '5'
    """

    parts = value if isinstance(value, tuple) and len(value) == 2 else (value,)
    for part in parts:
        if part is None and len(parts) == 2:
            continue
        if isinstance(part, bool) or not isinstance(part, (int, float)) or not part > 0:
            raise ConfigurationError(f"timeout must be a positive number or a (connect, read) pair, got {value!r}")


def _basic_auth_from(auth_section: Any) -> BasicAuth | None:
    if not isinstance(auth_section, Mapping) or auth_section.get("basic") is None:
        return None
    pair = auth_section["basic"]
    if isinstance(pair, (str, bytes)) or not isinstance(pair, Sequence) or len(pair) != 2:
        logger.debug("Ignoring basic auth configuration: expected exactly two elements")
        return None
    username, password = pair
    return BasicAuth(username=str(username), password=str(password))


def _mapping_section(api_config: Mapping[str, Any], key: str) -> dict[str, Any]:
    section = api_config.get(key)
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"{key} must be a mapping, got {type(section).__name__}")
    return dict(section)


def build_settings(
    api_config: Mapping[str, Any],
    *,
    level: LogLevel | str | int = LogLevel.DEBUG,
    bubble: bool = True,
) -> LokiSettings:
    """Build :class:`LokiSettings` from the host configuration mapping.

    Recognised keys: ``entrypoint`` (required), ``labels``, ``context``,
    ``client_name``, ``tenant_id``, ``auth.basic`` (two-element sequence),
    ``transport_options`` and its legacy alias ``curl_options``.

    Examples
    --------
    >>> settings = build_settings({"entrypoint": "http://loki:3100/", "tenant_id": "acme"})
    >>> settings.push_url
    'http://loki:3100/loki/api/v1/push'
    >>> dict(settings.global_context)
    {'tenantId': 'acme'}
    """

    if not isinstance(api_config, Mapping):
        raise ConfigurationError("api_config must be a mapping")
    entrypoint = normalise_entrypoint(api_config.get("entrypoint"))

    global_labels = _mapping_section(api_config, "labels")
    global_context = _mapping_section(api_config, "context")
    options = {**_mapping_section(api_config, "curl_options"), **_mapping_section(api_config, "transport_options")}

    client_name = api_config.get("client_name")
    tenant = api_config.get("tenant_id")
    tenant_id = None if tenant is None else str(tenant)
    if tenant_id is not None:
        if not (tenant_id.isascii() and tenant_id.isprintable()):
            raise ConfigurationError(f"tenant_id must be printable ASCII to travel in the {TENANT_HEADER} header")
        global_context[TENANT_FIELD] = tenant_id

    transport_options = sanitize_transport_options(options)
    if "timeout" in transport_options:
        _validate_timeout(transport_options["timeout"])

    try:
        threshold = LogLevel.coerce(level)
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc

    return LokiSettings(
        entrypoint=entrypoint,
        global_labels=MappingProxyType(global_labels),
        global_context=MappingProxyType(global_context),
        system_name=None if client_name is None else str(client_name),
        tenant_id=tenant_id,
        basic_auth=_basic_auth_from(api_config.get("auth")),
        transport_options=MappingProxyType(transport_options),
        level=threshold,
        bubble=bool(bubble),
    )


__all__ = [
    "BasicAuth",
    "LokiSettings",
    "PUSH_PATH",
    "RESERVED_TRANSPORT_OPTIONS",
    "SUPPORTED_TRANSPORT_OPTIONS",
    "TENANT_FIELD",
    "TENANT_HEADER",
    "build_settings",
    "normalise_entrypoint",
    "sanitize_transport_options",
]
