"""Environment and ``.env`` configuration helpers.

Purpose
-------
Let deployments configure the shipper without code: ``LOKI_*`` environment
variables (optionally loaded from the nearest ``.env`` file) are translated into
the ``api_config`` mapping accepted by :func:`lib_log_loki.build_shipper`.

Contents
--------
* :func:`enable_dotenv` – load the nearest ``.env`` once per process.
* :func:`api_config_from_env` – ``LOKI_*`` variables → ``api_config``.
* :func:`level_from_env` – ``LOKI_LEVEL`` → :class:`LogLevel`.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv

from lib_log_loki.domain.errors import ConfigurationError
from lib_log_loki.domain.levels import LogLevel

DOTENV_ENV_VAR = "LOKI_USE_DOTENV"

ENV_ENTRYPOINT = "LOKI_ENTRYPOINT"
ENV_LABELS = "LOKI_LABELS"
ENV_CONTEXT = "LOKI_CONTEXT"
ENV_CLIENT_NAME = "LOKI_CLIENT_NAME"
ENV_TENANT_ID = "LOKI_TENANT_ID"
ENV_BASIC_AUTH = "LOKI_BASIC_AUTH"
ENV_TIMEOUT = "LOKI_TIMEOUT"
ENV_LEVEL = "LOKI_LEVEL"

_TRUTHY = {"1", "true", "yes", "on"}

_dotenv_loaded: Path | None = None
_dotenv_attempted = False


def _reset_dotenv_state_for_testing() -> None:
    global _dotenv_loaded, _dotenv_attempted
    _dotenv_loaded = None
    _dotenv_attempted = False


def dotenv_requested(environ: Mapping[str, str] | None = None) -> bool:
    """Return ``True`` when ``LOKI_USE_DOTENV`` holds a truthy value."""

    env = os.environ if environ is None else environ
    return env.get(DOTENV_ENV_VAR, "").strip().lower() in _TRUTHY


def enable_dotenv() -> Path | None:
    """Load the nearest ``.env`` file without overriding existing variables.

    The search walks from the working directory up to the filesystem root.
    Subsequent calls return the first result.
    """

    global _dotenv_loaded, _dotenv_attempted
    if _dotenv_attempted:
        return _dotenv_loaded
    _dotenv_attempted = True
    found = find_dotenv(usecwd=True)
    if found:
        path = Path(found).resolve()
        load_dotenv(path, override=False)
        _dotenv_loaded = path
    return _dotenv_loaded


def _parse_pairs(name: str, raw: str) -> dict[str, str]:
    """Parse ``k=v,k2=v2`` into a dictionary.

    Examples
    --------
    >>> _parse_pairs("LOKI_LABELS", "app=api, env=prod")
    {'app': 'api', 'env': 'prod'}
    """

    pairs: dict[str, str] = {}
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        key, sep, value = chunk.partition("=")
        if not sep or not key.strip():
            raise ConfigurationError(f"{name} entries must look like KEY=VALUE, got {chunk!r}")
        pairs[key.strip()] = value.strip()
    return pairs


def api_config_from_env(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Build an ``api_config`` mapping from ``LOKI_*`` variables.

    Examples
    --------
    >>> api_config_from_env({"LOKI_ENTRYPOINT": "http://loki:3100", "LOKI_BASIC_AUTH": "ops:s3cret", "LOKI_TIMEOUT": "2.5"})
    {'entrypoint': 'http://loki:3100', 'auth': {'basic': ('ops', 's3cret')}, 'transport_options': {'timeout': 2.5}}
    """

    env = os.environ if environ is None else environ
    config: dict[str, Any] = {}

    entrypoint = env.get(ENV_ENTRYPOINT, "").strip()
    if entrypoint:
        config["entrypoint"] = entrypoint
    if env.get(ENV_LABELS, "").strip():
        config["labels"] = _parse_pairs(ENV_LABELS, env[ENV_LABELS])
    if env.get(ENV_CONTEXT, "").strip():
        config["context"] = _parse_pairs(ENV_CONTEXT, env[ENV_CONTEXT])
    if env.get(ENV_CLIENT_NAME, "").strip():
        config["client_name"] = env[ENV_CLIENT_NAME].strip()
    if env.get(ENV_TENANT_ID, "").strip():
        config["tenant_id"] = env[ENV_TENANT_ID].strip()

    basic = env.get(ENV_BASIC_AUTH, "")
    if basic:
        user, sep, password = basic.partition(":")
        if not sep or not user:
            raise ConfigurationError(f"{ENV_BASIC_AUTH} must look like USER:PASSWORD")
        config["auth"] = {"basic": (user, password)}

    timeout_raw = env.get(ENV_TIMEOUT, "").strip()
    if timeout_raw:
        try:
            timeout = float(timeout_raw)
        except ValueError as exc:
            raise ConfigurationError(f"{ENV_TIMEOUT} must be a number of seconds, got {timeout_raw!r}") from exc
        if timeout <= 0:
            raise ConfigurationError(f"{ENV_TIMEOUT} must be positive")
        config["transport_options"] = {"timeout": timeout}

    return config


def level_from_env(environ: Mapping[str, str] | None = None, default: LogLevel = LogLevel.DEBUG) -> LogLevel:
    """Return the level named by ``LOKI_LEVEL`` or ``default``."""

    env = os.environ if environ is None else environ
    raw = env.get(ENV_LEVEL, "").strip()
    if not raw:
        return default
    try:
        return LogLevel.from_name(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{ENV_LEVEL}: {exc}") from exc


__all__ = [
    "DOTENV_ENV_VAR",
    "api_config_from_env",
    "dotenv_requested",
    "enable_dotenv",
    "level_from_env",
]
