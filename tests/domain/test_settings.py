from __future__ import annotations

import logging

import pytest

from lib_log_loki.domain.errors import ConfigurationError
from lib_log_loki.domain.levels import LogLevel
from lib_log_loki.domain.settings import (
    RESERVED_TRANSPORT_OPTIONS,
    BasicAuth,
    build_settings,
    normalise_entrypoint,
)


@pytest.mark.parametrize("entrypoint", [None, "", "   ", "loki:3100", "ftp://loki", "http://", 3100])
def test_invalid_entrypoints_raise(entrypoint: object) -> None:
    with pytest.raises(ConfigurationError):
        normalise_entrypoint(entrypoint)


def test_missing_entrypoint_raises_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        build_settings({"labels": {"app": "api"}})


def test_trailing_slashes_are_stripped_and_prefix_kept() -> None:
    settings = build_settings({"entrypoint": "https://gateway.example/loki-a//"})
    assert settings.push_url == "https://gateway.example/loki-a/loki/api/v1/push"


def test_tenant_id_sets_header_value_and_context_field() -> None:
    settings = build_settings({"entrypoint": "http://loki", "tenant_id": 42, "context": {"region": "eu"}})
    assert settings.tenant_id == "42"
    assert dict(settings.global_context) == {"region": "eu", "tenantId": "42"}


def test_client_name_becomes_system_name() -> None:
    assert build_settings({"entrypoint": "http://loki", "client_name": "web-1"}).system_name == "web-1"
    assert build_settings({"entrypoint": "http://loki"}).system_name is None


def test_basic_auth_pair_is_parsed_and_password_hidden_from_repr() -> None:
    settings = build_settings({"entrypoint": "http://loki", "auth": {"basic": ["ops", "s3cret"]}})
    assert settings.basic_auth == BasicAuth("ops", "s3cret")
    assert "s3cret" not in repr(settings)


@pytest.mark.parametrize("pair", [["only-user"], ["a", "b", "c"], "user:password", None])
def test_malformed_basic_auth_is_treated_as_absent(pair: object) -> None:
    settings = build_settings({"entrypoint": "http://loki", "auth": {"basic": pair}})
    assert settings.basic_auth is None


def test_reserved_transport_options_are_dropped(caplog: pytest.LogCaptureFixture) -> None:
    options = {name: "x" for name in RESERVED_TRANSPORT_OPTIONS}
    options.update({"timeout": 3, "verify": False, "unknown_flag": 1})
    with caplog.at_level(logging.DEBUG, logger="lib_log_loki.domain.settings"):
        settings = build_settings({"entrypoint": "http://loki", "transport_options": options})
    assert dict(settings.transport_options) == {"timeout": 3, "verify": False}
    assert any("unknown_flag" in message for message in caplog.messages)


def test_transport_options_override_curl_options_alias() -> None:
    settings = build_settings(
        {
            "entrypoint": "http://loki",
            "curl_options": {"timeout": 1, "proxies": {"http": "http://proxy"}},
            "transport_options": {"timeout": 9},
        }
    )
    assert dict(settings.transport_options) == {"timeout": 9, "proxies": {"http": "http://proxy"}}


def test_non_mapping_sections_raise() -> None:
    with pytest.raises(ConfigurationError, match="labels must be a mapping"):
        build_settings({"entrypoint": "http://loki", "labels": ["app"]})


def test_settings_are_read_only() -> None:
    settings = build_settings({"entrypoint": "http://loki", "labels": {"app": "api"}})
    with pytest.raises(TypeError):
        settings.global_labels["app"] = "other"  # type: ignore[index]


def test_level_and_bubble_are_normalised() -> None:
    settings = build_settings({"entrypoint": "http://loki"}, level="error", bubble=0)
    assert settings.level is LogLevel.ERROR
    assert settings.bubble is False


def test_unknown_level_raises_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        build_settings({"entrypoint": "http://loki"}, level="chatty")


@pytest.mark.parametrize("tenant", ["租户", "acme\n", "acme\x00"])
def test_tenant_id_must_be_printable_ascii(tenant: str) -> None:
    with pytest.raises(ConfigurationError, match="X-Scope-OrgID"):
        build_settings({"entrypoint": "http://loki", "tenant_id": tenant})


@pytest.mark.parametrize("timeout", ["5", 0, -1, True, [2, 5], (0, 5), ("2", None)])
def test_invalid_timeouts_raise(timeout: object) -> None:
    with pytest.raises(ConfigurationError, match="timeout"):
        build_settings({"entrypoint": "http://loki", "transport_options": {"timeout": timeout}})


@pytest.mark.parametrize("timeout", [3, 3.5, (2, 10), (2, None)])
def test_numeric_timeouts_are_kept(timeout: object) -> None:
    settings = build_settings({"entrypoint": "http://loki", "curl_options": {"timeout": timeout}})
    assert settings.transport_options["timeout"] == timeout
