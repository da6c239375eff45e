from __future__ import annotations

import pytest

from lib_log_loki import build_shipper
from lib_log_loki.config import api_config_from_env, dotenv_requested, level_from_env
from lib_log_loki.domain.errors import ConfigurationError
from lib_log_loki.domain.levels import LogLevel


def test_full_environment_translates_to_api_config() -> None:
    env = {
        "LOKI_ENTRYPOINT": "https://loki.example/",
        "LOKI_LABELS": "app=api, env=prod",
        "LOKI_CONTEXT": "region=eu",
        "LOKI_CLIENT_NAME": "web-1",
        "LOKI_TENANT_ID": "acme",
        "LOKI_BASIC_AUTH": "ops:pa:ss",
        "LOKI_TIMEOUT": "3",
    }

    config = api_config_from_env(env)

    assert config == {
        "entrypoint": "https://loki.example/",
        "labels": {"app": "api", "env": "prod"},
        "context": {"region": "eu"},
        "client_name": "web-1",
        "tenant_id": "acme",
        "auth": {"basic": ("ops", "pa:ss")},
        "transport_options": {"timeout": 3.0},
    }
    settings = build_shipper(config).settings
    assert settings.push_url == "https://loki.example/loki/api/v1/push"
    assert dict(settings.global_context) == {"region": "eu", "tenantId": "acme"}


def test_empty_environment_yields_empty_config() -> None:
    assert api_config_from_env({}) == {}


@pytest.mark.parametrize(
    ("name", "value"),
    [("LOKI_LABELS", "app"), ("LOKI_CONTEXT", "=x"), ("LOKI_BASIC_AUTH", "no-colon"), ("LOKI_TIMEOUT", "soon"), ("LOKI_TIMEOUT", "-1")],
)
def test_malformed_variables_name_the_culprit(name: str, value: str) -> None:
    with pytest.raises(ConfigurationError, match=name):
        api_config_from_env({name: value})


def test_level_from_env() -> None:
    assert level_from_env({}) is LogLevel.DEBUG
    assert level_from_env({}, default=LogLevel.INFO) is LogLevel.INFO
    assert level_from_env({"LOKI_LEVEL": "warn"}) is LogLevel.WARNING
    with pytest.raises(ConfigurationError, match="LOKI_LEVEL"):
        level_from_env({"LOKI_LEVEL": "loud"})


@pytest.mark.parametrize(("value", "expected"), [("1", True), ("Yes", True), ("on", True), ("0", False), ("", False)])
def test_dotenv_toggle_values(value: str, expected: bool) -> None:
    assert dotenv_requested({"LOKI_USE_DOTENV": value}) is expected
