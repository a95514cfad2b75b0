import logging

import pytest

from auth.provider_oauth2 import DEFAULT_AUTHORIZE_URL, DEFAULT_TOKEN_URL
from gateway.constants import LOGGER
from gateway.env import GatewayConfig, env_flag, load_config, setup_logging, validate_env


def test_validate_env_accepts_minimal_config(gateway_env) -> None:
    validate_env()


@pytest.mark.parametrize("key", ["OAUTH_CLIENT_ID", "OAUTH_CLIENT_SECRET", "OAUTH_REDIRECT_URI"])
def test_validate_env_reports_missing_keys(monkeypatch, gateway_env, key: str) -> None:
    monkeypatch.delenv(key)

    with pytest.raises(RuntimeError, match=key):
        validate_env()


def test_validate_env_rejects_relative_redirect_uri(monkeypatch, gateway_env) -> None:
    monkeypatch.setenv("OAUTH_REDIRECT_URI", "/api/callback")

    with pytest.raises(RuntimeError, match="OAUTH_REDIRECT_URI"):
        validate_env()


def test_validate_env_rejects_short_state(monkeypatch, gateway_env) -> None:
    monkeypatch.setenv("OAUTH_STATE_LENGTH", "8")

    with pytest.raises(RuntimeError, match="OAUTH_STATE_LENGTH"):
        validate_env()


def test_validate_env_rejects_non_integer(monkeypatch, gateway_env) -> None:
    monkeypatch.setenv("OAUTH_PENDING_TTL", "ten minutes")

    with pytest.raises(RuntimeError, match="OAUTH_PENDING_TTL must be an integer"):
        validate_env()


def test_load_config_defaults(gateway_env) -> None:
    config = load_config()

    assert config == GatewayConfig(
        client_id="cid",
        client_secret="secret",
        redirect_uri="http://127.0.0.1:8000/api/callback",
    )
    assert config.authorize_url == DEFAULT_AUTHORIZE_URL
    assert config.token_url == DEFAULT_TOKEN_URL
    assert config.session_store_path is None


def test_load_config_overrides(monkeypatch, gateway_env) -> None:
    monkeypatch.setenv("OAUTH_SCOPE", "user-read-email user-top-read")
    monkeypatch.setenv("OAUTH_TOKEN_URL", "https://idp.example.com/token")
    monkeypatch.setenv("OAUTH_STATE_LENGTH", "32")
    monkeypatch.setenv("OAUTH_PENDING_TTL", "300")
    monkeypatch.setenv("OAUTH_TOKEN_TIMEOUT", "2.5")
    monkeypatch.setenv("GATEWAY_SESSION_STORE_PATH", "/tmp/sessions.json")

    config = load_config()

    assert config.scope == "user-read-email user-top-read"
    assert config.token_url == "https://idp.example.com/token"
    assert config.state_length == 32
    assert config.pending_ttl_seconds == 300
    assert config.token_timeout_seconds == 2.5
    assert config.session_store_path == "/tmp/sessions.json"


def test_validate_env_rejects_non_numeric_timeout(monkeypatch, gateway_env) -> None:
    monkeypatch.setenv("OAUTH_TOKEN_TIMEOUT", "soon")

    with pytest.raises(RuntimeError, match="OAUTH_TOKEN_TIMEOUT must be a number"):
        validate_env()


@pytest.mark.parametrize("value", ["1", "true", "YES", " on "])
def test_env_flag_enabled(monkeypatch, value: str) -> None:
    monkeypatch.setenv("GATEWAY_DEBUG", value)

    assert env_flag("GATEWAY_DEBUG") is True


@pytest.mark.parametrize("value", ["0", "off", "no"])
def test_env_flag_disabled(monkeypatch, value: str) -> None:
    monkeypatch.setenv("GATEWAY_DEBUG", value)

    assert env_flag("GATEWAY_DEBUG", default=True) is False


def test_env_flag_falls_back_to_default(monkeypatch) -> None:
    monkeypatch.delenv("GATEWAY_DEBUG", raising=False)

    assert env_flag("GATEWAY_DEBUG") is False
    assert env_flag("GATEWAY_DEBUG", default=True) is True
    monkeypatch.setenv("GATEWAY_DEBUG", "  ")
    assert env_flag("GATEWAY_DEBUG", default=True) is True


@pytest.mark.parametrize(("value", "level"), [("1", logging.INFO), ("0", logging.WARNING)])
def test_setup_logging_selects_level(monkeypatch, value: str, level: int) -> None:
    monkeypatch.setenv("GATEWAY_DEBUG", value)
    monkeypatch.setattr(LOGGER, "level", LOGGER.level)

    assert setup_logging() is (value == "1")
    assert LOGGER.level == level
