import pytest

from gateway.env import GatewayConfig


@pytest.fixture
def gateway_config() -> GatewayConfig:
    return GatewayConfig(
        client_id="cid",
        client_secret="secret",
        redirect_uri="https://gateway.example.com/api/callback",
        scope="user-top-read",
        authorize_url="https://provider.example.com/authorize",
        token_url="https://provider.example.com/api/token",
    )


@pytest.fixture
def gateway_env(monkeypatch) -> None:
    monkeypatch.setenv("OAUTH_CLIENT_ID", "cid")
    monkeypatch.setenv("OAUTH_CLIENT_SECRET", "secret")
    monkeypatch.setenv("OAUTH_REDIRECT_URI", "http://127.0.0.1:8000/api/callback")
    for key in (
        "OAUTH_SCOPE",
        "OAUTH_AUTHORIZE_URL",
        "OAUTH_TOKEN_URL",
        "OAUTH_STATE_LENGTH",
        "OAUTH_PENDING_TTL",
        "OAUTH_TOKEN_TIMEOUT",
        "GATEWAY_SESSION_STORE_PATH",
    ):
        monkeypatch.delenv(key, raising=False)
