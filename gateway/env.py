from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

from auth.provider_oauth2 import DEFAULT_AUTHORIZE_URL, DEFAULT_TOKEN_TIMEOUT, DEFAULT_TOKEN_URL

from .constants import (
    DEFAULT_PENDING_TTL_SECONDS,
    DEFAULT_SCOPE,
    DEFAULT_STATE_LENGTH,
    ENV_FILE,
    LOGGER,
)

REQUIRED_ENV = (
    "OAUTH_CLIENT_ID",
    "OAUTH_CLIENT_SECRET",
    "OAUTH_REDIRECT_URI",
)


@dataclass(frozen=True)
class GatewayConfig:
    client_id: str
    client_secret: str
    redirect_uri: str
    scope: str = DEFAULT_SCOPE
    authorize_url: str = DEFAULT_AUTHORIZE_URL
    token_url: str = DEFAULT_TOKEN_URL
    state_length: int = DEFAULT_STATE_LENGTH
    pending_ttl_seconds: int = DEFAULT_PENDING_TTL_SECONDS
    token_timeout_seconds: float = DEFAULT_TOKEN_TIMEOUT
    session_store_path: str | None = None


FLAG_TRUE = frozenset({"1", "true", "yes", "on"})
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def env_flag(key: str, default: bool = False) -> bool:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in FLAG_TRUE


def _env_number(key: str, default, convert):
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return convert(raw)
    except ValueError:
        kind = "an integer" if convert is int else "a number"
        raise RuntimeError(f"Environment variable {key} must be {kind}, got {raw!r}.")


def load_env() -> None:
    if not ENV_FILE.exists():
        return
    from dotenv import load_dotenv

    load_dotenv(ENV_FILE, override=True)


def validate_env() -> None:
    missing = [key for key in REQUIRED_ENV if not os.getenv(key, "").strip()]
    if missing:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")

    redirect_uri = os.getenv("OAUTH_REDIRECT_URI", "").strip()
    parsed = urlparse(redirect_uri)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise RuntimeError(
            "OAUTH_REDIRECT_URI must be an absolute http(s) URL (for example: "
            "http://127.0.0.1:8000/api/callback)."
        )
    if parsed.scheme == "http" and parsed.hostname not in {"localhost", "127.0.0.1"}:
        LOGGER.warning(
            "OAUTH_REDIRECT_URI uses plain http on a non-local host; most providers reject this."
        )

    if _env_number("OAUTH_STATE_LENGTH", DEFAULT_STATE_LENGTH, int) < 16:
        raise RuntimeError("OAUTH_STATE_LENGTH must be at least 16.")
    if _env_number("OAUTH_PENDING_TTL", DEFAULT_PENDING_TTL_SECONDS, int) <= 0:
        raise RuntimeError("OAUTH_PENDING_TTL must be positive.")
    if _env_number("OAUTH_TOKEN_TIMEOUT", DEFAULT_TOKEN_TIMEOUT, float) <= 0:
        raise RuntimeError("OAUTH_TOKEN_TIMEOUT must be positive.")


def load_config() -> GatewayConfig:
    """Build the gateway configuration from the process environment.

    Call ``validate_env`` first; this function only reads and converts values.
    """
    store_path = os.getenv("GATEWAY_SESSION_STORE_PATH", "").strip()
    return GatewayConfig(
        client_id=os.getenv("OAUTH_CLIENT_ID", "").strip(),
        client_secret=os.getenv("OAUTH_CLIENT_SECRET", "").strip(),
        redirect_uri=os.getenv("OAUTH_REDIRECT_URI", "").strip(),
        scope=os.getenv("OAUTH_SCOPE", DEFAULT_SCOPE).strip() or DEFAULT_SCOPE,
        authorize_url=os.getenv("OAUTH_AUTHORIZE_URL", DEFAULT_AUTHORIZE_URL).strip()
        or DEFAULT_AUTHORIZE_URL,
        token_url=os.getenv("OAUTH_TOKEN_URL", DEFAULT_TOKEN_URL).strip() or DEFAULT_TOKEN_URL,
        state_length=_env_number("OAUTH_STATE_LENGTH", DEFAULT_STATE_LENGTH, int),
        pending_ttl_seconds=_env_number("OAUTH_PENDING_TTL", DEFAULT_PENDING_TTL_SECONDS, int),
        token_timeout_seconds=_env_number("OAUTH_TOKEN_TIMEOUT", DEFAULT_TOKEN_TIMEOUT, float),
        session_store_path=store_path or None,
    )


def setup_logging() -> bool:
    """Configure the gateway logger; GATEWAY_DEBUG (default on) selects INFO over WARNING."""
    debug_enabled = env_flag("GATEWAY_DEBUG", default=True)
    level = logging.INFO if debug_enabled else logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)
    LOGGER.setLevel(level)
    return debug_enabled
