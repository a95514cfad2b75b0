from __future__ import annotations

import base64
import time
import urllib.parse
from dataclasses import dataclass

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from auth.errors import MissingCredentials, NetworkError, ProviderRejected, TokenParseError
from auth.models import TOKEN_TYPE_BEARER

DEFAULT_AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
DEFAULT_TOKEN_URL = "https://accounts.spotify.com/api/token"
DEFAULT_TOKEN_TIMEOUT = 10.0


class TokenPayload(BaseModel):
    """Wire shape of a successful token endpoint reply."""

    model_config = ConfigDict(strict=True, extra="ignore")

    access_token: str = Field(min_length=1)
    token_type: str
    scope: str
    expires_in: int = Field(gt=0)
    refresh_token: str = Field(min_length=1)

    @field_validator("token_type")
    @classmethod
    def _require_bearer(cls, value: str) -> str:
        if value.lower() != "bearer":
            raise ValueError(f"unsupported token_type {value!r}")
        return TOKEN_TYPE_BEARER


def _summarize(error: ValidationError) -> str:
    # Field locations and messages only; pydantic's str() would echo token values.
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "<root>"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


@dataclass
class AuthResponse:
    access_token: str
    refresh_token: str
    token_type: str
    scope: str
    expires_in: int
    expires_at: float

    def is_expired(self) -> bool:
        return time.time() >= self.expires_at

    @classmethod
    def from_payload(cls, payload: object, *, received_at: float | None = None) -> "AuthResponse":
        try:
            parsed = TokenPayload.model_validate(payload)
        except ValidationError as error:
            raise TokenParseError(
                f"Token response has an unexpected shape: {_summarize(error)}"
            ) from error

        issued = time.time() if received_at is None else received_at
        return cls(
            access_token=parsed.access_token,
            refresh_token=parsed.refresh_token,
            token_type=parsed.token_type,
            scope=parsed.scope,
            expires_in=parsed.expires_in,
            expires_at=issued + parsed.expires_in,
        )


def build_authorization_url(
    client_id: str,
    scope: str,
    redirect_uri: str,
    state: str,
    *,
    authorize_url: str = DEFAULT_AUTHORIZE_URL,
) -> str:
    query = [
        ("response_type", "code"),
        ("client_id", client_id),
        ("scope", scope),
        ("redirect_uri", redirect_uri),
        ("state", state),
    ]
    separator = "&" if urllib.parse.urlparse(authorize_url).query else "?"
    encoded = urllib.parse.urlencode(query, safe="", quote_via=urllib.parse.quote)
    return f"{authorize_url}{separator}{encoded}"


def basic_auth_header(client_id: str, client_secret: str) -> str:
    raw = f"{client_id}:{client_secret}".encode("utf-8")
    return f"Basic {base64.b64encode(raw).decode('ascii')}"


async def _token_request(
    token_url: str,
    payload: dict[str, str],
    headers: dict[str, str],
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TOKEN_TIMEOUT,
) -> AuthResponse:
    own_client = client is None
    http_client = client or httpx.AsyncClient()
    received_at = time.time()

    try:
        response = await http_client.post(
            token_url,
            data=payload,
            headers=headers,
            timeout=timeout,
        )
        response.raise_for_status()
    except httpx.HTTPStatusError as error:
        raise ProviderRejected(error.response.status_code, error.response.text) from error
    except httpx.DecodingError as error:
        raise TokenParseError(f"Token response body could not be decoded: {error}") from error
    except httpx.TransportError as error:
        raise NetworkError(f"Token request to {token_url} failed: {error!r}") from error
    finally:
        if own_client:
            await http_client.aclose()

    try:
        body = response.json()
    except ValueError as error:
        raise TokenParseError("Token response is not valid JSON.", body=response.text) from error

    try:
        return AuthResponse.from_payload(body, received_at=received_at)
    except TokenParseError as error:
        error.body = response.text
        raise


async def exchange_code(
    client_id: str,
    client_secret: str,
    code: str,
    redirect_uri: str,
    *,
    token_url: str = DEFAULT_TOKEN_URL,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TOKEN_TIMEOUT,
) -> AuthResponse:
    if not client_id or not client_secret:
        raise MissingCredentials("Client id and client secret are required for the code exchange.")

    return await _token_request(
        token_url,
        {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
        },
        {
            "Authorization": basic_auth_header(client_id, client_secret),
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        },
        client=client,
        timeout=timeout,
    )
