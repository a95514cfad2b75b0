from __future__ import annotations

import httpx

from .constants import APP_VERSION, LOGGER, STATUS_MESSAGE

ERROR_BODY_LOG_LIMIT = 1000


def extract_bearer_token(authorization_header: str | None) -> str | None:
    if not authorization_header:
        return None
    scheme, _, token = authorization_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def status_payload() -> dict:
    return {
        "status": "ok",
        "message": STATUS_MESSAGE,
        "version": APP_VERSION,
    }


async def log_request(request: httpx.Request) -> None:
    LOGGER.info("Provider request %s %s", request.method, request.url)


async def log_response(response: httpx.Response) -> None:
    LOGGER.info(
        "Provider response %s %s -> %s",
        response.request.method,
        response.request.url,
        response.status_code,
    )
    if response.status_code >= 400:
        body = await response.aread()
        text = body.decode("utf-8", errors="replace")
        if len(text) > ERROR_BODY_LOG_LIMIT:
            text = text[:ERROR_BODY_LOG_LIMIT] + "...<truncated>"
        LOGGER.warning("Provider error body: %s", text)


def build_token_client(*, timeout: float, debug_enabled: bool = False) -> httpx.AsyncClient:
    """Shared client for back-channel calls to the provider's token endpoint.

    No retry transport: a failed exchange is reported to the caller as is.
    """
    event_hooks: dict[str, list] = {"request": [], "response": []}
    if debug_enabled:
        event_hooks["request"].append(log_request)
        event_hooks["response"].append(log_response)

    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        follow_redirects=False,
        event_hooks=event_hooks,
    )
