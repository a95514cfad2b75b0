from __future__ import annotations

import secrets

from auth.models import TOKEN_TYPE_BEARER, AuthorizedSession, PendingAuthorization
from auth.provider_oauth2 import AuthResponse
from auth.session_store import SessionStore
from gateway.constants import LOGGER


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


async def finalize(
    pending: PendingAuthorization,
    auth_response: AuthResponse,
    store: SessionStore,
    *,
    session_id: str | None = None,
) -> AuthorizedSession:
    """Turn a consumed pending authorization plus its tokens into a stored session.

    ``expires_at`` comes from the token response, which fixed it at the moment
    the exchange was sent.
    """
    session = AuthorizedSession(
        session_id=session_id or new_session_id(),
        access_token=auth_response.access_token,
        refresh_token=auth_response.refresh_token,
        token_type=TOKEN_TYPE_BEARER,
        scope=auth_response.scope,
        expires_at=auth_response.expires_at,
    )
    await store.put_authorized(session)
    LOGGER.info(
        "Authorized session created for state %s (scope=%r, expires_in=%ss)",
        pending.state,
        session.scope,
        auth_response.expires_in,
    )
    return session
