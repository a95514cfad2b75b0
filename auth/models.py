from __future__ import annotations

import time
from dataclasses import dataclass, field

TOKEN_TYPE_BEARER = "Bearer"


@dataclass
class PendingAuthorization:
    state: str
    redirect_uri: str
    created_at: float

    def is_expired(self, ttl_seconds: float, *, now: float | None = None) -> bool:
        current = time.time() if now is None else now
        return current - self.created_at > ttl_seconds


@dataclass
class AuthorizedSession:
    session_id: str
    access_token: str
    refresh_token: str
    scope: str
    expires_at: float
    token_type: str = TOKEN_TYPE_BEARER
    created_at: float = field(default_factory=time.time)

    def is_expired(self, *, now: float | None = None) -> bool:
        current = time.time() if now is None else now
        return current >= self.expires_at

    def describe(self) -> dict:
        """Client-facing view of the session; never includes the provider tokens."""
        return {
            "session_id": self.session_id,
            "token_type": self.token_type,
            "scope": self.scope,
            "expires_in": max(0, int(self.expires_at - time.time())),
            "expires_at": self.expires_at,
        }
