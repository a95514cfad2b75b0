from __future__ import annotations

import httpx
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response
from starlette.routing import Route

from auth import provider_oauth2
from auth.callback import MalformedCallback, ProviderError, validate_callback
from auth.errors import (
    DuplicateState,
    GatewayError,
    MissingCredentials,
    ProviderDenied,
    SessionExpired,
    SessionNotFound,
    SessionStoreError,
)
from auth.finalizer import finalize
from auth.session_store import SessionStore
from auth.state import generate_state
from gateway.constants import LOGGER
from gateway.env import GatewayConfig
from gateway.http import extract_bearer_token


class OAuthGateway:
    def __init__(
        self,
        *,
        config: GatewayConfig,
        store: SessionStore,
        http_client: httpx.AsyncClient | None = None,
        exchange_code_fn=provider_oauth2.exchange_code,
        state_fn=generate_state,
    ) -> None:
        self.config = config
        self.store = store
        self._http_client = http_client
        self._exchange_code_fn = exchange_code_fn
        self._state_fn = state_fn

    # -- routes ----------------------------------------------------------------

    def routes(self) -> list[Route]:
        return [
            Route("/login", self._handle_login, methods=["GET"]),
            Route("/callback", self._handle_callback, methods=["GET"]),
            Route("/session", self._handle_session, methods=["GET"]),
            Route("/logout", self._handle_logout, methods=["POST"]),
        ]

    # -- handlers --------------------------------------------------------------

    async def _handle_login(self, request: Request) -> Response:
        del request
        state = self._state_fn(self.config.state_length)
        try:
            await self.store.evict_expired()
            await self.store.put_pending(state, self.config.redirect_uri)
        except DuplicateState as error:
            LOGGER.error("State collision while starting authorization: %s", error)
            return self._error("Could not start authorization; please retry.", 500)
        except (SessionStoreError, OSError) as error:
            return self._store_failure(error)

        authorize_url = provider_oauth2.build_authorization_url(
            client_id=self.config.client_id,
            scope=self.config.scope,
            redirect_uri=self.config.redirect_uri,
            state=state,
            authorize_url=self.config.authorize_url,
        )
        LOGGER.info("Redirecting to provider for authorization (state=%s)", state)
        return RedirectResponse(url=authorize_url, status_code=302)

    async def _handle_callback(self, request: Request) -> Response:
        try:
            result = await validate_callback(request.query_params, self.store)
        except GatewayError as error:
            return self._failure(error)
        except (SessionStoreError, OSError) as error:
            return self._store_failure(error)

        # Error and malformed callbacks leave the store untouched.
        if isinstance(result, MalformedCallback):
            LOGGER.warning("Malformed provider callback: %s", result.reason)
            return self._error("Malformed authorization callback.", 401)
        if isinstance(result, ProviderError):
            return self._failure(ProviderDenied(result.reason, result.state))

        try:
            auth_response = await self._exchange_code_fn(
                client_id=self.config.client_id,
                client_secret=self.config.client_secret,
                code=result.code,
                redirect_uri=result.pending.redirect_uri,
                token_url=self.config.token_url,
                client=self._http_client,
                timeout=self.config.token_timeout_seconds,
            )
        except GatewayError as error:
            LOGGER.warning("Code exchange failed for state %s", result.pending.state)
            return self._failure(error)

        try:
            await self.store.evict_expired()
            session = await finalize(result.pending, auth_response, self.store)
        except (SessionStoreError, OSError) as error:
            return self._store_failure(error)

        return JSONResponse({"status": "success", "data": session.describe()})

    async def _handle_session(self, request: Request) -> Response:
        try:
            session_id = self._require_session_id(request)
        except MissingCredentials as error:
            return self._failure(error)

        try:
            session = await self.store.get_authorized(session_id)
        except SessionNotFound:
            return self._error("Unknown session.", 401)
        except SessionExpired:
            return self._error("Session expired; please log in again.", 401)
        except (SessionStoreError, OSError) as error:
            return self._store_failure(error)

        return JSONResponse({"status": "success", "data": session.describe()})

    async def _handle_logout(self, request: Request) -> Response:
        try:
            session_id = self._require_session_id(request)
        except MissingCredentials as error:
            return self._failure(error)

        try:
            deleted = await self.store.delete_authorized(session_id)
        except (SessionStoreError, OSError) as error:
            return self._store_failure(error)
        if not deleted:
            return self._error("Unknown session.", 401)

        LOGGER.info("Session logged out")
        return JSONResponse({"status": "success", "message": "Logged out."})

    # -- helpers ---------------------------------------------------------------

    def _require_session_id(self, request: Request) -> str:
        session_id = extract_bearer_token(request.headers.get("authorization"))
        if session_id is None:
            raise MissingCredentials("Request has no Bearer session id.")
        return session_id

    def _failure(self, error: GatewayError) -> Response:
        LOGGER.warning("%s: %s", type(error).__name__, error)
        return self._error(error.public_message, error.status_code)

    def _store_failure(self, error: Exception) -> Response:
        LOGGER.error("Session store failure: %s", error, exc_info=error)
        return self._error("Session storage is unavailable.", 500)

    def _error(self, message: str, status_code: int) -> Response:
        return JSONResponse(
            {"status": "error", "message": message},
            status_code=status_code,
        )
