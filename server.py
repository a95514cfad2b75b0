from __future__ import annotations

import contextlib
import os

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Mount, Route

from auth.oauth_gateway import OAuthGateway
from auth.session_store import FileSessionStore, MemorySessionStore, SessionStore
from gateway.constants import LOGGER
from gateway.env import GatewayConfig, load_config, load_env, setup_logging, validate_env
from gateway.http import build_token_client, status_payload


async def status_route(request: Request) -> Response:
    del request
    return JSONResponse(status_payload())


def build_session_store(config: GatewayConfig) -> SessionStore:
    if config.session_store_path:
        LOGGER.info("Using file session store at %s", config.session_store_path)
        return FileSessionStore(
            config.session_store_path,
            pending_ttl_seconds=config.pending_ttl_seconds,
        )
    return MemorySessionStore(pending_ttl_seconds=config.pending_ttl_seconds)


def create_app() -> Starlette:
    load_env()
    debug_enabled = setup_logging()
    validate_env()

    config = load_config()
    store = build_session_store(config)
    token_client = build_token_client(
        timeout=config.token_timeout_seconds,
        debug_enabled=debug_enabled,
    )
    oauth_gateway = OAuthGateway(config=config, store=store, http_client=token_client)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette):
        del app
        try:
            yield
        finally:
            await token_client.aclose()

    app = Starlette(
        routes=[
            Mount(
                "/api",
                routes=[
                    Route("/status", status_route, methods=["GET"]),
                    *oauth_gateway.routes(),
                ],
            )
        ],
        lifespan=lifespan,
    )
    app.state.oauth_gateway = oauth_gateway
    return app


def main() -> None:
    host = os.getenv("GATEWAY_HOST", "127.0.0.1")
    port = int(os.getenv("GATEWAY_PORT", "8000"))
    app = create_app()
    LOGGER.info("Serving authorization code gateway on %s:%s", host, port)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
