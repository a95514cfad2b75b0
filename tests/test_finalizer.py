import time

import pytest

from auth.errors import ProviderRejected
from auth.finalizer import finalize
from auth.provider_oauth2 import exchange_code
from auth.session_store import MemorySessionStore
from tests.oauth_helpers import _auth_response

TOKEN_URL = "https://provider.example.com/api/token"


async def _exchange():
    return await exchange_code(
        client_id="cid",
        client_secret="secret",
        code="abc",
        redirect_uri="https://a/cb",
        token_url=TOKEN_URL,
    )


@pytest.mark.asyncio
async def test_exchange_then_finalize_creates_session(httpx_mock) -> None:
    httpx_mock.add_response(
        url=TOKEN_URL,
        method="POST",
        json={
            "access_token": "T",
            "token_type": "Bearer",
            "scope": "read",
            "expires_in": 3600,
            "refresh_token": "R",
        },
    )
    store = MemorySessionStore()
    pending = await store.put_pending("S1", "https://a/cb")
    await store.take_pending("S1")
    call_time = time.time()

    session = await finalize(pending, await _exchange(), store)

    assert session.access_token == "T"
    assert session.refresh_token == "R"
    assert session.token_type == "Bearer"
    assert session.scope == "read"
    assert session.expires_at == pytest.approx(call_time + 3600, abs=5)
    assert await store.get_authorized(session.session_id) == session


@pytest.mark.asyncio
async def test_rejected_exchange_creates_no_session(httpx_mock) -> None:
    httpx_mock.add_response(
        url=TOKEN_URL,
        method="POST",
        status_code=400,
        json={"error": "invalid_grant"},
    )
    store = MemorySessionStore()
    pending = await store.put_pending("S1", "https://a/cb")
    await store.take_pending("S1")

    with pytest.raises(ProviderRejected) as excinfo:
        await finalize(pending, await _exchange(), store)

    assert excinfo.value.status == 400
    assert store._sessions == {}


@pytest.mark.asyncio
async def test_finalize_uses_given_session_id() -> None:
    store = MemorySessionStore()
    pending = await store.put_pending("S1", "https://a/cb")

    session = await finalize(pending, _auth_response(), store, session_id="fixed-id")

    assert session.session_id == "fixed-id"
    assert (await store.get_authorized("fixed-id")).access_token == "provider-access-token"


@pytest.mark.asyncio
async def test_finalize_generates_unique_session_ids() -> None:
    store = MemorySessionStore()
    pending = await store.put_pending("S1", "https://a/cb")

    first = await finalize(pending, _auth_response(), store)
    second = await finalize(pending, _auth_response(), store)

    assert first.session_id != second.session_id
    assert len(first.session_id) >= 32
