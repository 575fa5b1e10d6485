"""
Token lifecycle: cached tokens are returned without network calls, expired
tokens are refreshed exactly once and persisted.
"""
import asyncio
from datetime import timedelta

import httpx
import pytest

from conftest import FIXED_NOW
from helpers.credential_store import InstallationRecord
from helpers.errors import InstallationNotFound, TokenRefreshFailed, UpstreamFetchFailed
from helpers.hubspot_oauth import HubSpotOAuth
from helpers.token_manager import TokenManager


def make_manager(settings, store, handler, calls):
    def _wrapped(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(_wrapped))
    oauth = HubSpotOAuth(settings, client=client)
    return TokenManager(store, oauth, clock=lambda: FIXED_NOW)


def refresh_ok(_: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"access_token": "new-token", "expires_in": 1800})


def seed(store, expires_at, access="old-token", portal="123"):
    store.rows[portal] = InstallationRecord(
        account_id=portal, refresh_token="refresh-1", access_token=access, expires_at=expires_at,
    )


async def test_missing_installation_tells_caller_to_reinstall(settings, store):
    calls = []
    tm = make_manager(settings, store, refresh_ok, calls)
    with pytest.raises(InstallationNotFound) as exc:
        await tm.get_valid_token("999")
    assert "reinstall" in str(exc.value)
    assert exc.value.status_code == 404
    assert calls == []


async def test_unexpired_token_is_returned_without_network(settings, store):
    seed(store, FIXED_NOW + timedelta(minutes=5))
    calls = []
    tm = make_manager(settings, store, refresh_ok, calls)

    assert await tm.get_valid_token("123") == "old-token"
    assert calls == []
    assert store.updates == []


async def test_expired_token_refreshes_once_and_persists(settings, store):
    seed(store, FIXED_NOW - timedelta(seconds=1))
    calls = []
    tm = make_manager(settings, store, refresh_ok, calls)

    token = await tm.get_valid_token("123")

    assert token == "new-token"
    assert len(calls) == 1
    body = calls[0].content.decode()
    assert "grant_type=refresh_token" in body
    assert "refresh_token=refresh-1" in body
    assert store.updates == [
        ("123", {"access_token": "new-token", "expires_at": FIXED_NOW + timedelta(seconds=1800)})
    ]
    # refresh token untouched
    assert store.rows["123"].refresh_token == "refresh-1"


async def test_token_expiring_exactly_now_is_stale(settings, store):
    seed(store, FIXED_NOW)
    calls = []
    tm = make_manager(settings, store, refresh_ok, calls)
    assert await tm.get_valid_token("123") == "new-token"
    assert len(calls) == 1


async def test_refresh_rejection_raises_and_does_not_persist(settings, store):
    seed(store, FIXED_NOW - timedelta(hours=1))
    calls = []
    tm = make_manager(settings, store, lambda r: httpx.Response(400, json={"status": "BAD_REFRESH_TOKEN"}), calls)

    with pytest.raises(TokenRefreshFailed):
        await tm.get_valid_token("123")
    assert store.updates == []


async def test_concurrent_callers_share_one_refresh(settings, store):
    seed(store, FIXED_NOW - timedelta(hours=1))
    calls = []
    tm = make_manager(settings, store, refresh_ok, calls)

    tokens = await asyncio.gather(*(tm.get_valid_token("123") for _ in range(5)))

    assert set(tokens) == {"new-token"}
    assert len(calls) == 1
    assert len(store.updates) == 1


async def test_save_authorization_overwrites_installation(settings, store):
    seed(store, FIXED_NOW - timedelta(days=3), access="stale")
    tm = make_manager(settings, store, refresh_ok, [])

    expires_at = await tm.save_authorization(
        "123", {"access_token": "a2", "refresh_token": "r2", "expires_in": 3600}
    )

    assert expires_at == FIXED_NOW + timedelta(hours=1)
    row = store.rows["123"]
    assert (row.access_token, row.refresh_token, row.expires_at) == ("a2", "r2", expires_at)


async def test_refresh_failure_is_logged_with_portal(settings, store, caplog):
    seed(store, FIXED_NOW - timedelta(hours=1), portal="4242")
    tm = make_manager(settings, store, lambda r: httpx.Response(400, text="bad"), [])

    with caplog.at_level("ERROR", logger="oauth"):
        with pytest.raises(TokenRefreshFailed):
            await tm.get_valid_token("4242")

    assert any("portal=4242" in r.getMessage() for r in caplog.records)


@pytest.mark.parametrize("expires_in", [None, "soon", 0])
async def test_refresh_without_usable_expiry_is_rejected(settings, store, expires_in):
    seed(store, FIXED_NOW - timedelta(hours=1))
    body = {"access_token": "new-token"}
    if expires_in is not None:
        body["expires_in"] = expires_in
    tm = make_manager(settings, store, lambda r: httpx.Response(200, json=body), [])

    with pytest.raises(TokenRefreshFailed):
        await tm.get_valid_token("123")
    assert store.updates == []
    assert store.rows["123"].access_token == "old-token"


async def test_save_authorization_requires_expiry(settings, store):
    tm = make_manager(settings, store, refresh_ok, [])
    with pytest.raises(UpstreamFetchFailed):
        await tm.save_authorization("123", {"access_token": "a", "refresh_token": "r"})
    assert store.upserts == []
