# helpers/token_manager.py
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from helpers.credential_store import CredentialStore
from helpers.errors import InstallationNotFound, TokenRefreshFailed, UpstreamFetchFailed
from helpers.hubspot_oauth import HubSpotOAuth

logger = logging.getLogger("oauth")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _expires_in(tokens: Dict) -> Optional[int]:
    try:
        seconds = int(tokens.get("expires_in"))
    except (TypeError, ValueError):
        return None
    return seconds if seconds > 0 else None


class TokenManager:
    """
    Hands out a currently-valid access token per portal, refreshing through
    the OAuth endpoint and persisting the new token when the cached one has
    expired.

    Refreshes for the same portal are serialized in-process; concurrent
    processes may still both refresh, which is harmless (last write wins).
    """

    def __init__(
        self,
        store: CredentialStore,
        oauth: HubSpotOAuth,
        skew_seconds: int = 0,
        clock: Callable[[], datetime] = _now,
    ):
        self.store = store
        self.oauth = oauth
        self.skew = timedelta(seconds=max(0, skew_seconds))
        self.clock = clock
        self._locks: Dict[str, asyncio.Lock] = {}

    def _is_fresh(self, expires_at: Optional[datetime]) -> bool:
        if expires_at is None:
            return False
        return self.clock() + self.skew < expires_at

    async def get_valid_token(self, account_id: str) -> str:
        account_id = str(account_id)
        inst = await self.store.get(account_id)
        if not inst:
            logger.warning("no installation portal=%s", account_id)
            raise InstallationNotFound(account_id)
        if self._is_fresh(inst.expires_at):
            return inst.access_token

        lock = self._locks.setdefault(account_id, asyncio.Lock())
        async with lock:
            # another coroutine may have refreshed while we waited
            inst = await self.store.get(account_id)
            if not inst:
                raise InstallationNotFound(account_id)
            if self._is_fresh(inst.expires_at):
                return inst.access_token

            try:
                tokens = await self.oauth.refresh(inst.refresh_token)
                access_token = tokens.get("access_token")
                seconds = _expires_in(tokens)
                if not access_token or seconds is None:
                    raise TokenRefreshFailed("Failed to refresh access token")
            except TokenRefreshFailed as e:
                logger.error("token refresh failed portal=%s: %s", account_id, e)
                raise
            expires_at = self.clock() + timedelta(seconds=seconds)
            await self.store.update(account_id, {"access_token": access_token, "expires_at": expires_at})
            logger.info("token refreshed portal=%s exp=%s", account_id, expires_at.isoformat())
            return access_token

    async def save_authorization(self, account_id: str, tokens: Dict) -> datetime:
        """Persist a fresh authorization-code exchange, overwriting any prior tokens."""
        seconds = _expires_in(tokens)
        if seconds is None:
            logger.error("token exchange without expires_in portal=%s", account_id)
            raise UpstreamFetchFailed("HubSpot token exchange returned no expiry")
        expires_at = self.clock() + timedelta(seconds=seconds)
        await self.store.upsert(
            str(account_id),
            {
                "refresh_token": tokens.get("refresh_token"),
                "access_token": tokens.get("access_token"),
                "expires_at": expires_at,
            },
        )
        logger.info("installation saved portal=%s exp=%s", account_id, expires_at.isoformat())
        return expires_at
