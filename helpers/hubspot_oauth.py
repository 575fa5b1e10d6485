# helpers/hubspot_oauth.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from helpers.errors import TokenRefreshFailed, UpstreamFetchFailed
from helpers.settings import Settings

logger = logging.getLogger("oauth")


class HubSpotOAuth:
    """
    Thin async client for HubSpot's OAuth endpoints.

    Pass `client` to share a connection pool (or a mocked transport in tests);
    otherwise each call opens a short-lived httpx.AsyncClient.
    """

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._client = client

    def authorize_url(self, state: Optional[str] = None) -> str:
        params = {
            "client_id": self.settings.hubspot_client_id,
            "redirect_uri": self.settings.hubspot_redirect_uri,
            "scope": self.settings.hubspot_scopes,
        }
        if state:
            params["state"] = state
        return f"{self.settings.hubspot_auth_url}?{httpx.QueryParams(params)}"

    async def _post_token(self, data: Dict[str, str]) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(self.settings.hubspot_token_url, data=data)
        async with httpx.AsyncClient(timeout=self.settings.http_timeout_seconds) as client:
            return await client.post(self.settings.hubspot_token_url, data=data)

    async def exchange_code(self, code: str) -> Dict[str, Any]:
        data = {
            "grant_type": "authorization_code",
            "client_id": self.settings.hubspot_client_id,
            "client_secret": self.settings.hubspot_client_secret,
            "redirect_uri": self.settings.hubspot_redirect_uri,
            "code": code,
        }
        try:
            r = await self._post_token(data)
        except httpx.HTTPError as e:
            raise UpstreamFetchFailed(f"HubSpot token exchange failed: {e}") from e
        if not r.is_success:
            logger.error("token exchange failed status=%s body=%s", r.status_code, r.text[:300])
            raise UpstreamFetchFailed(r.text or "HubSpot token exchange failed")
        return r.json()

    async def refresh(self, refresh_token: str) -> Dict[str, Any]:
        data = {
            "grant_type": "refresh_token",
            "client_id": self.settings.hubspot_client_id,
            "client_secret": self.settings.hubspot_client_secret,
            "refresh_token": refresh_token,
        }
        try:
            r = await self._post_token(data)
        except httpx.HTTPError as e:
            logger.error("refresh transport error: %s", e)
            raise TokenRefreshFailed("Failed to refresh access token") from e
        if not r.is_success:
            logger.error("refresh failed status=%s body=%s", r.status_code, r.text[:300])
            raise TokenRefreshFailed("Failed to refresh access token")
        j = r.json()
        if not j.get("access_token"):
            raise TokenRefreshFailed("Failed to refresh access token")
        return j

    async def token_info(self, access_token: str) -> Dict[str, Any]:
        url = f"{self.settings.hubspot_token_info_url.rstrip('/')}/{access_token}"
        try:
            if self._client is not None:
                r = await self._client.get(url, headers={"Accept": "application/json"})
            else:
                async with httpx.AsyncClient(timeout=self.settings.http_timeout_seconds) as client:
                    r = await client.get(url, headers={"Accept": "application/json"})
        except httpx.HTTPError as e:
            raise UpstreamFetchFailed(f"Failed to fetch HubSpot token info: {e}") from e
        if not r.is_success:
            logger.error("token info failed status=%s body=%s", r.status_code, r.text[:300])
            raise UpstreamFetchFailed("Failed to fetch HubSpot token info")
        return r.json()
