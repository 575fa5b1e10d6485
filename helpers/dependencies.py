# helpers/dependencies.py
from functools import lru_cache
from typing import Annotated, AsyncIterator, Optional

import httpx
from fastapi import Depends, Header

from helpers.credential_store import TortoiseCredentialStore
from helpers.errors import AuditError
from helpers.hubspot_client import HubSpotRecordSource
from helpers.hubspot_oauth import HubSpotOAuth
from helpers.settings import Settings
from helpers.text_generator import TextGenerator, build_text_generator
from helpers.token_manager import TokenManager


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache
def get_token_manager() -> TokenManager:
    # process-wide so the per-portal refresh locks are shared across requests
    settings = get_settings()
    return TokenManager(
        TortoiseCredentialStore(),
        HubSpotOAuth(settings),
        skew_seconds=settings.token_refresh_skew_seconds,
    )


def get_oauth(settings: Annotated[Settings, Depends(get_settings)]) -> HubSpotOAuth:
    return HubSpotOAuth(settings)


async def get_http_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
        yield client


def require_portal_id(
    x_hubspot_portal_id: Annotated[Optional[str], Header(alias="X-HubSpot-Portal-Id")] = None,
) -> str:
    if not x_hubspot_portal_id or not x_hubspot_portal_id.strip():
        raise AuditError("HubSpot Portal ID is missing.", status_code=400)
    return x_hubspot_portal_id.strip()


async def get_record_source(
    portal_id: Annotated[str, Depends(require_portal_id)],
    tokens: Annotated[TokenManager, Depends(get_token_manager)],
    client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HubSpotRecordSource:
    access_token = await tokens.get_valid_token(portal_id)
    return HubSpotRecordSource(client, access_token, settings)


def get_text_generator(settings: Annotated[Settings, Depends(get_settings)]) -> TextGenerator:
    return build_text_generator(settings)
