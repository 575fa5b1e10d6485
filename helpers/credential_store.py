# helpers/credential_store.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol

from models.installation import Installation


@dataclass
class InstallationRecord:
    account_id: str
    refresh_token: str
    access_token: str
    expires_at: datetime


def _aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


class CredentialStore(Protocol):
    async def get(self, account_id: str) -> Optional[InstallationRecord]: ...

    async def upsert(self, account_id: str, fields: Dict[str, Any]) -> None: ...

    async def update(self, account_id: str, fields: Dict[str, Any]) -> None: ...


class TortoiseCredentialStore:
    """Installation rows keyed by HubSpot portal id."""

    async def get(self, account_id: str) -> Optional[InstallationRecord]:
        row = await Installation.get_or_none(hubspot_portal_id=str(account_id))
        if not row:
            return None
        return InstallationRecord(
            account_id=row.hubspot_portal_id,
            refresh_token=row.refresh_token,
            access_token=row.access_token,
            expires_at=_aware(row.expires_at),
        )

    async def upsert(self, account_id: str, fields: Dict[str, Any]) -> None:
        await Installation.update_or_create(defaults=fields, hubspot_portal_id=str(account_id))

    async def update(self, account_id: str, fields: Dict[str, Any]) -> None:
        # only the named columns are written; refresh_token stays untouched on refresh
        await Installation.filter(hubspot_portal_id=str(account_id)).update(**fields)
