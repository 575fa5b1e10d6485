# helpers/hubspot_client.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx

from helpers.errors import UpstreamFetchFailed
from helpers.pagination import fetch_all
from helpers.settings import Settings

logger = logging.getLogger("hubspot")

SCAN_PERMISSION_HINT = (
    "Your HubSpot account may not have access to this API "
    "or the required permissions were not granted."
)


@dataclass
class PropertyDescriptor:
    name: str
    label: str
    type: str
    description: str = ""
    is_custom: bool = False

    @classmethod
    def from_api(cls, p: Dict[str, Any]) -> "PropertyDescriptor":
        return cls(
            name=p.get("name") or "",
            label=p.get("label") or p.get("name") or "",
            type=p.get("type") or "",
            description=p.get("description") or "",
            is_custom=not p.get("hubspotDefined", False),
        )


class RemoteRecordSource(Protocol):
    async def list_properties(self, object_type: str) -> List[PropertyDescriptor]: ...

    async def count(self, object_type: str, filters: Optional[List[Dict[str, Any]]] = None) -> int: ...

    async def sample(
        self, object_type: str, properties: Sequence[str], max_pages: int, page_size: int
    ) -> List[Dict[str, Any]]: ...

    async def list_reports(self) -> List[Dict[str, Any]]: ...

    async def list_workflows(self) -> List[Dict[str, Any]]: ...


class HubSpotRecordSource:
    """HubSpot CRM, reports and workflows APIs for one portal's access token."""

    def __init__(self, client: httpx.AsyncClient, access_token: str, settings: Settings):
        self.client = client
        self.settings = settings
        self.base = settings.hubspot_api_base.rstrip("/")
        self.headers = {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}

    async def list_properties(self, object_type: str) -> List[PropertyDescriptor]:
        url = f"{self.base}/crm/v3/properties/{object_type}"
        try:
            r = await self.client.get(url, headers=self.headers, params={"archived": "false"})
        except httpx.HTTPError as e:
            raise UpstreamFetchFailed(f"Failed to fetch properties for {object_type}") from e
        if not r.is_success:
            logger.error("properties fetch failed object=%s status=%s body=%s",
                         object_type, r.status_code, r.text[:300])
            raise UpstreamFetchFailed(f"Failed to fetch properties for {object_type}")
        return [PropertyDescriptor.from_api(p) for p in (r.json().get("results") or [])]

    async def count(self, object_type: str, filters: Optional[List[Dict[str, Any]]] = None) -> int:
        """Total matching records, read from the search response's `total`."""
        body: Dict[str, Any] = {"limit": 1, "properties": ["hs_object_id"]}
        if filters:
            body["filterGroups"] = [{"filters": filters}]
        url = f"{self.base}/crm/v3/objects/{object_type}/search"
        try:
            r = await self.client.post(url, headers={**self.headers, "Content-Type": "application/json"}, json=body)
        except httpx.HTTPError as e:
            raise UpstreamFetchFailed(f"Failed to count {object_type}") from e
        if not r.is_success:
            logger.error("count failed object=%s status=%s body=%s",
                         object_type, r.status_code, r.text[:300])
            raise UpstreamFetchFailed(f"Failed to count {object_type}")
        return int(r.json().get("total") or 0)

    async def sample(
        self, object_type: str, properties: Sequence[str], max_pages: int, page_size: int
    ) -> List[Dict[str, Any]]:
        return await fetch_all(
            self.client,
            f"{self.base}/crm/v3/objects/{object_type}",
            self.headers,
            params={"limit": page_size, "properties": ",".join(properties)},
            max_pages=max_pages,
            partial_ok=True,
        )

    async def list_reports(self) -> List[Dict[str, Any]]:
        return await fetch_all(
            self.client,
            f"{self.base}/reports/v3/reports",
            self.headers,
            error_message=f"Failed to fetch reports. {SCAN_PERMISSION_HINT}",
        )

    async def list_workflows(self) -> List[Dict[str, Any]]:
        return await fetch_all(
            self.client,
            f"{self.base}/automation/v3/workflows",
            self.headers,
            error_message=f"Failed to fetch workflows. {SCAN_PERMISSION_HINT}",
        )
