"""
Shared fakes for the audit service tests.

No database or network: the credential store is an in-memory dict and remote
HubSpot / Gemini endpoints are served by httpx.MockTransport handlers.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from helpers.credential_store import InstallationRecord
from helpers.hubspot_client import PropertyDescriptor
from helpers.settings import Settings

FIXED_NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


class InMemoryCredentialStore:
    def __init__(self):
        self.rows: Dict[str, InstallationRecord] = {}
        self.updates: List[tuple] = []
        self.upserts: List[tuple] = []

    async def get(self, account_id: str) -> Optional[InstallationRecord]:
        return self.rows.get(str(account_id))

    async def upsert(self, account_id: str, fields: Dict[str, Any]) -> None:
        self.upserts.append((account_id, dict(fields)))
        self.rows[str(account_id)] = InstallationRecord(account_id=str(account_id), **fields)

    async def update(self, account_id: str, fields: Dict[str, Any]) -> None:
        self.updates.append((account_id, dict(fields)))
        row = self.rows[str(account_id)]
        for k, v in fields.items():
            setattr(row, k, v)


class FakeRecordSource:
    """Stands in for HubSpotRecordSource with canned data."""

    def __init__(
        self,
        properties: Optional[List[PropertyDescriptor]] = None,
        total: int = 0,
        records: Optional[List[Dict[str, Any]]] = None,
        counts: Optional[Dict[str, int]] = None,
        samples: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        reports: Optional[List[Dict[str, Any]]] = None,
        workflows: Optional[List[Dict[str, Any]]] = None,
    ):
        self.properties = properties or []
        self.total = total
        self.records = records or []
        self.counts = counts or {}
        self.samples = samples or {}
        self.reports = reports or []
        self.workflows = workflows or []
        self.sample_calls: List[tuple] = []

    async def list_properties(self, object_type):
        return list(self.properties)

    async def count(self, object_type, filters=None):
        if filters:
            return self.counts.get(object_type, 0)
        return self.total

    async def sample(self, object_type, properties, max_pages, page_size):
        self.sample_calls.append((object_type, tuple(properties), max_pages, page_size))
        if object_type in self.samples:
            return list(self.samples[object_type])
        return list(self.records)

    async def list_reports(self):
        return list(self.reports)

    async def list_workflows(self):
        return list(self.workflows)


def prop(name: str, custom: bool = True, label: Optional[str] = None, type_: str = "string") -> PropertyDescriptor:
    return PropertyDescriptor(name=name, label=label or name.title(), type=type_, is_custom=custom)


def rec(**props) -> Dict[str, Any]:
    return {"id": "1", "properties": props}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        hubspot_client_id="client-id",
        hubspot_client_secret="client-secret",
        hubspot_redirect_uri="http://testserver/api/oauth-callback",
        hubspot_api_base="https://api.test",
        hubspot_token_url="https://api.test/oauth/v1/token",
        hubspot_token_info_url="https://api.test/oauth/v1/access-tokens",
    )


@pytest.fixture
def store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()
