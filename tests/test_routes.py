"""
HTTP surface tests. Dependencies are overridden with in-memory fakes, so the
app runs without a database, HubSpot, or an AI provider.
"""
from datetime import timedelta

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import FIXED_NOW, FakeRecordSource, InMemoryCredentialStore, prop, rec
from helpers import dependencies as deps
from helpers.errors import GenerationFailed, UpstreamFetchFailed
from helpers.hubspot_oauth import HubSpotOAuth
from helpers.token_manager import TokenManager
from main import app

PORTAL = {"X-HubSpot-Portal-Id": "123"}


class StubGenerator:
    def __init__(self, text="  - Fill in phone numbers.  ", fail=False):
        self.text = text
        self.fail = fail
        self.prompts = []

    async def generate(self, prompt):
        self.prompts.append(prompt)
        if self.fail:
            raise GenerationFailed("upstream said no")
        return self.text


@pytest.fixture
def client(settings):
    app.dependency_overrides[deps.get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


def use_source(source):
    app.dependency_overrides[deps.get_record_source] = lambda: source


def test_audit_requires_portal_header(client):
    use_source(FakeRecordSource())
    r = client.get("/api/audit")
    assert r.status_code == 400
    assert r.json() == {"message": "HubSpot Portal ID is missing."}


def test_audit_returns_camel_case_summary(client):
    records = [rec(phone="555")] * 10 + [rec()] * 40
    use_source(FakeRecordSource(properties=[prop("phone", label="Phone")], total=200, records=records))

    r = client.get("/api/audit", params={"objectType": "contacts"}, headers=PORTAL)

    assert r.status_code == 200
    body = r.json()
    assert body["totalRecords"] == 200
    assert body["averageCustomFillRate"] == 20
    assert body["properties"] == [{
        "label": "Phone", "internalName": "phone", "type": "string", "description": "",
        "isCustom": True, "fillRate": 20, "fillCount": 40,
    }]


def test_audit_rejects_unsafe_object_type(client):
    use_source(FakeRecordSource())
    r = client.get("/api/audit", params={"objectType": "../oauth"}, headers=PORTAL)
    assert r.status_code == 400
    assert "message" in r.json()


def test_unknown_installation_asks_for_reinstall(client, settings):
    tm = TokenManager(InMemoryCredentialStore(), HubSpotOAuth(settings))
    app.dependency_overrides[deps.get_token_manager] = lambda: tm

    r = client.get("/api/data-health", headers=PORTAL)

    assert r.status_code == 404
    assert "reinstall" in r.json()["message"]


def test_data_health(client):
    use_source(FakeRecordSource(
        counts={"contacts": 5, "companies": 2},
        samples={"contacts": [rec(email="a"), rec(email="A")], "companies": []},
    ))
    r = client.get("/api/data-health", headers=PORTAL)
    assert r.json() == {
        "orphanedContacts": 5, "emptyCompanies": 2,
        "contactDuplicatesInSample": 1, "companyDuplicatesInSample": 0,
    }


def test_stale_reports_and_inactive_workflows(client):
    use_source(FakeRecordSource(
        reports=[{"id": 1, "name": "Old", "updatedAt": "2020-05-05T00:00:00Z"}],
        workflows=[{"id": 2, "name": "Off", "enabled": False, "updatedAt": "2026-01-01T00:00:00Z"}],
    ))
    assert client.get("/api/stale-reports", headers=PORTAL).json() == {
        "staleReports": [{"name": "Old", "id": "1", "updatedAt": "2020-05-05"}]
    }
    assert client.get("/api/inactive-workflows", headers=PORTAL).json() == {
        "inactiveWorkflows": [{"name": "Off", "id": "2", "updatedAt": "2026-01-01"}]
    }


def test_full_scan_failure_surfaces_as_error(client):
    class Failing(FakeRecordSource):
        async def list_reports(self):
            raise UpstreamFetchFailed("Failed to fetch reports.")

    use_source(Failing())
    r = client.get("/api/stale-reports", headers=PORTAL)
    assert r.status_code == 502
    assert r.json() == {"message": "Failed to fetch reports."}


def test_generate_description_trims(client):
    gen = StubGenerator()
    app.dependency_overrides[deps.get_text_generator] = lambda: gen

    r = client.post("/api/generate-description",
                    json={"label": "Phone", "internalName": "phone", "type": "string"})

    assert r.json() == {"description": "- Fill in phone numbers."}
    assert '"phone"' in gen.prompts[0]


def test_generate_recommendations_validation_and_failure(client):
    app.dependency_overrides[deps.get_text_generator] = lambda: StubGenerator(fail=True)

    missing = client.post("/api/generate-recommendations", json={"objectType": "contacts"})
    assert missing.status_code == 400

    failed = client.post("/api/generate-recommendations",
                         json={"summary": {"totalRecords": 1}, "objectType": "contacts"})
    assert failed.status_code == 502
    assert failed.json() == {"message": "Failed to generate AI recommendations."}


def test_ai_endpoints_without_provider(client):
    r = client.post("/api/generate-description",
                    json={"label": "Phone", "internalName": "phone", "type": "string"})
    assert r.status_code == 500
    assert "not configured" in r.json()["message"]


def test_install_redirects_to_hubspot(client):
    r = client.get("/api/install", follow_redirects=False)
    assert r.status_code in (302, 307)
    assert r.headers["location"].startswith("https://app.hubspot.com/oauth/authorize?")


def test_oauth_callback_saves_installation(client, settings):
    def handler(request):
        if request.url.path == "/oauth/v1/token":
            return httpx.Response(200, json={"access_token": "acc", "refresh_token": "ref", "expires_in": 1800})
        if request.url.path == "/oauth/v1/access-tokens/acc":
            return httpx.Response(200, json={"hub_id": 4242})
        return httpx.Response(404)

    oauth = HubSpotOAuth(settings, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    store = InMemoryCredentialStore()
    tm = TokenManager(store, oauth, clock=lambda: FIXED_NOW)
    app.dependency_overrides[deps.get_oauth] = lambda: oauth
    app.dependency_overrides[deps.get_token_manager] = lambda: tm

    r = client.get("/api/oauth-callback", params={"code": "abc"})

    assert r.status_code == 200
    assert "Success" in r.text
    row = store.rows["4242"]
    assert (row.access_token, row.refresh_token) == ("acc", "ref")
    assert row.expires_at == FIXED_NOW + timedelta(seconds=1800)


def test_oauth_callback_without_code(client):
    r = client.get("/api/oauth-callback")
    assert r.status_code == 400
