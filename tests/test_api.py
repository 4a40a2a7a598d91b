# tests/test_api.py
import pytest
from fastapi.testclient import TestClient

from api.main import app
from services.airtable_service import AirtableError
from services.dashboard_service import DashboardService
from tests.helpers import NOW, engagement


class FakeAirtable:
    def __init__(self, tables=None, error=None):
        self.tables = tables or {}
        self.error = error

    async def fetch_all(self):
        if self.error:
            raise self.error
        return self.tables


@pytest.fixture
def client_for():
    def _make(airtable):
        app.state.dashboard = DashboardService(airtable, None)
        return TestClient(app)

    yield _make
    app.state.dashboard = None


def test_health(client_for):
    with client_for(FakeAirtable()) as client:
        r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "stripe_configured": False}


def test_metrics_snapshot(client_for):
    airtable = FakeAirtable({"engagements": [engagement("Quote Sent", days_ago=5, Quote_Amount=500)]})
    with client_for(airtable) as client:
        r = client.get("/dashboard/metrics", params={"now": NOW.isoformat()})
    assert r.status_code == 200
    body = r.json()
    assert body["stripe_available"] is False
    assert body["metrics"]["kpis"]["total_leads"] == 1
    assert body["metrics"]["attention"][0]["kind"] == "stale_quote"
    assert body["metrics"]["sales_activity"]["quotes_out"]["month"] == 1


def test_naive_now_is_rejected(client_for):
    with client_for(FakeAirtable()) as client:
        r = client.get("/dashboard/metrics", params={"now": "2026-10-14T12:00:00"})
    assert r.status_code == 400


def test_garbage_now_is_rejected(client_for):
    with client_for(FakeAirtable()) as client:
        r = client.get("/dashboard/metrics", params={"now": "yesterday-ish"})
    assert r.status_code == 400


def test_airtable_failure_is_bad_gateway(client_for):
    with client_for(FakeAirtable(error=AirtableError("Airtable Jobs returned 401"))) as client:
        r = client.get("/dashboard/metrics")
    assert r.status_code == 502
