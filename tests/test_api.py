"""
Tests for the REST interface.
"""

import pytest
from fastapi.testclient import TestClient

from price_audit.api import app, get_service
from price_audit.engine.ingestion import ingest
from price_audit.main import AuditService
from tests.factories import raw_extraction


@pytest.fixture
def service(ledger):
    ingest(ledger, raw_extraction("A", [("Widget", 10.0, 1)], date="2024-01-01"), "a.pdf")
    ingest(ledger, raw_extraction("B", [("Widget", 12.0, 1)], date="2024-02-01"), "b.pdf")
    return AuditService(ledger)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_list_invoices_is_enriched(client):
    invoices = client.get("/invoices").json()

    assert [i["invoiceNumber"] for i in invoices] == ["B", "A"]
    assert invoices[0]["status"] == "price_increase"
    assert invoices[0]["items"][0]["priceChange"] == pytest.approx(2.0)
    assert invoices[0]["items"][0]["previousUnitPrice"] == 10.0


def test_accept_pending_variances(client):
    pending = client.get("/variances/pending").json()
    assert len(pending) == 1

    results = client.post("/variances/accept", json=pending).json()
    assert results[0]["action"] == "updated"
    assert results[0]["applied"] is True

    assert client.get("/variances/pending").json() == []
    baselines = client.get("/baselines").json()
    assert baselines[0]["currentPrice"] == 12.0
    assert len(baselines[0]["history"]) == 2


def test_manual_baseline_update(client):
    response = client.put("/baselines/Acme/Widget", json={"price": 11.0})
    assert response.status_code == 200
    assert response.json()["action"] == "updated"

    response = client.put("/baselines/Acme/Widget", json={"price": -1})
    assert response.status_code == 422


def test_toggle_and_delete(client, service):
    invoice_id = service.ledger.invoices[0].id

    assert client.post(f"/invoices/{invoice_id}/hold").json()["isHold"] is True
    paid = client.post(f"/invoices/{invoice_id}/paid").json()
    assert paid["isPaid"] is True and paid["isHold"] is False

    assert client.delete(f"/invoices/{invoice_id}").status_code == 200
    assert client.get(f"/invoices/{invoice_id}").status_code == 404


def test_unknown_invoice_is_404(client):
    assert client.post("/invoices/nope/paid").status_code == 404


def test_export_csv(client):
    response = client.get("/export.csv")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.strip().splitlines()
    assert lines[0] == "Date,Invoice Number,Supplier,Total Amount,GST,Status"
    assert len(lines) == 3


def test_upload_in_mock_mode(client):
    response = client.post(
        "/invoices/upload",
        files=[("files", ("mock.pdf", b"%PDF-1.4", "application/pdf"))],
    )
    assert response.status_code == 200
    [result] = response.json()
    assert result["success"] is True
    assert result["invoiceId"]


def test_stats_and_suppliers(client):
    stats = client.get("/stats").json()
    assert stats["totalCount"] == 2
    assert stats["pendingCount"] == 1

    suppliers = client.get("/suppliers").json()
    assert suppliers[0]["name"] == "Acme"
    assert suppliers[0]["invoiceCount"] == 2
