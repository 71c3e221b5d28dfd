"""Integration tests for API endpoints"""

import pytest
from datetime import timedelta
from unittest.mock import patch
from fastapi.testclient import TestClient

from rental_lifecycle.api import main as api_main
from rental_lifecycle.domain.exceptions import LoadError
from rental_lifecycle.infrastructure.database.models import (
    LeaseContractRow,
    NotificationRow,
    PropertyRow,
    RentalApplicationRow,
)
from rental_lifecycle.infrastructure.database.repositories import SqlEntityStore

pytestmark = pytest.mark.integration

SUMMARY_KEYS = {
    "success",
    "timestamp",
    "scanned",
    "expired",
    "warningsSent",
    "overdueMarked",
    "autoProcessed",
    "notificationsDispatched",
    "conflicts",
    "errors",
}


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "lifecycle_runs_total" in response.text


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_run_on_empty_store(client: TestClient):
    response = client.post("/v1/automation/run")

    assert response.status_code == 200
    data = response.json()
    assert SUMMARY_KEYS <= set(data)
    assert data["success"] is True
    assert data["scanned"] == 0
    assert data["timestamp"].startswith("2026-03-01T12:00:00")
    assert "X-Request-ID" in response.headers


def test_run_applies_transitions_and_writes_inbox(client, db, property_row, lease_row, application_row):
    """Test one run expires, warns and flags overdue, then a second run changes nothing"""
    rented = property_row()
    other = property_row()
    expired_lease = lease_row(rented, days_remaining=-1, sent=[60, 30, 15, 7, 1], status="expiring")
    warned_lease = lease_row(other, days_remaining=25, sent=[60])
    application = application_row(other, age=timedelta(days=8))

    response = client.post("/v1/automation/run")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["scanned"] == 3
    assert data["expired"] == 1
    assert data["warningsSent"] == 1
    assert data["overdueMarked"] == 1
    assert data["autoProcessed"] == 0
    assert data["notificationsDispatched"] == 5  # expiry and warning to both parties, one overdue reminder
    assert data["errors"] == 0

    db.expire_all()
    assert db.get(LeaseContractRow, expired_lease.id).status == "expired"
    assert db.get(PropertyRow, rented.id).status == "available"
    assert db.get(PropertyRow, other.id).status == "rented"
    assert sorted(db.get(LeaseContractRow, warned_lease.id).sent_warning_thresholds) == [30, 60]
    assert db.get(RentalApplicationRow, application.id).overdue is True

    inbox = {(row.user_id, row.type) for row in db.query(NotificationRow).all()}
    assert inbox == {
        ("tenant-1", "lease_expired"),
        ("landlord-1", "lease_expired"),
        ("tenant-1", "lease_expiring_soon"),
        ("landlord-1", "lease_expiring_soon"),
        ("landlord-1", "application_overdue"),
    }

    second = client.post("/v1/automation/run").json()

    assert second["scanned"] == 2
    assert second["expired"] == 0
    assert second["warningsSent"] == 0
    assert second["overdueMarked"] == 0
    assert second["notificationsDispatched"] == 0
    assert db.query(NotificationRow).count() == 5


def test_auto_rejection_through_api(client, db, property_row, application_row):
    prop = property_row()
    application = application_row(prop, age=timedelta(days=10), auto_processing_policy="auto_reject")

    data = client.post("/v1/automation/run").json()

    assert data["overdueMarked"] == 1
    assert data["autoProcessed"] == 1
    db.expire_all()
    stored = db.get(RentalApplicationRow, application.id)
    assert stored.status == "rejected"
    assert stored.decision_actor == "system"
    assert [(row.user_id, row.type) for row in db.query(NotificationRow).all()] == [
        ("applicant-1", "application_rejected")
    ]


def test_load_failure_returns_503_with_summary(client: TestClient):
    with patch.object(SqlEntityStore, "list_active_leases", side_effect=LoadError("database unavailable")):
        response = client.post("/v1/automation/run")

    assert response.status_code == 503
    data = response.json()
    assert SUMMARY_KEYS <= set(data)
    assert data["success"] is False
    assert data["scanned"] == 0
    assert "database unavailable" in data["error"]


def test_run_serves_app_with_configured_address():
    with patch.object(api_main.uvicorn, "run") as serve:
        api_main.run()

    serve.assert_called_once()
    args, kwargs = serve.call_args
    assert args == ("rental_lifecycle.api.main:app",)
    assert kwargs["host"] == api_main.settings.host
    assert kwargs["port"] == api_main.settings.port
