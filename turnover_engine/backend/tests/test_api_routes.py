# backend/tests/test_api_routes.py
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from turnover.config import settings
from turnover.main import create_app
from turnover.routers.applications import get_application_service
from turnover.services.alerts import InMemoryAlertPublisher
from turnover.services.application_service import VacancyApplicationService
from turnover.services.application_store import InMemoryApplicationRepository

REPORT_REQUEST = {"vacancy_start": "2025-09-24", "target_move_in": "2025-10-08", "today": "2025-09-28"}


@pytest.fixture()
def alerts():
    return InMemoryAlertPublisher()


@pytest.fixture()
def client(alerts):
    app = create_app()
    svc = VacancyApplicationService(InMemoryApplicationRepository(), alerts)
    app.dependency_overrides[get_application_service] = lambda: svc
    with TestClient(app) as c:
        yield c


def test_health_echoes_request_id(client):
    r = client.get("/api/health", headers={"X-Request-ID": "rid-123"})
    assert r.status_code == 200
    assert r.json()["ok"] is True
    assert r.headers["X-Request-ID"] == "rid-123"


def test_unsafe_request_id_is_replaced(client):
    r = client.get("/api/health", headers={"X-Request-ID": "bad id <script>"})
    assert r.headers["X-Request-ID"] != "bad id <script>"
    assert len(r.headers["X-Request-ID"]) == 32


def test_blueprint_endpoint(client):
    body = client.get("/api/vacancy/blueprint").json()
    assert body["version"] == "2025-09.v1"
    assert len(body["templates"]) == 10


def test_vacancy_report(client):
    r = client.post("/api/vacancy/report", json=REPORT_REQUEST)
    assert r.status_code == 200
    body = r.json()

    assert body["data_source"] == "standard"
    assert body["today"] == "2025-09-28"
    assert body["insights"]["readiness_score"] == 0
    assert body["insights"]["focus_stage"] == "Lease Signing & Move-In"
    assert len(body["overdue_tasks"]) == 5
    assert body["tasks"] is None


def test_vacancy_report_with_tasks_and_updates(client):
    payload = dict(
        REPORT_REQUEST,
        include_tasks=True,
        task_updates=[{"task_key": "marketing_publish_listing", "status": "complete", "completed_on": "2025-09-24"}],
    )
    body = client.post("/api/vacancy/report", json=payload).json()

    assert len(body["tasks"]) == 10
    publish = next(t for t in body["tasks"] if t["key"] == "marketing_publish_listing")
    assert publish["completed"] is True
    assert body["insights"]["readiness_score"] == 10


def test_vacancy_report_from_apollo_export(client):
    csv_text = "Name,Status,Completed At\nCreate and Publish Listing,Done,2025-09-24\nMystery Task,Done,2025-09-24\n"
    body = client.post("/api/vacancy/report", json=dict(REPORT_REQUEST, apollo_csv=csv_text)).json()

    assert body["data_source"] == "apollo"
    assert body["insights"]["readiness_score"] == 10
    assert [d["kind"] for d in body["import_diagnostics"]] == ["unmapped_row"]
    assert body["rejected_patches"] == []


def test_vacancy_report_rejects_inverted_window(client):
    r = client.post("/api/vacancy/report", json={"vacancy_start": "2025-10-08", "target_move_in": "2025-09-24"})
    assert r.status_code == 422
    assert "before vacancy_start" in r.json()["detail"]


def test_vacancy_report_rejects_unreadable_apollo_export(client):
    csv_text = "Name,Notes\nCreate and Publish Listing," + "x" * 200_000 + "\n"
    r = client.post("/api/vacancy/report", json=dict(REPORT_REQUEST, apollo_csv=csv_text))
    assert r.status_code == 422
    assert "could not be read" in r.json()["detail"]


def test_vacancy_report_rejects_malformed_date(client):
    r = client.post("/api/vacancy/report", json={"vacancy_start": "24/09/2025", "target_move_in": "2025-10-08"})
    assert r.status_code == 422


def test_vacancy_report_rejects_illegal_task_update(client):
    bad = dict(REPORT_REQUEST, task_updates=[{"task_key": "marketing_publish_listing", "status": "complete"}])
    assert client.post("/api/vacancy/report", json=bad).status_code == 422

    unknown = dict(REPORT_REQUEST, task_updates=[{"task_key": "nope", "status": "in_progress"}])
    assert client.post("/api/vacancy/report", json=unknown).status_code == 404


def test_application_submit_evaluate_flow(client, alerts, application_payload):
    r = client.post("/api/vacancy/applications", json=application_payload)
    assert r.status_code == 202
    created = r.json()
    assert set(created) == {"application_id", "status", "decision_rationale", "total_score"}
    assert created["status"] == "submitted"

    again = client.post("/api/vacancy/applications", json=application_payload)
    assert again.status_code == 200
    assert again.json()["application_id"] == created["application_id"]

    pending = client.get("/api/vacancy/applications/pending").json()
    assert [p["application_id"] for p in pending] == [created["application_id"]]

    app_id = created["application_id"]
    done = client.post(f"/api/vacancy/applications/{app_id}/evaluate").json()
    assert done == {
        "application_id": app_id,
        "status": "approved",
        "decision_rationale": "application approved",
        "total_score": 65,
    }
    assert client.get(f"/api/vacancy/applications/{app_id}").json() == done
    assert [a.template for a in alerts.alerts] == ["applicant_approved"]


def test_application_with_protected_field_is_rejected(client, application_payload):
    application_payload["disability"] = "none"
    r = client.post("/api/vacancy/applications", json=application_payload)
    assert r.status_code == 422
    assert "disability" in r.json()["detail"]


def test_application_without_identity_is_rejected(client, application_payload):
    application_payload["listing"]["unit_id"] = ""
    r = client.post("/api/vacancy/applications", json=application_payload)
    assert r.status_code == 422
    assert "listing.unit_id" in r.json()["detail"]


def test_incomplete_application_can_be_amended(client, application_payload):
    partial = dict(application_payload, income={})
    app_id = client.post("/api/vacancy/applications", json=partial).json()["application_id"]

    r = client.post(f"/api/vacancy/applications/{app_id}/evaluate")
    assert r.status_code == 422
    assert "income.gross_monthly_income" in r.json()["detail"]

    assert client.put(f"/api/vacancy/applications/{app_id}", json=application_payload).status_code == 200
    assert client.post(f"/api/vacancy/applications/{app_id}/evaluate").json()["status"] == "approved"


def test_unknown_application_is_404(client):
    assert client.get("/api/vacancy/applications/app-missing").status_code == 404
    assert client.post("/api/vacancy/applications/app-missing/evaluate").status_code == 404


def test_default_service_is_a_memory_backed_singleton(monkeypatch):
    monkeypatch.setattr(settings, "application_store", "memory")
    get_application_service.cache_clear()
    try:
        svc = get_application_service()
        assert isinstance(svc.repository, InMemoryApplicationRepository)
        assert get_application_service() is svc
        assert svc.engine.config.max_rent_to_income_ratio == settings.max_rent_to_income_ratio
    finally:
        get_application_service.cache_clear()


MARKETING_LISTING = {
    "unit_id": "A-201",
    "property_name": "Apollo Apartments",
    "address": "123 Main St, Des Moines, IA",
    "bedrooms": 2,
    "bathrooms": 1.5,
    "square_feet": 940,
    "rent": 1200,
    "available_on": "2025-10-01",
}


def test_marketing_preview_builds_a_plan(client, application_payload):
    body = {
        "listing": MARKETING_LISTING,
        "media": [{"file_id": "photo-1", "name": "kitchen.jpg", "mime_type": "image/jpeg"}],
        "prospects": [{"name": "Sample household", "application": application_payload}],
    }
    r = client.post("/api/vacancy/marketing/preview", json=body)
    assert r.status_code == 200
    plan = r.json()

    assert plan["document_id"] == "doc-1"
    assert plan["missing_photos"] is False
    assert [p["file_id"] for p in plan["selected_photos"]] == ["photo-1"]
    assert plan["description"].startswith("Apollo Apartments A-201, available October 01, 2025")
    [outcome] = plan["prospect_outcomes"]
    assert outcome["decision"] == "approved"
    assert outcome["total_score"] == 65


def test_marketing_preview_rejects_prospect_with_protected_data(client, application_payload):
    application_payload["religion"] = "any"
    body = {"listing": MARKETING_LISTING, "prospects": [{"name": "Walk-in", "application": application_payload}]}
    r = client.post("/api/vacancy/marketing/preview", json=body)
    assert r.status_code == 422
    assert "Walk-in" in r.json()["detail"]
