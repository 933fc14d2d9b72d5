# backend/tests/test_application_service_lifecycle.py
from __future__ import annotations

import pytest

from turnover.domain.applications.types import (
    APPROVED,
    DENIED,
    SUBMITTED,
    UNDER_REVIEW,
    ApplicationSubmission,
)
from turnover.domain.fingerprint import fingerprint
from turnover.errors import (
    ApplicationNotFound,
    ComplianceViolation,
    DuplicateApplication,
    IncompleteApplication,
)
from turnover.services.alerts import InMemoryAlertPublisher
from turnover.services.application_service import VacancyApplicationService, dedupe_key_for
from turnover.services.application_store import InMemoryApplicationRepository


@pytest.fixture()
def alerts():
    return InMemoryAlertPublisher()


@pytest.fixture()
def service(alerts):
    return VacancyApplicationService(InMemoryApplicationRepository(), alerts)


def _sub(payload):
    return ApplicationSubmission.from_payload(payload)


def test_submit_stores_a_submitted_record(service, application_payload):
    rec = service.submit(_sub(application_payload))

    assert rec.application_id.startswith("app-")
    assert rec.status == SUBMITTED
    assert service.public_view(rec.application_id) == {
        "application_id": rec.application_id,
        "status": "submitted",
        "decision_rationale": "pending evaluation",
        "total_score": None,
    }
    assert [r.application_id for r in service.pending()] == [rec.application_id]


def test_duplicate_submission_returns_the_existing_record(service, application_payload):
    first = service.submit(_sub(application_payload))

    with pytest.raises(DuplicateApplication) as ei:
        service.submit(_sub(application_payload))
    assert ei.value.application_id == first.application_id

    again, created = service.submit_or_get(_sub(application_payload))
    assert created is False
    assert again.application_id == first.application_id
    assert len(service.pending()) == 1


def test_dedupe_key_ignores_case_and_whitespace(application_payload):
    a = _sub(application_payload)
    application_payload["applicant_ref"] = "  a-100 "
    application_payload["listing"]["unit_id"] = "UNIT-7"
    assert dedupe_key_for(a) == dedupe_key_for(_sub(application_payload))


def test_missing_identity_is_rejected_before_storage(service, application_payload):
    application_payload["applicant_ref"] = ""
    with pytest.raises(IncompleteApplication) as ei:
        service.submit(_sub(application_payload))
    assert ei.value.missing == ("applicant_ref",)
    assert service.pending() == []


def test_prohibited_practice_is_rejected_before_storage(service, application_payload):
    application_payload["religion"] = "n/a"
    with pytest.raises(ComplianceViolation):
        service.submit(_sub(application_payload))
    assert service.pending() == []


def test_evaluate_approves_and_publishes_alert(service, alerts, application_payload):
    rec = service.submit(_sub(application_payload))

    done = service.evaluate(rec.application_id)

    assert done.status == APPROVED
    assert done.total_score == 65
    assert done.evaluated_at is not None
    assert service.pending() == []
    assert [(a.template, a.application_id) for a in alerts.alerts] == [
        ("applicant_approved", rec.application_id)
    ]
    assert alerts.alerts[0].details == {"decision": "approved", "status": "approved", "unit_id": "unit-7"}


def test_evaluate_denial_at_threshold(service, alerts, application_payload):
    application_payload["listing"]["listed_rent"] = 1400.0
    rec = service.submit(_sub(application_payload))

    view = service.evaluate(rec.application_id).public_view()

    assert view == {
        "application_id": rec.application_id,
        "status": DENIED,
        "decision_rationale": "denied for insufficient income (rent-to-income ratio 0.28 at or above limit 0.28)",
        "total_score": -5,
    }
    assert alerts.alerts[0].template == "applicant_denied"


def test_manual_review_alert(service, alerts, application_payload):
    application_payload["criminal_history"] = [{"classification": "violent_felony", "years_since": 2}]
    rec = service.submit(_sub(application_payload))

    assert service.evaluate(rec.application_id).status == UNDER_REVIEW
    assert alerts.alerts[0].template == "applicant_manual_review"


def test_evaluate_is_idempotent(service, alerts, application_payload):
    rec = service.submit(_sub(application_payload))
    first = service.evaluate(rec.application_id)
    second = service.evaluate(rec.application_id)

    assert second == first
    assert len(alerts.alerts) == 1


def test_incomplete_evaluation_leaves_record_submitted(service, alerts, application_payload):
    application_payload["income"] = {}
    rec = service.submit(_sub(application_payload))

    with pytest.raises(IncompleteApplication):
        service.evaluate(rec.application_id)

    assert service.get(rec.application_id).status == SUBMITTED
    assert alerts.alerts == []


def test_amend_fills_missing_fields_then_evaluates(service, application_payload):
    complete = dict(application_payload)
    application_payload = dict(application_payload, income={})
    rec = service.submit(_sub(application_payload))

    service.amend(rec.application_id, _sub(complete))

    assert service.evaluate(rec.application_id).status == APPROVED


def test_amend_cannot_change_identity(service, application_payload):
    rec = service.submit(_sub(application_payload))
    other = dict(application_payload, applicant_ref="B-200")
    with pytest.raises(ValueError):
        service.amend(rec.application_id, _sub(other))


def test_unknown_application(service):
    with pytest.raises(ApplicationNotFound):
        service.evaluate("app-missing")


def test_redacted_view_masks_contact_details(service, application_payload):
    rec = service.evaluate(service.submit(_sub(application_payload)).application_id)
    red = rec.redacted()

    assert red["contact"] == {"full_name": "J. L.", "email": "j***@example.com", "phone": "***-***-0142"}
    assert len(red["components"]) == 4
    assert red["decision"]["outcome"] == "approved"
    assert "jordan@example.com" not in str(red)


def test_dedupe_keys_are_namespaced():
    assert fingerprint("a", "x") != fingerprint("b", "x")
    assert fingerprint("a", "  Unit  7 ") == fingerprint("a", "unit 7")
    assert len(fingerprint("a", None)) == 64
