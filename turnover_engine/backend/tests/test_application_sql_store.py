# backend/tests/test_application_sql_store.py
from __future__ import annotations

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from turnover.db import Base
from turnover.domain.applications.record import ApplicationRecord
from turnover.domain.applications.types import APPROVED, SUBMITTED, ApplicationSubmission
from turnover.errors import ApplicationNotFound
from turnover.models import ApplicationRow  # noqa: F401
from turnover.services.alerts import InMemoryAlertPublisher
from turnover.services.application_service import VacancyApplicationService
from turnover.services.application_store import DuplicateKey, SqlApplicationRepository


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    finally:
        engine.dispose()


def _record(payload, application_id="app-000000000001", key="k1") -> ApplicationRecord:
    return ApplicationRecord(
        application_id=application_id,
        dedupe_key=key,
        status=SUBMITTED,
        submission=ApplicationSubmission.from_payload(payload),
        created_at=datetime(2025, 9, 25, 12, 0, 0),
    )


def test_insert_fetch_roundtrip(session_factory, application_payload):
    repo = SqlApplicationRepository(session_factory)
    rec = _record(application_payload)
    repo.insert(rec)

    got = repo.fetch(rec.application_id)
    assert got == rec
    assert repo.find_by_dedupe_key("k1") == rec
    assert repo.fetch("app-nope") is None


def test_duplicate_dedupe_key_is_rejected(session_factory, application_payload):
    repo = SqlApplicationRepository(session_factory)
    repo.insert(_record(application_payload))
    with pytest.raises(DuplicateKey):
        repo.insert(_record(application_payload, application_id="app-000000000002"))


def test_update_missing_row(session_factory, application_payload):
    repo = SqlApplicationRepository(session_factory)
    with pytest.raises(ApplicationNotFound):
        repo.update(_record(application_payload))


def test_service_evaluation_persists_outcome(session_factory, application_payload):
    svc = VacancyApplicationService(SqlApplicationRepository(session_factory), InMemoryAlertPublisher())
    rec = svc.submit(ApplicationSubmission.from_payload(application_payload))
    assert [r.application_id for r in svc.pending()] == [rec.application_id]

    svc.evaluate(rec.application_id)

    # a fresh repository reads the stored JSON back
    stored = SqlApplicationRepository(session_factory).fetch(rec.application_id)
    assert stored.status == APPROVED
    assert stored.total_score == 65
    assert stored.decision_rationale == "application approved"
    assert [c.factor for c in stored.outcome.components][0] == "rent_to_income"
    assert svc.pending() == []
