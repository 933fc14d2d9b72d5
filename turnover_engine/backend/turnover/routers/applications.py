# backend/turnover/routers/applications.py
from __future__ import annotations

from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from ..config import settings
from ..db import SessionLocal, init_db
from ..domain.applications.rules import EvaluationConfig
from ..domain.applications.types import ApplicationSubmission
from ..errors import ApplicationNotFound, ComplianceViolation, IncompleteApplication
from ..schemas import ApplicationPublicOut, ApplicationSubmissionIn
from ..services.alerts import LoggingAlertPublisher
from ..services.application_service import VacancyApplicationService
from ..services.application_store import InMemoryApplicationRepository, SqlApplicationRepository

router = APIRouter(prefix="/vacancy/applications", tags=["applications"])


@lru_cache(maxsize=1)
def get_application_service() -> VacancyApplicationService:
    """Process-wide service; tests swap it out through app.dependency_overrides."""
    store = (settings.application_store or "memory").strip().lower()
    if store == "sql":
        init_db()
        repository = SqlApplicationRepository(SessionLocal)
    else:
        repository = InMemoryApplicationRepository()
    return VacancyApplicationService(
        repository,
        LoggingAlertPublisher(),
        EvaluationConfig.from_settings(settings),
    )


@router.post("", response_model=ApplicationPublicOut, status_code=202)
def submit_application(
    payload: ApplicationSubmissionIn,
    response: Response,
    svc: VacancyApplicationService = Depends(get_application_service),
):
    submission = ApplicationSubmission.from_payload(payload.to_payload())
    try:
        record, created = svc.submit_or_get(submission)
    except (IncompleteApplication, ComplianceViolation) as e:
        raise HTTPException(status_code=422, detail=str(e))

    if not created:
        response.status_code = 200
    return record.public_view()


@router.get("/pending", response_model=list[ApplicationPublicOut])
def list_pending(
    limit: int = Query(default=100, ge=1, le=500),
    svc: VacancyApplicationService = Depends(get_application_service),
):
    return [r.public_view() for r in svc.pending(limit)]


@router.get("/{application_id}", response_model=ApplicationPublicOut)
def get_application(
    application_id: str,
    svc: VacancyApplicationService = Depends(get_application_service),
):
    try:
        return svc.public_view(application_id)
    except ApplicationNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/{application_id}", response_model=ApplicationPublicOut)
def amend_application(
    application_id: str,
    payload: ApplicationSubmissionIn,
    svc: VacancyApplicationService = Depends(get_application_service),
):
    submission = ApplicationSubmission.from_payload(payload.to_payload())
    try:
        return svc.amend(application_id, submission).public_view()
    except ApplicationNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (ComplianceViolation, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/{application_id}/evaluate", response_model=ApplicationPublicOut)
def evaluate_application(
    application_id: str,
    svc: VacancyApplicationService = Depends(get_application_service),
):
    try:
        return svc.evaluate(application_id).public_view()
    except ApplicationNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except IncompleteApplication as e:
        raise HTTPException(status_code=422, detail=str(e))
