# backend/turnover/routers/vacancy.py
from __future__ import annotations

from fastapi import APIRouter, HTTPException

from ..config import settings
from ..domain.applications.rules import EvaluationConfig
from ..domain.vacancy.blueprint import standard_blueprint
from ..domain.vacancy.insights import ReadinessPolicy
from ..errors import (
    DegenerateBlueprint,
    InvalidTransition,
    MediaGatewayError,
    ProspectEvaluationError,
    TaskNotFound,
    ValidationError,
)
from ..schemas import MarketingPlanOut, MarketingPreviewRequest, VacancyReportOut, VacancyReportRequest
from ..services.marketing_service import preview_listing
from ..services.vacancy_service import build_vacancy_report

router = APIRouter(prefix="/vacancy", tags=["vacancy"])


@router.get("/blueprint", response_model=dict)
def get_blueprint():
    return standard_blueprint().as_dict()


@router.post("/report", response_model=VacancyReportOut)
def vacancy_report(payload: VacancyReportRequest):
    try:
        result = build_vacancy_report(
            payload.vacancy_start,
            payload.target_move_in,
            today=payload.today,
            apollo_csv=payload.apollo_csv,
            policy=ReadinessPolicy.from_settings(settings),
            task_updates=[(u.task_key, u.status, u.completed_on) for u in payload.task_updates],
        )
    except TaskNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (ValidationError, InvalidTransition, DegenerateBlueprint) as e:
        raise HTTPException(status_code=422, detail=str(e))

    return result.as_dict(include_tasks=payload.include_tasks)


@router.post("/marketing/preview", response_model=MarketingPlanOut)
def marketing_preview(payload: MarketingPreviewRequest):
    try:
        plan, _ = preview_listing(
            payload.listing.model_dump(),
            media=[m.model_dump() for m in payload.media],
            prospects=[(p.name, p.application.to_payload()) for p in payload.prospects],
            config=EvaluationConfig.from_settings(settings),
        )
    except ProspectEvaluationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except MediaGatewayError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return plan.as_dict()
