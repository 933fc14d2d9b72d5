# backend/tests/conftest.py
from __future__ import annotations

import copy
from datetime import date

import pytest

from turnover.domain.vacancy.blueprint import standard_blueprint
from turnover.domain.vacancy.instance import VacancyWorkflowInstance
from turnover.domain.vacancy.types import VacancyWindow

VACANCY_START = date(2025, 9, 24)
TARGET_MOVE_IN = date(2025, 10, 8)

BASE_APPLICATION = {
    "applicant_ref": "A-100",
    "contact": {"full_name": "Jordan Lee", "email": "jordan@example.com", "phone": "515-555-0142"},
    "listing": {
        "unit_id": "unit-7",
        "property_code": "DSM-01",
        "listed_rent": 1200.0,
        "deposit_required": 1200.0,
        "state": "IA",
    },
    "household": {"adults": 1, "children": 1, "bedrooms_requested": 2},
    "income": {"gross_monthly_income": 5000.0, "verified_income_sources": ["paystub"]},
    "credit_score": 680,
    "rental_history": [{"property_name": "Elm Court", "paid_on_time": True, "filed_eviction": False}],
    "criminal_history": [],
    "screening": {"accommodations": [], "prohibited_preferences": []},
}


@pytest.fixture()
def window() -> VacancyWindow:
    return VacancyWindow(VACANCY_START, TARGET_MOVE_IN)


@pytest.fixture()
def blueprint():
    return standard_blueprint()


@pytest.fixture()
def instance(blueprint, window) -> VacancyWorkflowInstance:
    return VacancyWorkflowInstance(blueprint, window)


@pytest.fixture()
def application_payload() -> dict:
    return copy.deepcopy(BASE_APPLICATION)
