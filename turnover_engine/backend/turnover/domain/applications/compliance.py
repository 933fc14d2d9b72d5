# backend/turnover/domain/applications/compliance.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from ...errors import ComplianceViolation, IncompleteApplication
from .rules import EvaluationConfig
from .types import (
    CREDIT_SCORE,
    CRIMINAL_HISTORY_WINDOW,
    PROHIBITED_PRACTICES,
    RENT_TO_INCOME,
    RENTAL_HISTORY,
    SECURITY_DEPOSIT_COMPLIANCE,
    VOUCHER_COVERAGE,
    ApplicantProfile,
    ApplicationSubmission,
    HardFail,
)

DEFAULT_DEPOSIT_CAP_MULTIPLIER = 2.0


def max_deposit_for(listed_rent: float, multiplier: float) -> float:
    """Deposit ceiling for a listing; non-finite or non-positive multipliers fall back to 2x rent."""
    if not listed_rent or listed_rent <= 0:
        return 0.0
    m = multiplier if (math.isfinite(multiplier) and multiplier > 0) else DEFAULT_DEPOSIT_CAP_MULTIPLIER
    return float(math.ceil(listed_rent * m))


def identity_missing(sub: ApplicationSubmission) -> list[str]:
    missing: list[str] = []
    if not sub.applicant_ref:
        missing.append("applicant_ref")
    if not sub.listing.unit_id:
        missing.append("listing.unit_id")
    return missing


def missing_fields(sub: ApplicationSubmission) -> list[str]:
    """Inputs the rubric cannot run without."""
    missing = identity_missing(sub)
    if sub.listing.listed_rent is None or sub.listing.listed_rent <= 0:
        missing.append("listing.listed_rent")
    if sub.income.gross_monthly_income is None or sub.income.gross_monthly_income <= 0:
        missing.append("income.gross_monthly_income")
    if not sub.income.verified_income_sources:
        missing.append("income.verified_income_sources")
    if sub.household.size <= 0:
        missing.append("household")
    return missing


def require_identity(sub: ApplicationSubmission) -> None:
    missing = identity_missing(sub)
    if missing:
        raise IncompleteApplication(tuple(missing))


def require_complete(sub: ApplicationSubmission) -> None:
    missing = missing_fields(sub)
    if missing:
        raise IncompleteApplication(tuple(missing))


@dataclass(frozen=True)
class ComplianceGuard:
    """
    First gate for every application.

    - rejects submissions that captured a prohibited screening practice or a
      protected characteristic (ComplianceViolation)
    - derives the lawful factors the scoring rules are allowed to read
    - raises hard-fail flags (rent-to-income at/above limit, deposit over cap)
      that the decision policy must honor regardless of score
    """

    config: EvaluationConfig

    def screen_practices(self, sub: ApplicationSubmission) -> None:
        if sub.screening.protected_fields:
            fields = ", ".join(sub.screening.protected_fields)
            raise ComplianceViolation(
                practice="protected_class_inquiry",
                message=f"submission captured protected characteristic(s): {fields}",
            )
        for practice in sub.screening.prohibited_preferences:
            key = practice.strip().lower()
            label = PROHIBITED_PRACTICES.get(key, key.replace("_", " "))
            raise ComplianceViolation(
                practice=key,
                message=f"submission captured prohibited screening practice: {label}",
            )

    def profile_from_submission(self, sub: ApplicationSubmission) -> ApplicantProfile:
        self.screen_practices(sub)
        require_complete(sub)

        rent = float(sub.listing.listed_rent or 0.0)
        income = float(sub.income.gross_monthly_income or 0.0)
        ratio = rent / income

        factors: dict[str, Any] = {RENT_TO_INCOME: ratio}
        hard_fails: list[HardFail] = []

        if ratio >= self.config.max_rent_to_income_ratio:
            hard_fails.append(
                HardFail(
                    factor=RENT_TO_INCOME,
                    message=(
                        f"denied for insufficient income (rent-to-income ratio {ratio:.2f} "
                        f"at or above limit {self.config.max_rent_to_income_ratio:.2f})"
                    ),
                )
            )

        if sub.credit_score is not None:
            factors[CREDIT_SCORE] = sub.credit_score

        factors[RENTAL_HISTORY] = sum(1 for r in sub.rental_history if r.filed_eviction)

        if sub.criminal_history:
            factors[CRIMINAL_HISTORY_WINDOW] = min(c.years_since for c in sub.criminal_history)

        voucher = sub.income.housing_voucher_amount or 0.0
        factors[VOUCHER_COVERAGE] = (voucher / rent) if rent > 0 else 0.0

        cap = max_deposit_for(rent, self.config.deposit_cap_multiplier)
        deposit_ok = sub.listing.deposit_required <= cap
        factors[SECURITY_DEPOSIT_COMPLIANCE] = deposit_ok
        if not deposit_ok:
            hard_fails.append(
                HardFail(
                    factor=SECURITY_DEPOSIT_COMPLIANCE,
                    message=(
                        f"denied for security deposit above state cap "
                        f"(cap {cap:.2f}, required {sub.listing.deposit_required:.2f})"
                    ),
                )
            )

        return ApplicantProfile(
            lawful_factors=factors,
            hard_fails=tuple(hard_fails),
            listing=sub.listing,
            household=sub.household,
            income=sub.income,
            credit_score=sub.credit_score,
            rental_history=sub.rental_history,
            criminal_history=sub.criminal_history,
            accommodations=sub.screening.accommodations,
        )
