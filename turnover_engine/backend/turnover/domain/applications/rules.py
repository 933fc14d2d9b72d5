# backend/turnover/domain/applications/rules.py
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

from .types import (
    CREDIT_SCORE,
    RENT_TO_INCOME,
    RENTAL_HISTORY,
    SECURITY_DEPOSIT_COMPLIANCE,
    VOUCHER_COVERAGE,
    ApplicantProfile,
    ScoreComponent,
)

if TYPE_CHECKING:
    from ...config import Settings


@dataclass(frozen=True)
class EvaluationConfig:
    """Rubric dials. max_rent_to_income_ratio is the disqualifying ceiling (ratio >= it fails)."""

    max_rent_to_income_ratio: float = 0.28
    minimum_credit_score: Optional[int] = 600
    max_evictions: int = 1
    violent_felony_lookback_years: int = 7
    deposit_cap_multiplier: float = 2.0

    @classmethod
    def from_settings(cls, s: "Settings") -> "EvaluationConfig":
        return cls(
            max_rent_to_income_ratio=s.max_rent_to_income_ratio,
            minimum_credit_score=s.minimum_credit_score,
            max_evictions=s.max_evictions,
            violent_felony_lookback_years=s.violent_felony_lookback_years,
            deposit_cap_multiplier=s.deposit_cap_multiplier,
        )


Rule = Callable[[ApplicantProfile, EvaluationConfig], Optional[ScoreComponent]]


def rent_to_income_rule(profile: ApplicantProfile, config: EvaluationConfig) -> Optional[ScoreComponent]:
    ratio = float(profile.factor(RENT_TO_INCOME, 0.0))
    limit = config.max_rent_to_income_ratio
    if ratio < limit:
        return ScoreComponent(RENT_TO_INCOME, 30, f"rent-to-income ratio {ratio:.2f} within policy limit {limit:.2f}")
    return ScoreComponent(RENT_TO_INCOME, -40, f"rent-to-income ratio {ratio:.2f} at or above limit {limit:.2f}")


def credit_score_rule(profile: ApplicantProfile, config: EvaluationConfig) -> Optional[ScoreComponent]:
    minimum = config.minimum_credit_score
    if minimum is None:
        return None
    score = profile.factor(CREDIT_SCORE)
    if score is None:
        return ScoreComponent(CREDIT_SCORE, -10, "missing credit history")
    if score >= minimum:
        return ScoreComponent(CREDIT_SCORE, 20, f"credit score {score} meets minimum {minimum}")
    return ScoreComponent(CREDIT_SCORE, -25, f"credit score {score} below minimum {minimum}")


def rental_history_rule(profile: ApplicantProfile, config: EvaluationConfig) -> Optional[ScoreComponent]:
    evictions = int(profile.factor(RENTAL_HISTORY, 0))
    if evictions == 0:
        return ScoreComponent(RENTAL_HISTORY, 10, "no prior evictions")
    if evictions <= config.max_evictions:
        return ScoreComponent(RENTAL_HISTORY, -10, f"{evictions} eviction(s) within policy")
    return ScoreComponent(RENTAL_HISTORY, -25, f"{evictions} eviction(s) exceeds allowance")


def voucher_rule(profile: ApplicantProfile, config: EvaluationConfig) -> Optional[ScoreComponent]:
    coverage = float(profile.factor(VOUCHER_COVERAGE, 0.0))
    if coverage <= 0:
        return None
    return ScoreComponent(VOUCHER_COVERAGE, 5, f"voucher covers {coverage * 100:.0f}% of rent")


def deposit_rule(profile: ApplicantProfile, config: EvaluationConfig) -> Optional[ScoreComponent]:
    ok = profile.factor(SECURITY_DEPOSIT_COMPLIANCE)
    if ok is None:
        return None
    if ok:
        return ScoreComponent(SECURITY_DEPOSIT_COMPLIANCE, 5, "security deposit within state cap")
    return ScoreComponent(SECURITY_DEPOSIT_COMPLIANCE, -15, "security deposit exceeds state cap")


RULES: tuple[Rule, ...] = (
    rent_to_income_rule,
    credit_score_rule,
    rental_history_rule,
    voucher_rule,
    deposit_rule,
)


def score_profile(
    profile: ApplicantProfile,
    config: EvaluationConfig,
    rules: tuple[Rule, ...] = RULES,
) -> tuple[list[ScoreComponent], int]:
    """Each rule runs independently; total is the plain sum of component points."""
    components = [c for c in (rule(profile, config) for rule in rules) if c is not None]
    return components, sum(c.points for c in components)
