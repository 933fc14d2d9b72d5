# backend/turnover/domain/applications/policy.py
from __future__ import annotations

from typing import Optional

from .rules import EvaluationConfig
from .types import (
    OUTCOME_APPROVED,
    OUTCOME_DENIED,
    OUTCOME_PENDING,
    RENTAL_HISTORY,
    VIOLENT_FELONY,
    ApplicantProfile,
    Decision,
)


def _recent_violent_felony(profile: ApplicantProfile, config: EvaluationConfig) -> Optional[str]:
    for rec in profile.criminal_history:
        if rec.classification == VIOLENT_FELONY and rec.years_since <= config.violent_felony_lookback_years:
            return rec.description or "violent felony"
    return None


def decide(profile: ApplicantProfile, total_score: int, config: EvaluationConfig) -> Decision:
    """
    Order of precedence:
      1) hard compliance fails -> denied (first flag names the factor and values)
      2) recent violent felony inside the lookback -> pending (manual review)
      3) credit below minimum or missing -> denied
      4) evictions beyond allowance -> denied
      5) otherwise approved
    """
    if profile.hard_fails:
        return Decision(
            outcome=OUTCOME_DENIED,
            rationale=profile.hard_fails[0].message,
            total_score=total_score,
            hard_fails=profile.hard_fails,
        )

    detail = _recent_violent_felony(profile, config)
    if detail is not None:
        return Decision(
            outcome=OUTCOME_PENDING,
            rationale=(
                f"manual review required: violent felony within "
                f"{config.violent_felony_lookback_years} years ({detail})"
            ),
            total_score=total_score,
        )

    minimum = config.minimum_credit_score
    if minimum is not None:
        if profile.credit_score is None:
            return Decision(OUTCOME_DENIED, "denied for adverse credit history (no credit score on file)", total_score)
        if profile.credit_score < minimum:
            return Decision(
                OUTCOME_DENIED,
                f"denied for adverse credit history (credit score {profile.credit_score} below minimum {minimum})",
                total_score,
            )

    evictions = int(profile.factor(RENTAL_HISTORY, 0))
    if evictions > config.max_evictions:
        return Decision(
            OUTCOME_DENIED,
            f"denied for {evictions} eviction(s) (allowance {config.max_evictions})",
            total_score,
        )

    return Decision(OUTCOME_APPROVED, "application approved", total_score)
