# backend/turnover/domain/applications/engine.py
from __future__ import annotations

from dataclasses import dataclass, field

from .compliance import ComplianceGuard
from .policy import decide
from .rules import EvaluationConfig, score_profile
from .types import ApplicantProfile, ApplicationSubmission, EvaluationOutcome


@dataclass(frozen=True)
class EvaluationEngine:
    """Stateless: guard -> rules -> policy. Safe to share across callers."""

    config: EvaluationConfig = field(default_factory=EvaluationConfig)

    @property
    def guard(self) -> ComplianceGuard:
        return ComplianceGuard(self.config)

    def score(self, profile: ApplicantProfile) -> EvaluationOutcome:
        components, total = score_profile(profile, self.config)
        decision = decide(profile, total, self.config)
        return EvaluationOutcome(components=tuple(components), total_score=total, decision=decision)

    def evaluate(self, submission: ApplicationSubmission) -> EvaluationOutcome:
        return self.score(self.guard.profile_from_submission(submission))
