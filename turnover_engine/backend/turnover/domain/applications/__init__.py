# backend/turnover/domain/applications/__init__.py
from .compliance import ComplianceGuard, missing_fields, require_complete
from .engine import EvaluationEngine
from .record import ApplicationRecord
from .rules import EvaluationConfig, score_profile
from .types import ApplicationSubmission, Decision, EvaluationOutcome, ScoreComponent

__all__ = [
    "ApplicationRecord",
    "ApplicationSubmission",
    "ComplianceGuard",
    "Decision",
    "EvaluationConfig",
    "EvaluationEngine",
    "EvaluationOutcome",
    "ScoreComponent",
    "missing_fields",
    "require_complete",
    "score_profile",
]
