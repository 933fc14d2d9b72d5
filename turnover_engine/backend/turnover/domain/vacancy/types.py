# backend/turnover/domain/vacancy/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Optional

from ...errors import InvalidTransition, ValidationError

# -----------------------------------------------------------------------------
# Vocabularies
# -----------------------------------------------------------------------------
# Stages and roles are plain string keys. Order is meaningful: reports and
# rollups always iterate in the order declared here.

STAGE_ORDER = [
    "marketing_and_advertising",
    "screening_and_application",
    "lease_signing_and_move_in",
    "handoff",
]

STAGE_LABELS = {
    "marketing_and_advertising": "Marketing & Advertising",
    "screening_and_application": "Screening & Application",
    "lease_signing_and_move_in": "Lease Signing & Move-In",
    "handoff": "Handoff",
}

ROLE_ORDER = [
    "leasing_agent",
    "compliance_coordinator",
    "property_manager",
    "property_manager_accounting",
]

ROLE_LABELS = {
    "leasing_agent": "Leasing Agent",
    "compliance_coordinator": "Compliance Coordinator",
    "property_manager": "Property Manager",
    "property_manager_accounting": "Property Manager (Accounting)",
}

PENDING = "pending"
IN_PROGRESS = "in_progress"
COMPLETE = "complete"
SKIPPED = "skipped"

STATUS_LABELS = {
    PENDING: "Pending",
    IN_PROGRESS: "In Progress",
    COMPLETE: "Complete",
    SKIPPED: "Skipped",
}

# current -> statuses it may move to. Re-stating the current status is allowed.
ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    PENDING: frozenset({PENDING, IN_PROGRESS, COMPLETE, SKIPPED}),
    IN_PROGRESS: frozenset({IN_PROGRESS, COMPLETE, SKIPPED}),
    SKIPPED: frozenset({SKIPPED, COMPLETE}),
    COMPLETE: frozenset({COMPLETE}),
}

SEVERITY_WARNING = "warning"
SEVERITY_BLOCKING = "blocking"

SEVERITY_LABELS = {
    SEVERITY_WARNING: "Warning",
    SEVERITY_BLOCKING: "Blocking",
}

ANCHOR_VACANCY_START = "vacancy_start"
ANCHOR_MOVE_IN = "move_in"


def stage_label(stage: str) -> str:
    return STAGE_LABELS.get(stage, stage)


def role_label(role: str) -> str:
    return ROLE_LABELS.get(role, role)


def stage_rank(stage: str) -> int:
    try:
        return STAGE_ORDER.index(stage)
    except ValueError:
        return len(STAGE_ORDER)


def parse_iso_date(value: Any, field_name: str) -> date:
    """
    Accepts a date, a datetime, or a YYYY-MM-DD string.
    Anything else is a ValidationError naming the offending field.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = (str(value).strip() if value is not None else "")
    if not s:
        raise ValidationError(f"{field_name} is required (YYYY-MM-DD)")
    try:
        return datetime.strptime(s, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO date (YYYY-MM-DD), got {s!r}")


# -----------------------------------------------------------------------------
# Blueprint building blocks
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class VacancyWindow:
    vacancy_start: date
    target_move_in: date

    def __post_init__(self) -> None:
        if self.target_move_in < self.vacancy_start:
            raise ValidationError(
                f"target_move_in {self.target_move_in.isoformat()} is before "
                f"vacancy_start {self.vacancy_start.isoformat()}"
            )

    @classmethod
    def parse(cls, vacancy_start: Any, target_move_in: Any) -> "VacancyWindow":
        return cls(
            vacancy_start=parse_iso_date(vacancy_start, "vacancy_start"),
            target_move_in=parse_iso_date(target_move_in, "target_move_in"),
        )

    @property
    def length_days(self) -> int:
        return (self.target_move_in - self.vacancy_start).days

    def as_dict(self) -> dict[str, Any]:
        return {
            "vacancy_start": self.vacancy_start.isoformat(),
            "target_move_in": self.target_move_in.isoformat(),
        }


@dataclass(frozen=True)
class DueDateRule:
    anchor: str
    offset_days: int = 0

    @classmethod
    def days_from_vacancy(cls, days: int) -> "DueDateRule":
        return cls(anchor=ANCHOR_VACANCY_START, offset_days=days)

    @classmethod
    def days_before_move_in(cls, days: int) -> "DueDateRule":
        return cls(anchor=ANCHOR_MOVE_IN, offset_days=-days)

    @classmethod
    def on_move_in(cls) -> "DueDateRule":
        return cls(anchor=ANCHOR_MOVE_IN, offset_days=0)

    def resolve(self, window: VacancyWindow) -> date:
        base = window.vacancy_start if self.anchor == ANCHOR_VACANCY_START else window.target_move_in
        return base + timedelta(days=self.offset_days)

    def describe(self) -> str:
        if self.anchor == ANCHOR_VACANCY_START:
            return f"vacancy start + {self.offset_days} day(s)"
        if self.offset_days == 0:
            return "on move-in"
        return f"{-self.offset_days} day(s) before move-in"


@dataclass(frozen=True)
class ComplianceNote:
    topic: str
    detail: str

    def as_dict(self) -> dict[str, str]:
        return {"topic": self.topic, "detail": self.detail}


@dataclass(frozen=True)
class TaskTemplate:
    key: str
    name: str
    stage: str
    role: str
    due: DueDateRule
    deliverables: tuple[str, ...] = field(default_factory=tuple)
    compliance: tuple[ComplianceNote, ...] = field(default_factory=tuple)
    critical: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "stage": self.stage,
            "stage_label": stage_label(self.stage),
            "role": self.role,
            "role_label": role_label(self.role),
            "due_rule": self.due.describe(),
            "deliverables": list(self.deliverables),
            "compliance": [n.as_dict() for n in self.compliance],
            "critical": self.critical,
        }


# -----------------------------------------------------------------------------
# Status transitions
# -----------------------------------------------------------------------------


def check_transition(
    task_key: str,
    current: str,
    requested: str,
    completed_on: Optional[date],
    *,
    date_unknown: bool = False,
) -> None:
    """
    Raises InvalidTransition unless `current -> requested` is legal.

    Rules:
      - status must be one of the known vocabulary
      - no regression (complete is terminal; skipped only moves to complete)
      - completed_on is required iff requested == complete, unless the caller
        flags the date as unknown (importer degradation path)
    """
    if requested not in ALLOWED_TRANSITIONS:
        raise InvalidTransition(task_key, current, requested, "unknown status")

    if requested not in ALLOWED_TRANSITIONS.get(current, frozenset()):
        raise InvalidTransition(task_key, current, requested, "status cannot regress")

    if requested == COMPLETE:
        if completed_on is None and not date_unknown:
            raise InvalidTransition(task_key, current, requested, "completed_on is required for complete")
    elif completed_on is not None:
        raise InvalidTransition(task_key, current, requested, "completed_on is only allowed for complete")
