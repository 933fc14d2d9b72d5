# backend/turnover/domain/applications/record.py
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Optional

from .types import (
    STATUS_TRANSITIONS,
    SUBMITTED,
    ApplicationSubmission,
    Decision,
    EvaluationOutcome,
    HardFail,
    ScoreComponent,
)

PUBLIC_FIELDS = ("application_id", "status", "decision_rationale", "total_score")


def _mask_email(email: str) -> str:
    if not email or "@" not in email:
        return "***" if email else ""
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain}"


def _mask_phone(phone: str) -> str:
    digits = [c for c in phone if c.isdigit()]
    return f"***-***-{''.join(digits[-4:])}" if digits else ""


def _mask_name(name: str) -> str:
    parts = [p for p in name.split() if p]
    return " ".join(f"{p[0]}." for p in parts)


class InvalidStatusChange(ValueError):
    pass


@dataclass(frozen=True)
class ApplicationRecord:
    application_id: str
    dedupe_key: str
    status: str
    submission: ApplicationSubmission
    created_at: datetime
    outcome: Optional[EvaluationOutcome] = None
    evaluated_at: Optional[datetime] = None

    @property
    def decision(self) -> Optional[Decision]:
        return self.outcome.decision if self.outcome else None

    @property
    def decision_rationale(self) -> str:
        return self.outcome.decision.rationale if self.outcome else "pending evaluation"

    @property
    def total_score(self) -> Optional[int]:
        return self.outcome.total_score if self.outcome else None

    def with_status(self, status: str, **changes: Any) -> "ApplicationRecord":
        if status not in STATUS_TRANSITIONS.get(self.status, frozenset()):
            raise InvalidStatusChange(f"{self.application_id}: cannot move {self.status} -> {status}")
        return replace(self, status=status, **changes)

    def public_view(self) -> dict[str, Any]:
        """Exactly the four public fields. No components, no PII."""
        return {
            "application_id": self.application_id,
            "status": self.status,
            "decision_rationale": self.decision_rationale,
            "total_score": self.total_score,
        }

    def redacted(self) -> dict[str, Any]:
        """Internal rendering for operators: full scoring trail, contact details masked."""
        sub = self.submission
        return {
            **self.public_view(),
            "applicant_ref": sub.applicant_ref,
            "contact": {
                "full_name": _mask_name(sub.contact.full_name),
                "email": _mask_email(sub.contact.email),
                "phone": _mask_phone(sub.contact.phone),
            },
            "unit_id": sub.listing.unit_id,
            "property_code": sub.listing.property_code,
            "household_size": sub.household.size,
            "components": [c.as_dict() for c in self.outcome.components] if self.outcome else [],
            "decision": self.outcome.decision.as_dict() if self.outcome else None,
            "created_at": self.created_at.isoformat(),
            "evaluated_at": self.evaluated_at.isoformat() if self.evaluated_at else None,
        }

    # ---- persistence ----

    def to_storage(self) -> dict[str, Any]:
        return {
            "application_id": self.application_id,
            "dedupe_key": self.dedupe_key,
            "status": self.status,
            "submission": self.submission.as_dict(),
            "created_at": self.created_at.isoformat(),
            "evaluated_at": self.evaluated_at.isoformat() if self.evaluated_at else None,
            "outcome": (
                {
                    "components": [c.as_dict() for c in self.outcome.components],
                    "total_score": self.outcome.total_score,
                    "decision": self.outcome.decision.as_dict(),
                }
                if self.outcome
                else None
            ),
        }

    @classmethod
    def from_storage(cls, d: dict[str, Any]) -> "ApplicationRecord":
        outcome = None
        o = d.get("outcome")
        if o:
            dec = o["decision"]
            outcome = EvaluationOutcome(
                components=tuple(
                    ScoreComponent(c["factor"], int(c["points"]), c["justification"]) for c in o["components"]
                ),
                total_score=int(o["total_score"]),
                decision=Decision(
                    outcome=dec["outcome"],
                    rationale=dec["rationale"],
                    total_score=int(dec["total_score"]),
                    hard_fails=tuple(HardFail(h["factor"], h["message"]) for h in dec.get("hard_fails") or []),
                ),
            )
        return cls(
            application_id=d["application_id"],
            dedupe_key=d["dedupe_key"],
            status=d.get("status") or SUBMITTED,
            submission=ApplicationSubmission.from_payload(d["submission"]),
            created_at=datetime.fromisoformat(d["created_at"]),
            outcome=outcome,
            evaluated_at=datetime.fromisoformat(d["evaluated_at"]) if d.get("evaluated_at") else None,
        )
