# backend/turnover/services/application_service.py
from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Optional

from ..domain.applications.compliance import ComplianceGuard, require_complete, require_identity
from ..domain.applications.engine import EvaluationEngine
from ..domain.applications.record import ApplicationRecord
from ..domain.applications.rules import EvaluationConfig
from ..domain.applications.types import (
    EVALUATING,
    OUTCOME_APPROVED,
    OUTCOME_DENIED,
    SUBMITTED,
    ApplicationSubmission,
)
from ..domain.fingerprint import fingerprint
from ..errors import ApplicationNotFound, DuplicateApplication
from .alerts import AlertPublisher, ApplicationAlert
from .application_store import ApplicationRepository, DuplicateKey

log = logging.getLogger("turnover.applications")

ALERT_TEMPLATES = {
    OUTCOME_APPROVED: "applicant_approved",
    OUTCOME_DENIED: "applicant_denied",
}
MANUAL_REVIEW_TEMPLATE = "applicant_manual_review"


def next_application_id() -> str:
    return f"app-{uuid.uuid4().hex[:12]}"


def dedupe_key_for(submission: ApplicationSubmission) -> str:
    return fingerprint("vacancy_application", submission.applicant_ref, submission.listing.unit_id)


class VacancyApplicationService:
    """
    Submission and evaluation lifecycle for rental applications.

    Mutations are serialized through one service lock so a record is never
    evaluated twice concurrently and status only moves forward.
    """

    def __init__(
        self,
        repository: ApplicationRepository,
        alerts: AlertPublisher,
        config: Optional[EvaluationConfig] = None,
    ) -> None:
        self.repository = repository
        self.alerts = alerts
        self.engine = EvaluationEngine(config or EvaluationConfig())
        self._lock = threading.RLock()

    @property
    def guard(self) -> ComplianceGuard:
        return self.engine.guard

    def _get(self, application_id: str) -> ApplicationRecord:
        rec = self.repository.fetch(application_id)
        if rec is None:
            raise ApplicationNotFound(application_id)
        return rec

    def get(self, application_id: str) -> ApplicationRecord:
        return self._get(application_id)

    def public_view(self, application_id: str) -> dict[str, Any]:
        return self._get(application_id).public_view()

    def submit(self, submission: ApplicationSubmission) -> ApplicationRecord:
        """
        Stores a new application in `submitted`.

        Raises (nothing is stored in any of these cases):
          - IncompleteApplication when applicant_ref or unit_id is missing
          - ComplianceViolation for prohibited screening practices
          - DuplicateApplication (carrying the existing record) for a repeat
            applicant/unit pair
        """
        require_identity(submission)
        self.guard.screen_practices(submission)

        key = dedupe_key_for(submission)
        with self._lock:
            existing = self.repository.find_by_dedupe_key(key)
            if existing is not None:
                raise DuplicateApplication(existing.application_id, existing)

            record = ApplicationRecord(
                application_id=next_application_id(),
                dedupe_key=key,
                status=SUBMITTED,
                submission=submission,
                created_at=datetime.utcnow(),
            )
            try:
                self.repository.insert(record)
            except DuplicateKey:
                existing = self.repository.find_by_dedupe_key(key)
                if existing is None:
                    raise
                raise DuplicateApplication(existing.application_id, existing)

        log.info(
            "application submitted",
            extra={"application_id": record.application_id, "unit_id": submission.listing.unit_id},
        )
        return record

    def submit_or_get(self, submission: ApplicationSubmission) -> tuple[ApplicationRecord, bool]:
        """Idempotent submit: returns (record, created)."""
        try:
            return self.submit(submission), True
        except DuplicateApplication as dup:
            return dup.existing, False

    def amend(self, application_id: str, submission: ApplicationSubmission) -> ApplicationRecord:
        """Replace the submission while the record is still `submitted` (e.g. to fill missing fields)."""
        with self._lock:
            rec = self._get(application_id)
            if rec.status != SUBMITTED:
                return rec
            if dedupe_key_for(submission) != rec.dedupe_key:
                raise ValueError("amendment must keep the same applicant_ref and unit_id")
            self.guard.screen_practices(submission)
            updated = replace(rec, submission=submission)
            self.repository.update(updated)
            return updated

    def evaluate(self, application_id: str) -> ApplicationRecord:
        """
        Scores a submitted application and records the decision.

        Already-evaluated records are returned unchanged. IncompleteApplication
        leaves the record in `submitted`.
        """
        with self._lock:
            rec = self._get(application_id)
            if rec.status != SUBMITTED:
                return rec

            require_complete(rec.submission)

            evaluating = rec.with_status(EVALUATING)
            try:
                outcome = self.engine.evaluate(evaluating.submission)
            except Exception:
                log.exception("evaluation failed", extra={"application_id": application_id})
                raise

            final = evaluating.with_status(
                outcome.decision.status,
                outcome=outcome,
                evaluated_at=datetime.utcnow(),
            )
            self.repository.update(final)

        log.info(
            "application evaluated",
            extra={"application_id": application_id, "event": final.status},
        )
        self.alerts.publish(
            ApplicationAlert(
                template=ALERT_TEMPLATES.get(outcome.decision.outcome, MANUAL_REVIEW_TEMPLATE),
                application_id=application_id,
                details={
                    "decision": outcome.decision.outcome,
                    "status": final.status,
                    "unit_id": final.submission.listing.unit_id,
                },
            )
        )
        return final

    def pending(self, limit: int = 100) -> list[ApplicationRecord]:
        return self.repository.pending(limit)
