# backend/turnover/domain/vacancy/blueprint.py
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Optional

from .types import (
    ROLE_ORDER,
    STAGE_ORDER,
    ComplianceNote,
    DueDateRule,
    TaskTemplate,
)

STANDARD_BLUEPRINT_VERSION = "2025-09.v1"


@dataclass(frozen=True)
class VacancyWorkflowBlueprint:
    """
    Immutable catalog of task templates for one vacancy turnover.

    Instances are passed explicitly into every workflow instance; nothing
    reads a module-level catalog behind the caller's back.
    """

    version: str
    templates: tuple[TaskTemplate, ...]

    def stages(self) -> list[str]:
        present = {t.stage for t in self.templates}
        return [s for s in STAGE_ORDER if s in present]

    def roles(self) -> list[str]:
        present = {t.role for t in self.templates}
        return [r for r in ROLE_ORDER if r in present]

    def tasks_for_stage(self, stage: str) -> list[TaskTemplate]:
        return [t for t in self.templates if t.stage == stage]

    def template(self, key: str) -> Optional[TaskTemplate]:
        for t in self.templates:
            if t.key == key:
                return t
        return None

    def keys(self) -> list[str]:
        return [t.key for t in self.templates]

    def compliance_notes(self) -> list[tuple[str, ComplianceNote]]:
        return [(t.key, n) for t in self.templates for n in t.compliance]

    def as_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "stages": self.stages(),
            "roles": self.roles(),
            "templates": [t.as_dict() for t in self.templates],
        }


def _standard_templates() -> tuple[TaskTemplate, ...]:
    return (
        TaskTemplate(
            key="marketing_publish_listing",
            name="Create and Publish Listing",
            stage="marketing_and_advertising",
            role="leasing_agent",
            due=DueDateRule.days_from_vacancy(0),
            deliverables=(
                "Draft a fresh listing that highlights unit features, affordability programs, and rent ready date.",
                "Upload current listing photos or virtual tour links before publishing.",
                "Syndicate to Zillow, Apartments.com, social media, and capture marketing URLs for reporting.",
            ),
            compliance=(
                ComplianceNote(
                    topic="Iowa Code § 562A.29 reasonable re-rental efforts",
                    detail="Document every marketing channel touch to evidence reasonable efforts to re-rent (Iowa Code § 562A.29).",
                ),
            ),
        ),
        TaskTemplate(
            key="marketing_update_appfolio",
            name="Update Vacancy Status in AppFolio",
            stage="marketing_and_advertising",
            role="leasing_agent",
            due=DueDateRule.days_from_vacancy(0),
            deliverables=(
                'Switch the unit status from "Turnover" to "Vacant" in AppFolio immediately after make-ready sign-off.',
                "Confirm listing syndication triggers fired for all partner channels.",
            ),
            compliance=(
                ComplianceNote(
                    topic="System of record accuracy",
                    detail="Accurate AppFolio statuses keep vacancy analytics, owner reporting, and marketing automation in sync.",
                ),
            ),
        ),
        TaskTemplate(
            key="screening_manage_inquiries",
            name="Manage Inquiries and Schedule Showings",
            stage="screening_and_application",
            role="leasing_agent",
            due=DueDateRule.days_from_vacancy(0),
            deliverables=(
                "Respond to every inquiry within one business day using standardized messaging to preserve Fair Housing parity.",
                "Capture pre-screen answers covering move timeline, household composition, pets, and program eligibility.",
                "Offer pre-defined showing blocks via scheduling links to minimize back-and-forth.",
            ),
            compliance=(
                ComplianceNote(
                    topic="Fair Housing and Iowa Civil Rights Act parity",
                    detail="Consistent response cadences prevent disparate treatment across protected classes and leave an audit trail.",
                ),
            ),
        ),
        TaskTemplate(
            key="screening_process_applications",
            name="Process Rental Applications",
            stage="screening_and_application",
            role="leasing_agent",
            due=DueDateRule.days_from_vacancy(2),
            deliverables=(
                "Review each application within 48 hours and request missing fields immediately.",
                "Collect income, asset, and household documentation aligned with LIHTC and program requirements.",
                "Complete credit, background, and landlord verifications before rendering a decision.",
            ),
            compliance=(
                ComplianceNote(
                    topic="Documented screening criteria",
                    detail="Apply published screening criteria uniformly and retain documentation for adverse action defense.",
                ),
                ComplianceNote(
                    topic="LIHTC source-of-income verification",
                    detail="Secure third-party income documentation to support Tenant Income Certification (TIC) files.",
                ),
            ),
        ),
        TaskTemplate(
            key="screening_notify_applicants",
            name="Notify Applicants of Status",
            stage="screening_and_application",
            role="leasing_agent",
            due=DueDateRule.days_from_vacancy(2),
            deliverables=(
                "Send approvals with next-step instructions and payment expectations.",
                "Issue denials with compliant adverse action language and timestamp outcomes in the CRM.",
            ),
            compliance=(
                ComplianceNote(
                    topic="Adverse action documentation",
                    detail="Retain copies of denial notices and credit disclosures to satisfy Fair Credit Reporting Act obligations.",
                ),
            ),
        ),
        TaskTemplate(
            key="leasing_prepare_agreement",
            name="Prepare Lease Agreement",
            stage="lease_signing_and_move_in",
            role="leasing_agent",
            due=DueDateRule.days_from_vacancy(5),
            deliverables=(
                "Merge approved terms into the LIHTC-compliant lease packet and distribute for e-signature.",
                "Confirm all addenda (e.g., VAWA, house rules) are attached before sending.",
            ),
            compliance=(
                ComplianceNote(
                    topic="Lease artifact completeness",
                    detail="Incomplete lease packets jeopardize move-in readiness and downstream LIHTC audits.",
                ),
            ),
        ),
        TaskTemplate(
            key="leasing_collect_funds",
            name="Collect Move-In Funds",
            stage="lease_signing_and_move_in",
            role="property_manager_accounting",
            due=DueDateRule.days_before_move_in(5),
            deliverables=(
                "Collect prorated rent, deposits, and fees; post receipts to the resident ledger.",
                "Confirm deposit amounts stay within Iowa caps (≤ two months rent).",
            ),
            compliance=(
                ComplianceNote(
                    topic="Security deposit limits",
                    detail="Deposits exceeding state limits expose the portfolio to statutory penalties.",
                ),
            ),
            critical=True,
        ),
        TaskTemplate(
            key="leasing_conduct_move_in_inspection",
            name="Conduct Move-In Inspection",
            stage="lease_signing_and_move_in",
            role="property_manager",
            due=DueDateRule.on_move_in(),
            deliverables=(
                "Complete digital inspection checklist with tenant present and capture photos of every room.",
                "Upload signed inspection and media to AppFolio for permanent recordkeeping.",
            ),
            compliance=(
                ComplianceNote(
                    topic="Move-in condition documentation",
                    detail="Thorough inspections limit security deposit disputes and support future turn charges.",
                ),
            ),
        ),
        TaskTemplate(
            key="leasing_lihtc_certification",
            name="Complete LIHTC Initial Certification",
            stage="lease_signing_and_move_in",
            role="compliance_coordinator",
            due=DueDateRule.days_before_move_in(3),
            deliverables=(
                "Collect signed Tenant Income Certification (TIC) and applicable student status affidavits.",
                "Verify income against current IFA limits and retain third-party documentation.",
                "Issue VAWA notices and ensure household files are audit ready.",
            ),
            compliance=(
                ComplianceNote(
                    topic="LIHTC eligibility lock-in",
                    detail="Certification must be finalized at least three days before move-in to maintain LIHTC compliance.",
                ),
            ),
            critical=True,
        ),
        TaskTemplate(
            key="handoff_start_new_resident_workflow",
            name="Handoff to New Resident Workflow",
            stage="handoff",
            role="property_manager",
            due=DueDateRule.on_move_in(),
            deliverables=(
                'Update the unit status from "Vacant" to "Occupied" in AppFolio once keys are released.',
                "Trigger the New Resident onboarding workflow with welcome communications and follow-up tasks.",
            ),
            compliance=(
                ComplianceNote(
                    topic="Operational handoff completeness",
                    detail="Transitioning to onboarding ensures services, compliance tracking, and resident engagement continue seamlessly.",
                ),
            ),
        ),
    )


@lru_cache(maxsize=1)
def standard_blueprint() -> VacancyWorkflowBlueprint:
    return VacancyWorkflowBlueprint(
        version=STANDARD_BLUEPRINT_VERSION,
        templates=_standard_templates(),
    )
