# backend/turnover/schemas.py
from __future__ import annotations

from datetime import date
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# -----------------------------
# Vacancy report
# -----------------------------
class TaskStatusUpdate(BaseModel):
    task_key: str
    status: str
    completed_on: Optional[date] = None


class VacancyReportRequest(BaseModel):
    vacancy_start: date
    target_move_in: date
    today: Optional[date] = None
    apollo_csv: Optional[str] = None
    include_tasks: bool = False
    task_updates: List[TaskStatusUpdate] = Field(default_factory=list)


class StageProgressOut(BaseModel):
    stage: str
    stage_label: str
    completed: int
    total: int
    completion: float


class RoleLoadOut(BaseModel):
    role: str
    role_label: str
    open: int
    overdue: int


class TaskSnapshotOut(BaseModel):
    key: str
    name: str
    stage: str
    stage_label: str
    role: str
    role_label: str
    due_date: date
    status: str
    status_label: str
    completed_on: Optional[date] = None


class ComplianceNoteOut(BaseModel):
    topic: str
    detail: str


class TaskDetailOut(TaskSnapshotOut):
    completed: bool
    deliverables: List[str] = Field(default_factory=list)
    compliance: List[ComplianceNoteOut] = Field(default_factory=list)


class ComplianceAlertOut(BaseModel):
    task_key: str
    topic: str
    detail: str
    severity: str
    severity_label: str


class VacancyInsightsOut(BaseModel):
    readiness_score: int
    readiness_level: str
    expected_completion_pct: float
    days_until_move_in: int
    days_since_vacancy: int
    focus_stage: Optional[str] = None
    focus_stage_completion: Optional[float] = None
    blockers: List[str] = Field(default_factory=list)
    ai_observations: List[str] = Field(default_factory=list)
    recommended_actions: List[str] = Field(default_factory=list)
    automation_triggers: List[str] = Field(default_factory=list)


class ImportDiagnosticOut(BaseModel):
    row: int
    kind: str
    message: str
    raw: Optional[str] = None


class RejectedPatchOut(BaseModel):
    task_key: str
    reason: str


class VacancyReportOut(BaseModel):
    vacancy_start: date
    target_move_in: date
    today: date
    data_source: str
    stage_progress: List[StageProgressOut]
    role_load: List[RoleLoadOut]
    overdue_tasks: List[TaskSnapshotOut]
    compliance_alerts: List[ComplianceAlertOut]
    insights: VacancyInsightsOut
    tasks: Optional[List[TaskDetailOut]] = None
    import_diagnostics: Optional[List[ImportDiagnosticOut]] = None
    rejected_patches: Optional[List[RejectedPatchOut]] = None


# -----------------------------
# Applications
# -----------------------------
class ContactIn(BaseModel):
    full_name: str = ""
    email: str = ""
    phone: str = ""


class ListingIn(BaseModel):
    unit_id: str = ""
    property_code: str = ""
    listed_rent: Optional[float] = None
    deposit_required: float = 0.0
    available_on: Optional[date] = None
    state: str = "IA"


class HouseholdIn(BaseModel):
    # extra keys are kept so protected-attribute capture can be detected downstream
    model_config = ConfigDict(extra="allow")

    adults: int = 0
    children: int = 0
    bedrooms_requested: int = 0


class IncomeIn(BaseModel):
    gross_monthly_income: Optional[float] = None
    verified_income_sources: List[str] = Field(default_factory=list)
    housing_voucher_amount: Optional[float] = None


class RentalReferenceIn(BaseModel):
    property_name: str = ""
    paid_on_time: bool = True
    filed_eviction: bool = False


class CriminalRecordIn(BaseModel):
    classification: str
    years_since: int
    description: str = ""


class ScreeningIn(BaseModel):
    requested_move_in: Optional[date] = None
    accommodations: List[str] = Field(default_factory=list)
    prohibited_preferences: List[str] = Field(default_factory=list)


class ApplicationSubmissionIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    applicant_ref: str = ""
    contact: ContactIn = Field(default_factory=ContactIn)
    listing: ListingIn = Field(default_factory=ListingIn)
    household: HouseholdIn = Field(default_factory=HouseholdIn)
    income: IncomeIn = Field(default_factory=IncomeIn)
    credit_score: Optional[int] = None
    rental_history: List[RentalReferenceIn] = Field(default_factory=list)
    criminal_history: List[CriminalRecordIn] = Field(default_factory=list)
    screening: ScreeningIn = Field(default_factory=ScreeningIn)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class ApplicationPublicOut(BaseModel):
    model_config = ConfigDict(extra="forbid")

    application_id: str
    status: str
    decision_rationale: str
    total_score: Optional[int] = None


# -----------------------------
# Listing marketing
# -----------------------------
class MediaItemIn(BaseModel):
    file_id: str
    name: str
    mime_type: Optional[str] = None
    web_view_link: Optional[str] = None


class ListingContextIn(BaseModel):
    unit_id: str = Field(min_length=1)
    property_code: str = ""
    property_name: str = Field(min_length=1)
    address: str = ""
    bedrooms: int = Field(default=0, ge=0)
    bathrooms: float = Field(default=0.0, ge=0)
    square_feet: int = Field(default=0, ge=0)
    rent: float = Field(gt=0)
    deposit: float = Field(default=0.0, ge=0)
    available_on: date
    media_folder_id: str = ""
    state: str = "IA"
    amenities: List[str] = Field(default_factory=list)
    neighborhood_highlights: List[str] = Field(default_factory=list)
    nearby_schools: List[str] = Field(default_factory=list)


class ProspectIn(BaseModel):
    name: str = Field(min_length=1)
    application: ApplicationSubmissionIn


class MarketingPreviewRequest(BaseModel):
    listing: ListingContextIn
    # media metadata as listed in the unit folder; no store is contacted
    media: List[MediaItemIn] = Field(default_factory=list)
    prospects: List[ProspectIn] = Field(default_factory=list)


class ProspectOutcomeOut(BaseModel):
    prospect_id: str
    name: str
    decision: str
    total_score: int
    rationale: str


class MarketingPlanOut(BaseModel):
    description: str
    document_id: str
    selected_photos: List[MediaItemIn]
    missing_photos: bool
    compliance_summary: str
    prospect_outcomes: List[ProspectOutcomeOut] = Field(default_factory=list)
