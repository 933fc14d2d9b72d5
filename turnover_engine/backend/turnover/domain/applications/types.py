# backend/turnover/domain/applications/types.py
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Optional

# -----------------------------------------------------------------------------
# Vocabularies
# -----------------------------------------------------------------------------

SUBMITTED = "submitted"
EVALUATING = "evaluating"
APPROVED = "approved"
DENIED = "denied"
UNDER_REVIEW = "under_review"

# Once a record leaves `submitted` it never returns there.
STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    SUBMITTED: frozenset({EVALUATING}),
    EVALUATING: frozenset({APPROVED, DENIED, UNDER_REVIEW, SUBMITTED}),
    APPROVED: frozenset(),
    DENIED: frozenset(),
    UNDER_REVIEW: frozenset(),
}

OUTCOME_APPROVED = "approved"
OUTCOME_DENIED = "denied"
OUTCOME_PENDING = "pending"

OUTCOME_TO_STATUS = {
    OUTCOME_APPROVED: APPROVED,
    OUTCOME_DENIED: DENIED,
    OUTCOME_PENDING: UNDER_REVIEW,
}

# Lawful scoring factors. Nothing outside this list may feed a score.
RENT_TO_INCOME = "rent_to_income"
CREDIT_SCORE = "credit_score"
RENTAL_HISTORY = "rental_history"
CRIMINAL_HISTORY_WINDOW = "criminal_history_window"
VOUCHER_COVERAGE = "voucher_coverage"
SECURITY_DEPOSIT_COMPLIANCE = "security_deposit_compliance"

LAWFUL_FACTORS = (
    RENT_TO_INCOME,
    CREDIT_SCORE,
    RENTAL_HISTORY,
    CRIMINAL_HISTORY_WINDOW,
    VOUCHER_COVERAGE,
    SECURITY_DEPOSIT_COMPLIANCE,
)

# Screening practices barred by the Fair Housing Act and state civil-rights law.
PROHIBITED_PRACTICES = {
    "steering_based_on_familial_status": "steering based on familial status",
    "source_of_income_discrimination": "source-of-income discrimination",
    "blanket_criminal_history_ban": "blanket criminal-history ban",
    "disparate_response_cadence": "disparate response cadence",
    "protected_class_inquiry": "inquiry into a protected characteristic",
}

# Payload keys that would capture a protected characteristic.
PROTECTED_ATTRIBUTES = frozenset(
    {
        "race",
        "color",
        "religion",
        "creed",
        "national_origin",
        "ancestry",
        "sex",
        "gender_identity",
        "sexual_orientation",
        "familial_status",
        "disability",
        "marital_status",
        "age",
        "pregnancy",
    }
)

VIOLENT_FELONY = "violent_felony"
NON_VIOLENT_FELONY = "non_violent_felony"
MISDEMEANOR = "misdemeanor"
CRIMINAL_CLASSIFICATIONS = (VIOLENT_FELONY, NON_VIOLENT_FELONY, MISDEMEANOR)


def _opt_float(v: Any) -> Optional[float]:
    if v is None or (isinstance(v, str) and not v.strip()):
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


def _opt_int(v: Any) -> Optional[int]:
    f = _opt_float(v)
    return int(f) if f is not None else None


def _opt_date(v: Any) -> Optional[date]:
    if v is None or isinstance(v, date):
        return v
    s = str(v).strip()
    if not s:
        return None
    try:
        return datetime.strptime(s[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def _strs(v: Any) -> tuple[str, ...]:
    if not v:
        return ()
    if isinstance(v, str):
        return (v.strip(),) if v.strip() else ()
    return tuple(str(x).strip() for x in v if str(x).strip())


# -----------------------------------------------------------------------------
# Submission
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ContactInfo:
    full_name: str = ""
    email: str = ""
    phone: str = ""


@dataclass(frozen=True)
class ListingSnapshot:
    unit_id: str = ""
    property_code: str = ""
    listed_rent: Optional[float] = None
    deposit_required: float = 0.0
    available_on: Optional[date] = None
    state: str = "IA"


@dataclass(frozen=True)
class Household:
    adults: int = 0
    children: int = 0
    bedrooms_requested: int = 0

    @property
    def size(self) -> int:
        return self.adults + self.children


@dataclass(frozen=True)
class IncomeDeclaration:
    gross_monthly_income: Optional[float] = None
    verified_income_sources: tuple[str, ...] = ()
    housing_voucher_amount: Optional[float] = None


@dataclass(frozen=True)
class RentalReference:
    property_name: str = ""
    paid_on_time: bool = True
    filed_eviction: bool = False


@dataclass(frozen=True)
class CriminalRecord:
    classification: str
    years_since: int
    description: str = ""


@dataclass(frozen=True)
class ScreeningAnswers:
    requested_move_in: Optional[date] = None
    accommodations: tuple[str, ...] = ()
    prohibited_preferences: tuple[str, ...] = ()
    protected_fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class ApplicationSubmission:
    applicant_ref: str
    contact: ContactInfo = field(default_factory=ContactInfo)
    listing: ListingSnapshot = field(default_factory=ListingSnapshot)
    household: Household = field(default_factory=Household)
    income: IncomeDeclaration = field(default_factory=IncomeDeclaration)
    credit_score: Optional[int] = None
    rental_history: tuple[RentalReference, ...] = ()
    criminal_history: tuple[CriminalRecord, ...] = ()
    screening: ScreeningAnswers = field(default_factory=ScreeningAnswers)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ApplicationSubmission":
        """
        Lenient builder from a JSON-like dict. Missing pieces become empty
        values so completeness is judged in one place (the compliance guard),
        not scattered across parsing.

        Any top-level or household key naming a protected characteristic is
        recorded in screening.protected_fields so the guard can reject it.
        """
        p = payload or {}
        contact = p.get("contact") or {}
        listing = p.get("listing") or {}
        household = p.get("household") or {}
        income = p.get("income") or {}
        screening = p.get("screening") or p.get("screening_answers") or {}

        protected = sorted(
            {k for k in p.keys() if k in PROTECTED_ATTRIBUTES}
            | {k for k in household.keys() if k in PROTECTED_ATTRIBUTES}
            | set(_strs(screening.get("protected_fields")))
        )

        return cls(
            applicant_ref=str(p.get("applicant_ref") or "").strip(),
            contact=ContactInfo(
                full_name=str(contact.get("full_name") or "").strip(),
                email=str(contact.get("email") or "").strip(),
                phone=str(contact.get("phone") or "").strip(),
            ),
            listing=ListingSnapshot(
                unit_id=str(listing.get("unit_id") or "").strip(),
                property_code=str(listing.get("property_code") or "").strip(),
                listed_rent=_opt_float(listing.get("listed_rent")),
                deposit_required=_opt_float(listing.get("deposit_required")) or 0.0,
                available_on=_opt_date(listing.get("available_on")),
                state=str(listing.get("state") or "IA").strip().upper(),
            ),
            household=Household(
                adults=_opt_int(household.get("adults")) or 0,
                children=_opt_int(household.get("children")) or 0,
                bedrooms_requested=_opt_int(household.get("bedrooms_requested")) or 0,
            ),
            income=IncomeDeclaration(
                gross_monthly_income=_opt_float(income.get("gross_monthly_income")),
                verified_income_sources=_strs(income.get("verified_income_sources")),
                housing_voucher_amount=_opt_float(income.get("housing_voucher_amount")),
            ),
            credit_score=_opt_int(p.get("credit_score")),
            rental_history=tuple(
                RentalReference(
                    property_name=str(r.get("property_name") or "").strip(),
                    paid_on_time=bool(r.get("paid_on_time", True)),
                    filed_eviction=bool(r.get("filed_eviction", False)),
                )
                for r in (p.get("rental_history") or [])
            ),
            criminal_history=tuple(
                CriminalRecord(
                    classification=str(c.get("classification") or "").strip().lower(),
                    years_since=_opt_int(c.get("years_since")) or 0,
                    description=str(c.get("description") or "").strip(),
                )
                for c in (p.get("criminal_history") or [])
            ),
            screening=ScreeningAnswers(
                requested_move_in=_opt_date(screening.get("requested_move_in")),
                accommodations=_strs(screening.get("accommodations")),
                prohibited_preferences=_strs(screening.get("prohibited_preferences")),
                protected_fields=tuple(protected),
            ),
        )

    def as_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["listing"]["available_on"] = self.listing.available_on.isoformat() if self.listing.available_on else None
        d["screening"]["requested_move_in"] = (
            self.screening.requested_move_in.isoformat() if self.screening.requested_move_in else None
        )
        return d


# -----------------------------------------------------------------------------
# Guarded profile + evaluation artifacts
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class HardFail:
    factor: str
    message: str


@dataclass(frozen=True)
class ApplicantProfile:
    """Compliance-checked view of a submission. Carries lawful factors only."""

    lawful_factors: dict[str, Any]
    hard_fails: tuple[HardFail, ...]
    listing: ListingSnapshot
    household: Household
    income: IncomeDeclaration
    credit_score: Optional[int]
    rental_history: tuple[RentalReference, ...]
    criminal_history: tuple[CriminalRecord, ...]
    accommodations: tuple[str, ...]

    def factor(self, name: str, default: Any = None) -> Any:
        return self.lawful_factors.get(name, default)


@dataclass(frozen=True)
class ScoreComponent:
    factor: str
    points: int
    justification: str

    def as_dict(self) -> dict[str, Any]:
        return {"factor": self.factor, "points": self.points, "justification": self.justification}


@dataclass(frozen=True)
class Decision:
    outcome: str
    rationale: str
    total_score: int
    hard_fails: tuple[HardFail, ...] = ()

    @property
    def status(self) -> str:
        return OUTCOME_TO_STATUS[self.outcome]

    def as_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome,
            "rationale": self.rationale,
            "total_score": self.total_score,
            "hard_fails": [{"factor": h.factor, "message": h.message} for h in self.hard_fails],
        }


@dataclass(frozen=True)
class EvaluationOutcome:
    components: tuple[ScoreComponent, ...]
    total_score: int
    decision: Decision
