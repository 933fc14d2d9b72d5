# backend/turnover/domain/vacancy/marketing.py
from __future__ import annotations

import html
import logging
import re
import threading
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Optional, Protocol

from ...errors import ComplianceViolation, IncompleteApplication, ProspectEvaluationError
from ..applications.engine import EvaluationEngine
from ..applications.rules import EvaluationConfig
from ..applications.types import (
    OUTCOME_APPROVED,
    OUTCOME_DENIED,
    ApplicationSubmission,
    EvaluationOutcome,
)

log = logging.getLogger("turnover.marketing")

# State civil-rights statutes quoted in listing copy, keyed by listing state.
STATE_CIVIL_RIGHTS_ACTS = {
    "IA": "Iowa Civil Rights Act",
}
FALLBACK_CIVIL_RIGHTS_LAW = "applicable state civil-rights law"


# -----------------------------------------------------------------------------
# Media store
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class MediaItem:
    file_id: str
    name: str
    mime_type: Optional[str] = None
    web_view_link: Optional[str] = None

    @property
    def is_image(self) -> bool:
        # untyped files are kept; the store did not say they are not photos
        return self.mime_type is None or self.mime_type.startswith("image/")

    def as_dict(self) -> dict[str, Any]:
        return {
            "file_id": self.file_id,
            "name": self.name,
            "mime_type": self.mime_type,
            "web_view_link": self.web_view_link,
        }


class MediaGateway(Protocol):
    """
    Where unit photos live and where listing drafts are filed.

    Implementations raise MediaGatewayError on backend failures.
    """

    def list_unit_media(self, folder_id: str) -> list[MediaItem]: ...

    def create_listing_document(self, title: str, html_body: str, parent_folder_id: Optional[str] = None) -> str: ...


@dataclass(frozen=True)
class ListingDocument:
    document_id: str
    title: str
    html_body: str
    parent_folder_id: Optional[str]


class InMemoryMediaGateway:
    """Folder -> media lookup plus a list of filed drafts. Used by tests and the preview route."""

    def __init__(self, media: Optional[dict[str, Iterable[MediaItem]]] = None) -> None:
        self._lock = threading.Lock()
        self._media = {folder: list(items) for folder, items in (media or {}).items()}
        self._documents: list[ListingDocument] = []

    def list_unit_media(self, folder_id: str) -> list[MediaItem]:
        with self._lock:
            return list(self._media.get(folder_id, ()))

    def create_listing_document(self, title: str, html_body: str, parent_folder_id: Optional[str] = None) -> str:
        with self._lock:
            doc_id = f"doc-{len(self._documents) + 1}"
            self._documents.append(ListingDocument(doc_id, title, html_body, parent_folder_id))
        return doc_id

    @property
    def documents(self) -> list[ListingDocument]:
        with self._lock:
            return list(self._documents)


# -----------------------------------------------------------------------------
# Plan inputs / outputs
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ListingContext:
    unit_id: str
    property_code: str
    property_name: str
    address: str
    bedrooms: int
    bathrooms: float
    square_feet: int
    rent: float
    deposit: float
    available_on: date
    media_folder_id: str
    state: str = "IA"
    amenities: tuple[str, ...] = ()
    neighborhood_highlights: tuple[str, ...] = ()
    nearby_schools: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProspectCandidate:
    name: str
    submission: ApplicationSubmission


@dataclass(frozen=True)
class ProspectOutcome:
    prospect_id: str
    name: str
    decision: str
    total_score: int
    rationale: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "prospect_id": self.prospect_id,
            "name": self.name,
            "decision": self.decision,
            "total_score": self.total_score,
            "rationale": self.rationale,
        }


@dataclass(frozen=True)
class MarketingPlan:
    description: str
    document_id: str
    selected_photos: tuple[MediaItem, ...]
    missing_photos: bool
    compliance_summary: str
    prospect_outcomes: tuple[ProspectOutcome, ...] = field(default_factory=tuple)

    def as_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "document_id": self.document_id,
            "selected_photos": [m.as_dict() for m in self.selected_photos],
            "missing_photos": self.missing_photos,
            "compliance_summary": self.compliance_summary,
            "prospect_outcomes": [o.as_dict() for o in self.prospect_outcomes],
        }


# -----------------------------------------------------------------------------
# Copy builders (pure)
# -----------------------------------------------------------------------------


def income_multiple(config: EvaluationConfig) -> Optional[float]:
    """Rent multiple an applicant's income must clear; None when the ratio is unusable."""
    ratio = config.max_rent_to_income_ratio
    if not ratio or ratio <= 0:
        return None
    return 1.0 / ratio


def civil_rights_law(state: str) -> str:
    return STATE_CIVIL_RIGHTS_ACTS.get((state or "").strip().upper(), FALLBACK_CIVIL_RIGHTS_LAW)


def _headline(listing: ListingContext) -> str:
    return f"{listing.property_name} {listing.unit_id}, available {listing.available_on.strftime('%B %d, %Y')}"


def build_listing_description(listing: ListingContext, has_media: bool, config: EvaluationConfig) -> str:
    multiple = income_multiple(config)
    income_requirement = (
        f"steady verifiable income of at least {multiple:.1f}x rent"
        if multiple is not None
        else "steady verifiable income meeting published criteria"
    )

    lines = [
        _headline(listing),
        f"Address: {listing.address}",
        (
            f"{listing.bedrooms} bedroom / {listing.bathrooms:.1f} bath | "
            f"{listing.square_feet} sq ft | ${listing.rent:,.0f} per month"
        ),
        "",
    ]
    if listing.amenities:
        lines.append("Amenities: " + ", ".join(listing.amenities))
    if listing.neighborhood_highlights:
        lines.append("Neighborhood highlights: " + ", ".join(listing.neighborhood_highlights))
    if listing.nearby_schools:
        lines.append("Nearby schools: " + ", ".join(listing.nearby_schools))

    if has_media:
        lines.append("Marketing assets: Refreshed photo set pulled from the unit media archive.")
    else:
        lines.append("Marketing assets: Requesting refreshed photography to keep the listing current.")

    lines += [
        "",
        (
            "Prequalifiers: No smoking, no pets (Service animals always welcome), "
            f"{income_requirement}, no violent criminal history within the past "
            f"{config.violent_felony_lookback_years} years, and applicants must not be on any sex offender registry."
        ),
        (
            f"We proudly comply with the Fair Housing Act and the {civil_rights_law(listing.state)}. "
            "Marketing language focuses on unit features and availability without steering "
            "or excluding protected classes."
        ),
    ]
    return "\n".join(lines) + "\n"


def build_compliance_summary(config: EvaluationConfig, state: str = "IA") -> str:
    return (
        f"Compliance guard rails: Fair Housing Act & {civil_rights_law(state)} honored; "
        f"deposit capped at {config.deposit_cap_multiplier:.1f}x rent; "
        f"violent felonies screened within {config.violent_felony_lookback_years} years; "
        "smoking and pet policies applied uniformly with service animals accommodated."
    )


def render_listing_html(
    listing: ListingContext,
    description: str,
    photos: Iterable[MediaItem],
    compliance_summary: str,
) -> str:
    esc = html.escape
    parts = [f"<h1>{esc(_headline(listing))}</h1>", f"<p>{esc(listing.address)}</p>"]
    parts += [f"<p>{esc(line.strip())}</p>" for line in description.splitlines() if line.strip()]

    photos = list(photos)
    if photos:
        parts.append("<h2>Selected Media</h2><ul>")
        for p in photos:
            label = esc(p.name)
            parts.append(f'<li><a href="{esc(p.web_view_link)}">{label}</a></li>' if p.web_view_link else f"<li>{label}</li>")
        parts.append("</ul>")

    parts.append(f"<p><em>{esc(compliance_summary)}</em></p>")
    return "\n".join(parts) + "\n"


def prospect_id(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (name or "").lower()).strip("-")
    return f"demo-{slug}" if slug else "demo-applicant"


def outcome_rationale(outcome: EvaluationOutcome, submission: ApplicationSubmission) -> str:
    d = outcome.decision
    if d.outcome == OUTCOME_APPROVED:
        core = f"Approved with composite score {outcome.total_score}; applicant meets published lawful factors."
    elif d.outcome == OUTCOME_DENIED:
        core = f"Denied (score {outcome.total_score}): {d.rationale}."
    else:
        core = f"Manual review required (score {outcome.total_score}): {d.rationale}."

    text = f"{core} Decision is communicated with Fair Housing-compliant adverse action language when necessary."
    if submission.criminal_history:
        text += " Criminal background reviewed in accordance with HUD disparate impact guidance."
    return text


# -----------------------------------------------------------------------------
# Publisher
# -----------------------------------------------------------------------------


class MarketingPublisher:
    """
    Builds the listing draft for a vacant unit:
      - picks image media from the unit folder (flags missing_photos when none)
      - renders description + compliance summary and files an HTML draft
      - pre-screens sample applicants through the same guard/rules/policy
        pipeline that real applications go through
    """

    def __init__(self, gateway: MediaGateway, config: Optional[EvaluationConfig] = None) -> None:
        self._gateway = gateway
        self._engine = EvaluationEngine(config or EvaluationConfig())

    @property
    def config(self) -> EvaluationConfig:
        return self._engine.config

    def prepare_listing(
        self,
        listing: ListingContext,
        sample_applicants: Iterable[ProspectCandidate] = (),
    ) -> MarketingPlan:
        media = self._gateway.list_unit_media(listing.media_folder_id)
        photos = tuple(m for m in media if m.is_image)
        missing_photos = not photos

        description = build_listing_description(listing, not missing_photos, self.config)
        summary = build_compliance_summary(self.config, listing.state)
        body = render_listing_html(listing, description, photos, summary)

        # screen prospects first; a failed screen files no draft
        outcomes = tuple(self._screen(c) for c in sample_applicants)

        doc_id = self._gateway.create_listing_document(
            f"{listing.property_name} {listing.unit_id} Listing Marketing Draft",
            body,
            listing.media_folder_id,
        )

        log.info(
            "listing draft %s prepared (%d photo(s), %d prospect(s))",
            doc_id,
            len(photos),
            len(outcomes),
            extra={"unit_id": listing.unit_id, "event": "listing_prepared"},
        )
        if missing_photos:
            log.warning("no photos on file; requesting new photography", extra={"unit_id": listing.unit_id})

        return MarketingPlan(
            description=description,
            document_id=doc_id,
            selected_photos=photos,
            missing_photos=missing_photos,
            compliance_summary=summary,
            prospect_outcomes=outcomes,
        )

    def _screen(self, candidate: ProspectCandidate) -> ProspectOutcome:
        try:
            outcome = self._engine.evaluate(candidate.submission)
        except (ComplianceViolation, IncompleteApplication) as e:
            raise ProspectEvaluationError(candidate.name, str(e)) from e
        return ProspectOutcome(
            prospect_id=prospect_id(candidate.name),
            name=candidate.name,
            decision=outcome.decision.outcome,
            total_score=outcome.total_score,
            rationale=outcome_rationale(outcome, candidate.submission),
        )
