# backend/turnover/services/marketing_service.py
from __future__ import annotations

from typing import Any, Iterable, Optional

from ..domain.applications.rules import EvaluationConfig
from ..domain.applications.types import ApplicationSubmission
from ..domain.vacancy.marketing import (
    InMemoryMediaGateway,
    ListingContext,
    MarketingPlan,
    MarketingPublisher,
    MediaItem,
    ProspectCandidate,
)


def listing_from_dict(d: dict[str, Any]) -> ListingContext:
    return ListingContext(
        unit_id=d["unit_id"],
        property_code=d.get("property_code") or "",
        property_name=d["property_name"],
        address=d.get("address") or "",
        bedrooms=int(d.get("bedrooms") or 0),
        bathrooms=float(d.get("bathrooms") or 0.0),
        square_feet=int(d.get("square_feet") or 0),
        rent=float(d["rent"]),
        deposit=float(d.get("deposit") or 0.0),
        available_on=d["available_on"],
        media_folder_id=d.get("media_folder_id") or d["unit_id"],
        state=d.get("state") or "IA",
        amenities=tuple(d.get("amenities") or ()),
        neighborhood_highlights=tuple(d.get("neighborhood_highlights") or ()),
        nearby_schools=tuple(d.get("nearby_schools") or ()),
    )


def preview_listing(
    listing: dict[str, Any],
    media: Iterable[dict[str, Any]] = (),
    prospects: Iterable[tuple[str, dict[str, Any]]] = (),
    config: Optional[EvaluationConfig] = None,
) -> tuple[MarketingPlan, InMemoryMediaGateway]:
    """
    Dry run of the listing publisher: media comes from the caller instead of
    a live store and the draft is filed in memory. Returns the plan plus the
    gateway holding the rendered draft.
    """
    ctx = listing_from_dict(listing)
    gateway = InMemoryMediaGateway({ctx.media_folder_id: [MediaItem(**m) for m in media]})
    candidates = [ProspectCandidate(name, ApplicationSubmission.from_payload(payload)) for name, payload in prospects]
    plan = MarketingPublisher(gateway, config).prepare_listing(ctx, candidates)
    return plan, gateway
