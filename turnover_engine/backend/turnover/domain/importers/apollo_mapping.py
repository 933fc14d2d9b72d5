# backend/turnover/domain/importers/apollo_mapping.py
from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Mapping, Optional

_INVISIBLE = dict.fromkeys(map(ord, "\ufeff\u200b\u200c\u200d\u2060"), None)
_APOSTROPHES = dict.fromkeys(map(ord, "'\u2018\u2019`"), None)
_WS = re.compile(r"\s+")


def normalize_task_name(value: Optional[str]) -> str:
    """
    Canonical form used for every task-name lookup.

    - drops BOM / zero-width characters
    - NFKC-folds full-width and compatibility forms
    - "&" reads as "and"
    - apostrophes vanish, every other punctuation or symbol becomes a space
    - whitespace collapses to single spaces
    - case-folds
    """
    s = unicodedata.normalize("NFKC", (value or "").translate(_INVISIBLE))
    s = s.translate(_APOSTROPHES).replace("&", " and ")
    s = "".join(" " if unicodedata.category(ch)[0] in ("P", "S") else ch for ch in s)
    return _WS.sub(" ", s).strip().casefold()


# External (Apollo) task names -> blueprint task keys.
# Variants differ only in punctuation or dash style; the normalizer folds them
# onto the same key, but the raw spellings stay listed so the table reads like
# the exports it was built from.
APOLLO_TASK_ALIASES: tuple[tuple[str, str], ...] = (
    # Marketing & Advertising
    ("Create and Publish Listing - Leasing Agent", "marketing_publish_listing"),
    ("Create and Publish Listing – Leasing Agent", "marketing_publish_listing"),
    ("Create and Publish Listing", "marketing_publish_listing"),
    ("Update Vacancy in AppFolio - Leasing Agent", "marketing_update_appfolio"),
    ("Update Vacancy in AppFolio – Leasing Agent", "marketing_update_appfolio"),
    ("Update Vacancy in AppFolio", "marketing_update_appfolio"),
    ("Update Vacancy Status in AppFolio", "marketing_update_appfolio"),
    # Screening & Application
    ("Manage Inquiries and Schedule Showings - Leasing Agent", "screening_manage_inquiries"),
    ("Manage Inquiries and Schedule Showings – Leasing Agent", "screening_manage_inquiries"),
    ("Manage Inquiries & Schedule Showings - Leasing Agent", "screening_manage_inquiries"),
    ("Manage Inquiries and Schedule Showings", "screening_manage_inquiries"),
    ("Process Rental Applications - Leasing Agent", "screening_process_applications"),
    ("Process Rental Applications – Leasing Agent", "screening_process_applications"),
    ("Process Rental Applications", "screening_process_applications"),
    ("Notify Applicants of Status - Leasing Agent", "screening_notify_applicants"),
    ("Notify Applicants of Status – Leasing Agent", "screening_notify_applicants"),
    ("Notify Applicants of Status", "screening_notify_applicants"),
    # Lease Signing & Move-In
    ("Prepare Lease Agreement - Leasing Agent", "leasing_prepare_agreement"),
    ("Prepare Lease Agreement – Leasing Agent", "leasing_prepare_agreement"),
    ("Prepare Lease Agreement", "leasing_prepare_agreement"),
    ("Complete Lease Agreement and Collect Financials - Leasing Agent", "leasing_prepare_agreement"),
    ("Complete Lease Agreement and Collect Financials", "leasing_prepare_agreement"),
    ("Send the lease to the new tenant for e-signature via AppFolio.", "leasing_prepare_agreement"),
    (
        "Send the new lease agreement to the tenant for signature. Iowa law (Iowa Code § 562A.13) "
        "requires written notice of any rent increase at least 30 days before the effective date.",
        "leasing_prepare_agreement",
    ),
    ("Sign new leases", "leasing_prepare_agreement"),
    ("Collect Funds - Property Manager/Accounting", "leasing_collect_funds"),
    ("Collect Funds – Property Manager/Accounting", "leasing_collect_funds"),
    ("Collect Funds - Property Manager / Accounting", "leasing_collect_funds"),
    ("Collect Funds - Property Manager & Accounting", "leasing_collect_funds"),
    ("Collect Funds - PM/Accounting", "leasing_collect_funds"),
    ("Collect Funds", "leasing_collect_funds"),
    ("Collect Move-In Funds - Property Manager/Accounting", "leasing_collect_funds"),
    ("Collect Move-In Funds", "leasing_collect_funds"),
    ("Collect first month's rent and the security deposit.", "leasing_collect_funds"),
    ("Conduct Move-In Inspection - Property Manager", "leasing_conduct_move_in_inspection"),
    ("Conduct Move-In Inspection – Property Manager", "leasing_conduct_move_in_inspection"),
    ("Conduct Move-In Inspection", "leasing_conduct_move_in_inspection"),
    ("Conduct Move-In Walk-Through & Orientation - Property Manager", "leasing_conduct_move_in_inspection"),
    ("Conduct Move-In Walk-Through and Orientation - Property Manager", "leasing_conduct_move_in_inspection"),
    ("Complete LIHTC Initial Certification - Compliance Coordinator", "leasing_lihtc_certification"),
    ("Complete LIHTC Initial Certification – Compliance Coordinator", "leasing_lihtc_certification"),
    ("Complete LIHTC Initial Certification", "leasing_lihtc_certification"),
    ("Finalize TIC", "leasing_lihtc_certification"),
    # Handoff
    ("Start New Resident Workflow", "handoff_start_new_resident_workflow"),
    ("Start the New Resident Workflow", "handoff_start_new_resident_workflow"),
    ("Handoff to New Resident Workflow", "handoff_start_new_resident_workflow"),
    ("Hand Over Keys & Welcome Tenant - Leasing Agent", "handoff_start_new_resident_workflow"),
    ("Hand Over Keys & Welcome Tenant – Leasing Agent", "handoff_start_new_resident_workflow"),
    ("Hand Over Keys and Welcome Tenant - Leasing Agent", "handoff_start_new_resident_workflow"),
    (
        'Update the unit\'s status in AppFolio from "Vacant" to "Occupied."',
        "handoff_start_new_resident_workflow",
    ),
)


@dataclass(frozen=True)
class NormalizationMap:
    """Normalized external task name -> blueprint task key."""

    entries: Mapping[str, str]

    @classmethod
    def from_aliases(cls, aliases: Iterable[tuple[str, str]]) -> "NormalizationMap":
        entries: dict[str, str] = {}
        for name, task_key in aliases:
            norm = normalize_task_name(name)
            prior = entries.get(norm)
            if prior is not None and prior != task_key:
                raise ValueError(f"alias {name!r} maps to both {prior} and {task_key}")
            entries[norm] = task_key
        return cls(entries=entries)

    def lookup(self, name: Optional[str]) -> Optional[str]:
        return self.entries.get(normalize_task_name(name))

    def task_keys(self) -> set[str]:
        return set(self.entries.values())

    def unknown_keys(self, known: Iterable[str]) -> set[str]:
        """Task keys referenced by the table that the given blueprint does not define."""
        return self.task_keys() - set(known)

    def __len__(self) -> int:
        return len(self.entries)


@lru_cache(maxsize=1)
def default_mapping() -> NormalizationMap:
    return NormalizationMap.from_aliases(APOLLO_TASK_ALIASES)
