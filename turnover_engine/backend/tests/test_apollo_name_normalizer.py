# backend/tests/test_apollo_name_normalizer.py
from __future__ import annotations

import pytest

from turnover.domain.importers.apollo_mapping import (
    APOLLO_TASK_ALIASES,
    NormalizationMap,
    default_mapping,
    normalize_task_name,
)


@pytest.mark.parametrize(
    "raw",
    [
        "Create and Publish Listing - Leasing Agent",
        "\ufeffCreate  and  Publish  Listing  -  Leasing  Agent",
        "create and publish listing – leasing agent",
        "CREATE AND PUBLISH LISTING \u2014 LEASING AGENT",
        "Create & Publish Listing - Leasing\u200b Agent",
    ],
)
def test_cosmetic_variants_share_one_canonical_form(raw):
    assert normalize_task_name(raw) == "create and publish listing leasing agent"


def test_apostrophes_are_dropped_not_spaced():
    assert normalize_task_name("Collect first month’s rent") == "collect first months rent"
    assert normalize_task_name("Collect first month's rent") == "collect first months rent"


def test_full_width_characters_fold():
    assert normalize_task_name("\uff26inalize TIC") == "finalize tic"


def test_blank_and_none_normalize_to_empty():
    assert normalize_task_name(None) == ""
    assert normalize_task_name("  \ufeff ") == ""


def test_default_mapping_covers_every_blueprint_task(blueprint):
    mapping = default_mapping()
    assert mapping.task_keys() == set(blueprint.keys())
    assert mapping.unknown_keys(blueprint.keys()) == set()
    assert len(mapping) <= len(APOLLO_TASK_ALIASES)


def test_lookup_resolves_legacy_names():
    mapping = default_mapping()
    assert mapping.lookup("Finalize TIC") == "leasing_lihtc_certification"
    assert mapping.lookup("Collect Funds - PM/Accounting") == "leasing_collect_funds"
    assert mapping.lookup("Sign new leases") == "leasing_prepare_agreement"
    assert mapping.lookup("Mystery Task") is None


def test_conflicting_aliases_are_rejected():
    with pytest.raises(ValueError):
        NormalizationMap.from_aliases([("Sign Lease", "a"), ("sign  lease", "b")])
