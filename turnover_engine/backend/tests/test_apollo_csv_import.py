# backend/tests/test_apollo_csv_import.py
from __future__ import annotations

from datetime import date

import pytest

from turnover.domain.importers.apollo import (
    build_patches,
    hydrate_instance,
    import_apollo_csv,
    import_apollo_file,
    parse_apollo_csv,
    parse_timestamp,
)
from turnover.domain.importers.apollo_mapping import NormalizationMap
from turnover.domain.vacancy.report import generate_report
from turnover.domain.vacancy.types import COMPLETE, IN_PROGRESS, PENDING, SKIPPED
from turnover.errors import ValidationError

APOLLO_EXPORT = (
    "Name,Status,Completed At,Created At,Last Modified\n"
    '"Create and Publish Listing - Leasing Agent",Done,2025-09-24,,\n'
    '"Update Vacancy in AppFolio – Leasing Agent",Complete,2025-09-25T14:00:00Z,,\n'
    '"Manage Inquiries & Schedule Showings - Leasing Agent",,2025-09-26,,\n'
    '"Process Rental Applications",,,2025-09-26T10:00:00Z,2025-09-27T09:00:00Z\n'
    '"Mystery Task",Done,2025-09-26,,\n'
    '"Notify Applicants of Status",Done,sometime last week,,\n'
)


def test_import_hydrates_completed_and_touched_tasks(blueprint, window):
    result = import_apollo_csv(APOLLO_EXPORT.encode("utf-8"), blueprint, window)
    inst = result.instance

    assert inst.status_of("marketing_publish_listing") == COMPLETE
    assert inst.status_of("marketing_update_appfolio") == COMPLETE
    assert inst.status_of("screening_manage_inquiries") == COMPLETE
    assert inst.status_of("screening_process_applications") == IN_PROGRESS
    assert inst.status_of("screening_notify_applicants") == COMPLETE
    assert inst.status_of("leasing_prepare_agreement") == PENDING
    assert result.applied_count == 5
    assert result.rejected == ()

    appfolio = next(p for p in result.patches if p.task_key == "marketing_update_appfolio")
    assert appfolio.completed_on == date(2025, 9, 25)


def test_import_reports_diagnostics_instead_of_failing(blueprint, window):
    result = import_apollo_csv(APOLLO_EXPORT, blueprint, window)
    kinds = [(d.row, d.kind) for d in result.diagnostics]

    assert kinds == [(5, "unmapped_row"), (6, "unparsable_date")]
    assert result.diagnostics[0].raw == "Mystery Task"
    assert result.diagnostics[1].raw == "sometime last week"

    notify = next(p for p in result.patches if p.task_key == "screening_notify_applicants")
    assert notify.date_unknown is True
    assert notify.completed_on is None


def test_completed_tasks_drop_out_of_overdue(blueprint, window):
    result = import_apollo_csv(APOLLO_EXPORT, blueprint, window)
    report = generate_report(result.instance.snapshot(date(2025, 10, 2)))

    assert [t.key for t in report.overdue_tasks] == [
        "screening_process_applications",
        "leasing_prepare_agreement",
    ]
    assert report.insights.readiness_score == 40
    assert report.insights.readiness_level == "monitor"


def test_reimporting_the_same_export_is_idempotent(blueprint, window):
    first = import_apollo_csv(APOLLO_EXPORT, blueprint, window)
    before = first.instance.task_details()

    again = hydrate_instance(first.instance, APOLLO_EXPORT)

    assert again.rejected == ()
    assert first.instance.task_details() == before


def test_later_rows_win_for_the_same_task(blueprint):
    csv_text = (
        "Task,Status,Completed On\n"
        "Prepare Lease Agreement,In Progress,\n"
        "Prepare Lease Agreement,Done,2025-09-30\n"
        "Create and Publish Listing,n/a,\n"
    )
    patches, diags = build_patches(parse_apollo_csv(csv_text), blueprint)

    assert diags == []
    # blueprint order, not file order
    assert [(p.task_key, p.status) for p in patches] == [
        ("marketing_publish_listing", SKIPPED),
        ("leasing_prepare_agreement", COMPLETE),
    ]
    assert patches[1].source_row == 2


def test_pending_marker_and_untouched_rows_produce_no_patch(blueprint):
    csv_text = (
        "Name,Status,Created At,Last Modified\n"
        "Prepare Lease Agreement,Not Started,2025-09-24,2025-09-27\n"
        "Collect Funds,,2025-09-24,2025-09-24\n"
    )
    patches, diags = build_patches(parse_apollo_csv(csv_text), blueprint)
    assert patches == []
    assert diags == []


def test_done_marker_without_date_marks_complete_with_unknown_date(blueprint):
    patches, diags = build_patches(parse_apollo_csv("Name,Status\nFinalize TIC,x\n"), blueprint)
    assert len(patches) == 1
    assert patches[0].status == COMPLETE
    assert patches[0].date_unknown is True
    assert diags == []


def test_blank_name_rows_are_reported(blueprint):
    patches, diags = build_patches(parse_apollo_csv("Name,Status\n,Done\n"), blueprint)
    assert patches == []
    assert [d.kind for d in diags] == ["missing_name"]


def test_missing_name_column_is_a_validation_error():
    with pytest.raises(ValidationError):
        parse_apollo_csv("Status,Completed At\nDone,2025-09-24\n")


def test_header_only_export_is_empty():
    assert parse_apollo_csv("Name,Status\n") == []


def test_bom_prefixed_export_is_read(blueprint, window):
    data = ("\ufeff" + APOLLO_EXPORT).encode("utf-8")
    result = import_apollo_csv(data, blueprint, window)
    assert result.instance.status_of("marketing_publish_listing") == COMPLETE


def test_custom_mapping_is_honored(blueprint, window):
    mapping = NormalizationMap.from_aliases([("Post the ad", "marketing_publish_listing")])
    result = import_apollo_csv("Name,Status,Completed At\nPost the ad,Done,2025-09-24\n", blueprint, window, mapping)
    assert result.instance.status_of("marketing_publish_listing") == COMPLETE


def test_import_from_file(tmp_path, blueprint, window):
    p = tmp_path / "apollo.csv"
    p.write_text(APOLLO_EXPORT, encoding="utf-8")
    result = import_apollo_file(p, blueprint, window)
    assert result.applied_count == 5


def test_missing_file_raises_oserror(tmp_path, blueprint, window):
    with pytest.raises(OSError):
        import_apollo_file(tmp_path / "missing.csv", blueprint, window)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("2025-09-24", (2025, 9, 24, 0)),
        ("2025-09-25T14:00:00Z", (2025, 9, 25, 14)),
        ("2025-09-25T23:30:00-05:00", (2025, 9, 26, 4)),
    ],
)
def test_parse_timestamp(raw, expected):
    ts = parse_timestamp(raw)
    assert (ts.year, ts.month, ts.day, ts.hour) == expected
    assert ts.tzinfo is None


def test_parse_timestamp_rejects_garbage():
    assert parse_timestamp("") is None
    assert parse_timestamp("last tuesday") is None


def test_completed_column_holding_a_date_marks_complete_on_that_date(blueprint, window):
    result = import_apollo_csv("Name,Completed\nCreate and Publish Listing,2025-09-25\n", blueprint, window)

    assert result.diagnostics == ()
    assert [(p.task_key, p.status, p.completed_on) for p in result.patches] == [
        ("marketing_publish_listing", COMPLETE, date(2025, 9, 25)),
    ]
    assert result.instance.status_of("marketing_publish_listing") == COMPLETE


def test_unrecognized_marker_is_reported_and_other_columns_still_apply(blueprint):
    csv_text = (
        "Name,Status,Completed At\n"
        "Create and Publish Listing,blocked on owner,\n"
        "Prepare Lease Agreement,maybe,2025-09-30\n"
    )
    patches, diags = build_patches(parse_apollo_csv(csv_text), blueprint)

    assert [(d.row, d.kind, d.raw) for d in diags] == [
        (1, "unrecognized_marker", "blocked on owner"),
        (2, "unrecognized_marker", "maybe"),
    ]
    assert [(p.task_key, p.status, p.completed_on) for p in patches] == [
        ("leasing_prepare_agreement", COMPLETE, date(2025, 9, 30)),
    ]


def test_oversized_cell_is_a_validation_error():
    csv_text = "Name,Notes\nCreate and Publish Listing," + "x" * 200_000 + "\n"
    with pytest.raises(ValidationError) as ei:
        parse_apollo_csv(csv_text)
    assert "could not be read" in str(ei.value)
