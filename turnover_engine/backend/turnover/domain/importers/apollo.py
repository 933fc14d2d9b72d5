# backend/turnover/domain/importers/apollo.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional, Union

from ...errors import ImportDiagnostic, ValidationError
from ..vacancy.blueprint import VacancyWorkflowBlueprint
from ..vacancy.instance import HydrationPatch, RejectedPatch, VacancyWorkflowInstance
from ..vacancy.types import COMPLETE, IN_PROGRESS, PENDING, SKIPPED, VacancyWindow
from .apollo_mapping import NormalizationMap, default_mapping
from .base import has_column, optional_str, parse_csv_bytes, required

NAME_COLUMNS = ("Name", "Task", "Task Name")
STATUS_COLUMNS = ("Status", "Completed", "Completion")
COMPLETED_AT_COLUMNS = ("Completed At", "Completed On", "Completion Date")
CREATED_AT_COLUMNS = ("Created At", "Created")
MODIFIED_COLUMNS = ("Last Modified", "Updated At", "Modified")
STAGE_COLUMNS = ("Stage", "Section")
ASSIGNEE_COLUMNS = ("Assignee", "Assigned To", "Owner")

# Free-text completion markers seen in exports -> task status.
STATUS_MARKERS = {
    "complete": COMPLETE,
    "completed": COMPLETE,
    "done": COMPLETE,
    "yes": COMPLETE,
    "y": COMPLETE,
    "true": COMPLETE,
    "x": COMPLETE,
    "in progress": IN_PROGRESS,
    "in_progress": IN_PROGRESS,
    "started": IN_PROGRESS,
    "doing": IN_PROGRESS,
    "wip": IN_PROGRESS,
    "skipped": SKIPPED,
    "skip": SKIPPED,
    "n/a": SKIPPED,
    "na": SKIPPED,
    "not applicable": SKIPPED,
    "pending": PENDING,
    "not started": PENDING,
    "todo": PENDING,
    "to do": PENDING,
    "no": PENDING,
    "false": PENDING,
}


@dataclass(frozen=True)
class ApolloRow:
    row: int
    name: str
    stage: Optional[str]
    status_marker: Optional[str]
    completed_at: Optional[str]
    created_at: Optional[str]
    last_modified: Optional[str]
    assignee: Optional[str]


@dataclass(frozen=True)
class ApolloImportResult:
    instance: VacancyWorkflowInstance
    patches: tuple[HydrationPatch, ...]
    diagnostics: tuple[ImportDiagnostic, ...]
    rejected: tuple[RejectedPatch, ...]

    @property
    def applied_count(self) -> int:
        return len(self.patches) - len(self.rejected)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    RFC3339 timestamps (normalized to naive UTC) or bare YYYY-MM-DD dates.
    Returns None for blanks and for anything unreadable.
    """
    s = (value or "").strip()
    if not s:
        return None
    try:
        return datetime.strptime(s, "%Y-%m-%d")
    except ValueError:
        pass
    iso = s[:-1] + "+00:00" if s[-1] in ("Z", "z") else s
    try:
        dt = datetime.fromisoformat(iso)
    except ValueError:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _normalize_marker(raw: Optional[str]) -> Optional[str]:
    s = (raw or "").strip().lower()
    if not s:
        return None
    return STATUS_MARKERS.get(s)


def _touched(row: ApolloRow) -> bool:
    created = parse_timestamp(row.created_at)
    modified = parse_timestamp(row.last_modified)
    return created is not None and modified is not None and modified > created


def parse_apollo_csv(data: Union[bytes, str]) -> list[ApolloRow]:
    headers, rows = parse_csv_bytes(data)
    if rows and not has_column(headers, *NAME_COLUMNS):
        raise ValidationError("Apollo CSV is missing a task-name column (Name, Task or Task Name)")

    out: list[ApolloRow] = []
    for i, r in enumerate(rows, start=1):
        out.append(
            ApolloRow(
                row=i,
                name=required(r, *NAME_COLUMNS),
                stage=optional_str(r, *STAGE_COLUMNS),
                status_marker=optional_str(r, *STATUS_COLUMNS),
                completed_at=optional_str(r, *COMPLETED_AT_COLUMNS),
                created_at=optional_str(r, *CREATED_AT_COLUMNS),
                last_modified=optional_str(r, *MODIFIED_COLUMNS),
                assignee=optional_str(r, *ASSIGNEE_COLUMNS),
            )
        )
    return out


def patch_for_row(task_key: str, row: ApolloRow) -> tuple[Optional[HydrationPatch], list[ImportDiagnostic]]:
    """
    Status derivation, first match wins:
      1) explicit status marker
      2) a marker column holding a date means complete on that date
      3) a completion date means complete
      4) last_modified later than created_at means in progress
    An explicit "pending" marker yields no patch. A marker that is neither a
    known word nor a date is reported and the remaining rules still apply.
    """
    diagnostics: list[ImportDiagnostic] = []
    raw_marker = (row.status_marker or "").strip()
    marker = _normalize_marker(raw_marker)

    if raw_marker and marker is None:
        marker_ts = parse_timestamp(raw_marker)
        if marker_ts is not None:
            return HydrationPatch(task_key, COMPLETE, marker_ts.date(), source_row=row.row), diagnostics
        diagnostics.append(
            ImportDiagnostic(
                row=row.row,
                kind="unrecognized_marker",
                message=f"status marker for {row.name!r} is neither a known status nor a date; ignored",
                raw=raw_marker,
            )
        )

    if marker == COMPLETE or (marker is None and row.completed_at):
        if not row.completed_at:
            return HydrationPatch(task_key, COMPLETE, None, date_unknown=True, source_row=row.row), diagnostics
        ts = parse_timestamp(row.completed_at)
        if ts is None:
            diagnostics.append(
                ImportDiagnostic(
                    row=row.row,
                    kind="unparsable_date",
                    message=f"could not parse completion date for {row.name!r}; marked complete with unknown date",
                    raw=row.completed_at,
                )
            )
            return HydrationPatch(task_key, COMPLETE, None, date_unknown=True, source_row=row.row), diagnostics
        return HydrationPatch(task_key, COMPLETE, ts.date(), source_row=row.row), diagnostics

    if marker in (IN_PROGRESS, SKIPPED):
        return HydrationPatch(task_key, marker, None, source_row=row.row), diagnostics

    if marker == PENDING:
        return None, diagnostics

    if _touched(row):
        return HydrationPatch(task_key, IN_PROGRESS, None, source_row=row.row), diagnostics
    return None, diagnostics


def build_patches(
    rows: list[ApolloRow],
    blueprint: VacancyWorkflowBlueprint,
    mapping: Optional[NormalizationMap] = None,
) -> tuple[list[HydrationPatch], list[ImportDiagnostic]]:
    """
    One patch per task key. Later rows for the same task overwrite earlier
    ones (file order); the returned list follows blueprint order.
    """
    mapping = mapping or default_mapping()
    known = set(blueprint.keys())
    latest: dict[str, HydrationPatch] = {}
    diagnostics: list[ImportDiagnostic] = []

    for row in rows:
        if not row.name:
            diagnostics.append(ImportDiagnostic(row=row.row, kind="missing_name", message="row has no task name"))
            continue
        task_key = mapping.lookup(row.name)
        if task_key is None or task_key not in known:
            diagnostics.append(
                ImportDiagnostic(
                    row=row.row,
                    kind="unmapped_row",
                    message=f"task name {row.name!r} does not match any workflow task",
                    raw=row.name,
                )
            )
            continue
        patch, row_diags = patch_for_row(task_key, row)
        diagnostics.extend(row_diags)
        if patch is not None:
            latest[task_key] = patch

    ordered = [latest[k] for k in blueprint.keys() if k in latest]
    return ordered, diagnostics


def hydrate_instance(
    instance: VacancyWorkflowInstance,
    data: Union[bytes, str],
    mapping: Optional[NormalizationMap] = None,
) -> ApolloImportResult:
    rows = parse_apollo_csv(data)
    patches, diagnostics = build_patches(rows, instance.blueprint, mapping)
    result = instance.apply_hydration_patch(patches)
    return ApolloImportResult(
        instance=instance,
        patches=tuple(patches),
        diagnostics=tuple(diagnostics),
        rejected=result.rejected,
    )


def import_apollo_csv(
    data: Union[bytes, str],
    blueprint: VacancyWorkflowBlueprint,
    window: VacancyWindow,
    mapping: Optional[NormalizationMap] = None,
) -> ApolloImportResult:
    """Materialize a fresh instance for `window` and hydrate it from the export."""
    return hydrate_instance(VacancyWorkflowInstance(blueprint, window), data, mapping)


def import_apollo_file(
    path: Union[str, Path],
    blueprint: VacancyWorkflowBlueprint,
    window: VacancyWindow,
    mapping: Optional[NormalizationMap] = None,
) -> ApolloImportResult:
    # OSError propagates to the caller untouched.
    data = Path(path).read_bytes()
    return import_apollo_csv(data, blueprint, window, mapping)
