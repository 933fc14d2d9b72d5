# backend/turnover/services/vacancy_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Optional, Union

from ..domain.importers.apollo import ApolloImportResult, hydrate_instance
from ..domain.vacancy.blueprint import VacancyWorkflowBlueprint, standard_blueprint
from ..domain.vacancy.insights import ReadinessPolicy
from ..domain.vacancy.instance import VacancyWorkflowInstance
from ..domain.vacancy.report import VacancyReport, generate_report
from ..domain.vacancy.types import VacancyWindow, parse_iso_date

log = logging.getLogger("turnover.vacancy")

DATA_SOURCE_APOLLO = "apollo"
DATA_SOURCE_STANDARD = "standard"


@dataclass(frozen=True)
class VacancyReportResult:
    report: VacancyReport
    instance: VacancyWorkflowInstance
    data_source: str
    imported: Optional[ApolloImportResult] = None

    def as_dict(self, include_tasks: bool = False) -> dict[str, Any]:
        out = self.report.as_dict()
        out["data_source"] = self.data_source
        if include_tasks:
            out["tasks"] = self.instance.task_details()
        if self.imported is not None:
            out["import_diagnostics"] = [d.as_dict() for d in self.imported.diagnostics]
            out["rejected_patches"] = [
                {"task_key": r.patch.task_key, "reason": r.reason} for r in self.imported.rejected
            ]
        return out


def build_vacancy_report(
    vacancy_start: Any,
    target_move_in: Any,
    today: Any = None,
    apollo_csv: Optional[Union[bytes, str]] = None,
    policy: Optional[ReadinessPolicy] = None,
    blueprint: Optional[VacancyWorkflowBlueprint] = None,
    task_updates: Optional[Iterable[tuple[str, str, Any]]] = None,
) -> VacancyReportResult:
    """
    One request's worth of work: window -> instance -> optional Apollo
    hydration -> manual status updates -> report. Every call builds its own
    instance.

    task_updates are (task_key, status, completed_on) triples applied after the
    import; InvalidTransition and TaskNotFound propagate to the caller.
    """
    window = VacancyWindow.parse(vacancy_start, target_move_in)
    as_of = parse_iso_date(today, "today") if today is not None else date.today()
    instance = VacancyWorkflowInstance(blueprint or standard_blueprint(), window)

    imported: Optional[ApolloImportResult] = None
    source = DATA_SOURCE_STANDARD
    if apollo_csv is not None and (apollo_csv.strip() if isinstance(apollo_csv, str) else apollo_csv):
        imported = hydrate_instance(instance, apollo_csv)
        source = DATA_SOURCE_APOLLO
        if imported.diagnostics:
            log.warning(
                "apollo import produced %d diagnostic(s)",
                len(imported.diagnostics),
                extra={"data_source": source},
            )

    for task_key, status, completed_on in task_updates or ():
        instance.apply_status(task_key, status, completed_on)

    report = generate_report(instance.snapshot(as_of), policy=policy)
    return VacancyReportResult(report=report, instance=instance, data_source=source, imported=imported)
