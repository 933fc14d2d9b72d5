# backend/turnover/domain/vacancy/report.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from ...errors import DegenerateBlueprint
from .insights import ReadinessPolicy, VacancyInsights, build_insights
from .instance import TaskView, WorkflowSnapshot
from .types import (
    COMPLETE,
    ROLE_ORDER,
    SEVERITY_BLOCKING,
    SEVERITY_LABELS,
    SEVERITY_WARNING,
    STAGE_ORDER,
    VacancyWindow,
    role_label,
    stage_label,
    stage_rank,
)


@dataclass(frozen=True)
class StageProgress:
    stage: str
    completed: int
    total: int

    @property
    def open(self) -> int:
        return self.total - self.completed

    @property
    def completion(self) -> float:
        return (self.completed / self.total) if self.total else 0.0

    def as_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "stage_label": stage_label(self.stage),
            "completed": self.completed,
            "total": self.total,
            "completion": self.completion,
        }


@dataclass(frozen=True)
class RoleLoad:
    role: str
    open: int
    overdue: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "role": self.role,
            "role_label": role_label(self.role),
            "open": self.open,
            "overdue": self.overdue,
        }


@dataclass(frozen=True)
class ComplianceAlert:
    task_key: str
    topic: str
    detail: str
    severity: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "task_key": self.task_key,
            "topic": self.topic,
            "detail": self.detail,
            "severity": self.severity,
            "severity_label": SEVERITY_LABELS.get(self.severity, self.severity),
        }


@dataclass(frozen=True)
class VacancyReport:
    as_of: date
    window: VacancyWindow
    stage_progress: tuple[StageProgress, ...]
    role_load: tuple[RoleLoad, ...]
    overdue_tasks: tuple[TaskView, ...]
    compliance_alerts: tuple[ComplianceAlert, ...]
    insights: VacancyInsights

    def as_dict(self) -> dict[str, Any]:
        return {
            "vacancy_start": self.window.vacancy_start.isoformat(),
            "target_move_in": self.window.target_move_in.isoformat(),
            "today": self.as_of.isoformat(),
            "stage_progress": [s.as_dict() for s in self.stage_progress],
            "role_load": [r.as_dict() for r in self.role_load],
            "overdue_tasks": [t.as_dict() for t in self.overdue_tasks],
            "compliance_alerts": [a.as_dict() for a in self.compliance_alerts],
            "insights": self.insights.as_dict(),
        }


def _stage_progress(tasks: tuple[TaskView, ...]) -> list[StageProgress]:
    out: list[StageProgress] = []
    for stage in STAGE_ORDER:
        in_stage = [t for t in tasks if t.stage == stage]
        if not in_stage:
            continue
        done = sum(1 for t in in_stage if t.status == COMPLETE)
        out.append(StageProgress(stage=stage, completed=done, total=len(in_stage)))
    return out


def _role_load(tasks: tuple[TaskView, ...], as_of: date) -> list[RoleLoad]:
    out: list[RoleLoad] = []
    for role in ROLE_ORDER:
        mine = [t for t in tasks if t.role == role]
        if not mine:
            continue
        open_ = sum(1 for t in mine if t.status != COMPLETE)
        overdue = sum(1 for t in mine if t.is_overdue(as_of))
        out.append(RoleLoad(role=role, open=open_, overdue=overdue))
    return out


def _compliance_alerts(tasks: tuple[TaskView, ...]) -> list[ComplianceAlert]:
    # Standing reminders: surfaced for every template regardless of task status.
    out: list[ComplianceAlert] = []
    for t in tasks:
        severity = SEVERITY_BLOCKING if t.template.critical else SEVERITY_WARNING
        for note in t.template.compliance:
            out.append(
                ComplianceAlert(task_key=t.key, topic=note.topic, detail=note.detail, severity=severity)
            )
    return out


def generate_report(
    snapshot: WorkflowSnapshot,
    as_of: Optional[date] = None,
    policy: Optional[ReadinessPolicy] = None,
) -> VacancyReport:
    """
    Pure projection of a workflow snapshot into readiness metrics.

    - as_of defaults to the snapshot's own as_of; passing a different date
      re-evaluates the overdue predicate without touching task state
    - raises DegenerateBlueprint when there are no tasks at all
    """
    if not snapshot.tasks:
        raise DegenerateBlueprint()

    if as_of is not None and as_of != snapshot.as_of:
        snapshot = WorkflowSnapshot(
            as_of=as_of,
            window=snapshot.window,
            blueprint_version=snapshot.blueprint_version,
            tasks=snapshot.tasks,
        )
    when = snapshot.as_of
    policy = policy or ReadinessPolicy()

    position = {t.key: i for i, t in enumerate(snapshot.tasks)}
    overdue = [t for t in snapshot.tasks if t.is_overdue(when)]
    overdue.sort(key=lambda t: (t.due_date, stage_rank(t.stage), position[t.key]))

    stage_progress = _stage_progress(snapshot.tasks)
    alerts = _compliance_alerts(snapshot.tasks)
    insights = build_insights(snapshot, stage_progress, overdue, alerts, policy)

    return VacancyReport(
        as_of=when,
        window=snapshot.window,
        stage_progress=tuple(stage_progress),
        role_load=tuple(_role_load(snapshot.tasks, when)),
        overdue_tasks=tuple(overdue),
        compliance_alerts=tuple(alerts),
        insights=insights,
    )
