# backend/turnover/domain/vacancy/instance.py
from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Optional

from ...errors import InvalidTransition, TaskNotFound
from .blueprint import VacancyWorkflowBlueprint
from .types import (
    COMPLETE,
    PENDING,
    STATUS_LABELS,
    TaskTemplate,
    VacancyWindow,
    check_transition,
    parse_iso_date,
    role_label,
    stage_label,
    stage_rank,
)


@dataclass(frozen=True)
class TaskView:
    """Read-only projection of one task at snapshot time."""

    template: TaskTemplate
    due_date: date
    status: str
    completed_on: Optional[date]

    @property
    def key(self) -> str:
        return self.template.key

    @property
    def name(self) -> str:
        return self.template.name

    @property
    def stage(self) -> str:
        return self.template.stage

    @property
    def role(self) -> str:
        return self.template.role

    @property
    def is_complete(self) -> bool:
        return self.status == COMPLETE

    def is_overdue(self, as_of: date) -> bool:
        return self.due_date < as_of and self.status != COMPLETE

    def as_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "stage": self.stage,
            "stage_label": stage_label(self.stage),
            "role": self.role,
            "role_label": role_label(self.role),
            "due_date": self.due_date.isoformat(),
            "status": self.status,
            "status_label": STATUS_LABELS.get(self.status, self.status),
            "completed_on": self.completed_on.isoformat() if self.completed_on else None,
        }

    def detail_dict(self) -> dict[str, Any]:
        d = self.as_dict()
        d["completed"] = self.is_complete
        d["deliverables"] = list(self.template.deliverables)
        d["compliance"] = [n.as_dict() for n in self.template.compliance]
        return d


@dataclass(frozen=True)
class WorkflowSnapshot:
    as_of: date
    window: VacancyWindow
    blueprint_version: str
    tasks: tuple[TaskView, ...]


@dataclass(frozen=True)
class HydrationPatch:
    task_key: str
    status: str
    completed_on: Optional[date] = None
    date_unknown: bool = False
    source_row: Optional[int] = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "task_key": self.task_key,
            "status": self.status,
            "completed_on": self.completed_on.isoformat() if self.completed_on else None,
            "date_unknown": self.date_unknown,
            "source_row": self.source_row,
        }


@dataclass(frozen=True)
class RejectedPatch:
    patch: HydrationPatch
    reason: str


@dataclass(frozen=True)
class HydrationResult:
    applied: tuple[HydrationPatch, ...]
    rejected: tuple[RejectedPatch, ...]


class _TaskState:
    __slots__ = ("template", "due_date", "status", "completed_on")

    def __init__(self, template: TaskTemplate, due_date: date) -> None:
        self.template = template
        self.due_date = due_date
        self.status = PENDING
        self.completed_on: Optional[date] = None

    def view(self) -> TaskView:
        return TaskView(
            template=self.template,
            due_date=self.due_date,
            status=self.status,
            completed_on=self.completed_on,
        )


class VacancyWorkflowInstance:
    """
    Runtime state of one vacancy turnover.

    Owns one task per blueprint template. Every mutation and every snapshot
    takes the instance lock, so readers never see a half-applied transition.
    """

    def __init__(self, blueprint: VacancyWorkflowBlueprint, window: VacancyWindow) -> None:
        self._blueprint = blueprint
        self._window = window
        self._lock = threading.RLock()
        self._tasks: list[_TaskState] = [_TaskState(t, t.due.resolve(window)) for t in blueprint.templates]
        self._by_key: dict[str, _TaskState] = {t.template.key: t for t in self._tasks}

    @classmethod
    def create(cls, blueprint: VacancyWorkflowBlueprint, vacancy_start: Any, target_move_in: Any) -> "VacancyWorkflowInstance":
        return cls(blueprint, VacancyWindow.parse(vacancy_start, target_move_in))

    @property
    def blueprint(self) -> VacancyWorkflowBlueprint:
        return self._blueprint

    @property
    def window(self) -> VacancyWindow:
        return self._window

    def __len__(self) -> int:
        return len(self._tasks)

    def status_of(self, task_key: str) -> str:
        with self._lock:
            return self._get(task_key).status

    def _get(self, task_key: str) -> _TaskState:
        st = self._by_key.get(task_key)
        if st is None:
            raise TaskNotFound(task_key)
        return st

    def _apply(self, task_key: str, status: str, completed_on: Optional[date], date_unknown: bool) -> _TaskState:
        st = self._get(task_key)
        check_transition(task_key, st.status, status, completed_on, date_unknown=date_unknown)
        st.status = status
        st.completed_on = completed_on if status == COMPLETE else None
        return st

    def apply_status(self, task_key: str, status: str, completed_on: Any = None) -> TaskView:
        """
        Move one task to `status`.

        Raises TaskNotFound for unknown keys and InvalidTransition for
        regressions or a completed_on that does not match the status. The
        task is left untouched on failure.
        """
        on = parse_iso_date(completed_on, "completed_on") if completed_on is not None else None
        with self._lock:
            return self._apply(task_key, (status or "").strip().lower(), on, False).view()

    def apply_hydration_patch(self, patches: Iterable[HydrationPatch]) -> HydrationResult:
        applied: list[HydrationPatch] = []
        rejected: list[RejectedPatch] = []
        with self._lock:
            for p in patches:
                try:
                    self._apply(p.task_key, p.status, p.completed_on, p.date_unknown)
                except (InvalidTransition, TaskNotFound) as e:
                    rejected.append(RejectedPatch(patch=p, reason=str(e)))
                    continue
                applied.append(p)
        return HydrationResult(applied=tuple(applied), rejected=tuple(rejected))

    def snapshot(self, as_of: date) -> WorkflowSnapshot:
        with self._lock:
            views = tuple(t.view() for t in self._tasks)
        return WorkflowSnapshot(
            as_of=as_of,
            window=self._window,
            blueprint_version=self._blueprint.version,
            tasks=views,
        )

    def task_details(self) -> list[dict[str, Any]]:
        with self._lock:
            views = [t.view() for t in self._tasks]
        order = {k: i for i, k in enumerate(self._blueprint.keys())}
        views.sort(key=lambda v: (v.due_date, stage_rank(v.stage), order[v.key]))
        return [v.detail_dict() for v in views]
