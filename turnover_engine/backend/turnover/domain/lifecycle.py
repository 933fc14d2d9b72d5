# backend/turnover/domain/lifecycle.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..errors import InvalidTransition, TaskNotFound
from .vacancy.blueprint import VacancyWorkflowBlueprint
from .vacancy.instance import VacancyWorkflowInstance
from .vacancy.types import COMPLETE, VacancyWindow

# -----------------------------------------------------------------------------
# Property lifecycle across workflow kinds
# -----------------------------------------------------------------------------
# The cycle lives between workflow *kinds*. Each vacancy instance is itself a
# short, acyclic checklist; finishing one fires a trigger that names the next
# kind of workflow to start.

TURNOVER = "turnover"
VACANCY = "vacancy"
NEW_RESIDENT = "new_resident"
MAINTENANCE = "maintenance"
RENEWAL = "renewal"
DELINQUENT_RENT = "delinquent_rent"

WORKFLOW_KINDS = [TURNOVER, VACANCY, NEW_RESIDENT, MAINTENANCE, RENEWAL, DELINQUENT_RENT]

# (from_kind, trigger) -> to_kind
LIFECYCLE_EDGES: dict[tuple[str, str], str] = {
    (TURNOVER, "make_ready_complete"): VACANCY,
    (VACANCY, "move_in_complete"): NEW_RESIDENT,
    (NEW_RESIDENT, "onboarding_complete"): MAINTENANCE,
    (MAINTENANCE, "renewal_window_open"): RENEWAL,
    (MAINTENANCE, "rent_delinquent"): DELINQUENT_RENT,
    (MAINTENANCE, "notice_to_vacate"): TURNOVER,
    (RENEWAL, "lease_renewed"): MAINTENANCE,
    (RENEWAL, "notice_to_vacate"): TURNOVER,
    (DELINQUENT_RENT, "balance_cured"): MAINTENANCE,
    (DELINQUENT_RENT, "move_out"): TURNOVER,
}

HANDOFF_TASK_KEY = "handoff_start_new_resident_workflow"


@dataclass(frozen=True)
class LifecycleStep:
    from_kind: str
    trigger: str
    to_kind: str


def triggers_for(kind: str) -> list[str]:
    return sorted(t for (k, t) in LIFECYCLE_EDGES if k == kind)


def next_workflow(kind: str, trigger: str) -> LifecycleStep:
    to_kind = LIFECYCLE_EDGES.get((kind, trigger))
    if to_kind is None:
        raise InvalidTransition(kind, kind, trigger, "no lifecycle edge for this trigger")
    return LifecycleStep(from_kind=kind, trigger=trigger, to_kind=to_kind)


def spawn_vacancy(
    trigger: str,
    blueprint: VacancyWorkflowBlueprint,
    window: VacancyWindow,
) -> VacancyWorkflowInstance:
    """make_ready_complete on a turnover opens a fresh vacancy instance."""
    step = next_workflow(TURNOVER, trigger)
    if step.to_kind != VACANCY:
        raise InvalidTransition(TURNOVER, TURNOVER, trigger, "trigger does not open a vacancy")
    return VacancyWorkflowInstance(blueprint, window)


def handoff_trigger(instance: VacancyWorkflowInstance) -> Optional[str]:
    """Returns "move_in_complete" once the handoff task is complete, else None."""
    try:
        status = instance.status_of(HANDOFF_TASK_KEY)
    except TaskNotFound:
        return None
    return "move_in_complete" if status == COMPLETE else None
