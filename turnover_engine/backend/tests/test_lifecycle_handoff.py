# backend/tests/test_lifecycle_handoff.py
from __future__ import annotations

import pytest

from turnover.domain.lifecycle import (
    MAINTENANCE,
    NEW_RESIDENT,
    TURNOVER,
    VACANCY,
    handoff_trigger,
    next_workflow,
    spawn_vacancy,
    triggers_for,
)
from turnover.domain.vacancy.blueprint import VacancyWorkflowBlueprint
from turnover.domain.vacancy.instance import VacancyWorkflowInstance
from turnover.errors import InvalidTransition


def test_vacancy_hands_off_to_new_resident():
    step = next_workflow(VACANCY, "move_in_complete")
    assert step.to_kind == NEW_RESIDENT


def test_lifecycle_returns_to_turnover():
    assert next_workflow(MAINTENANCE, "notice_to_vacate").to_kind == TURNOVER
    assert next_workflow(TURNOVER, "make_ready_complete").to_kind == VACANCY


def test_unknown_trigger_is_rejected():
    with pytest.raises(InvalidTransition):
        next_workflow(VACANCY, "lease_renewed")


def test_triggers_for_maintenance():
    assert triggers_for(MAINTENANCE) == ["notice_to_vacate", "renewal_window_open", "rent_delinquent"]


def test_spawn_vacancy_opens_a_fresh_instance(blueprint, window):
    inst = spawn_vacancy("make_ready_complete", blueprint, window)
    assert len(inst) == 10
    assert handoff_trigger(inst) is None

    with pytest.raises(InvalidTransition):
        spawn_vacancy("move_out", blueprint, window)


def test_handoff_fires_once_handoff_task_completes(instance):
    instance.apply_status("handoff_start_new_resident_workflow", "complete", "2025-10-08")
    assert handoff_trigger(instance) == "move_in_complete"


def test_handoff_absent_from_custom_blueprint(window):
    inst = VacancyWorkflowInstance(VacancyWorkflowBlueprint(version="x", templates=()), window)
    assert handoff_trigger(inst) is None
