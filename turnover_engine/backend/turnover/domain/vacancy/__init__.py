# backend/turnover/domain/vacancy/__init__.py
from .blueprint import VacancyWorkflowBlueprint, standard_blueprint
from .instance import (
    HydrationPatch,
    HydrationResult,
    RejectedPatch,
    TaskView,
    VacancyWorkflowInstance,
    WorkflowSnapshot,
)
from .insights import ReadinessPolicy, VacancyInsights
from .report import VacancyReport, generate_report
from .types import VacancyWindow

__all__ = [
    "HydrationPatch",
    "HydrationResult",
    "ReadinessPolicy",
    "RejectedPatch",
    "TaskView",
    "VacancyInsights",
    "VacancyReport",
    "VacancyWindow",
    "VacancyWorkflowBlueprint",
    "VacancyWorkflowInstance",
    "WorkflowSnapshot",
    "generate_report",
    "standard_blueprint",
]
