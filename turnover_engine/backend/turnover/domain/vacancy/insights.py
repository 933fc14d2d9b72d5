# backend/turnover/domain/vacancy/insights.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from .types import COMPLETE, role_label, stage_label

if TYPE_CHECKING:
    from ...config import Settings
    from .instance import TaskView, WorkflowSnapshot
    from .report import ComplianceAlert, StageProgress

ON_TRACK = "on_track"
MONITOR = "monitor"
AT_RISK = "at_risk"

READINESS_LABELS = {
    ON_TRACK: "On Track",
    MONITOR: "Monitor",
    AT_RISK: "At Risk",
}

FOCUS_MOST_OPEN = "most_open"
FOCUS_EARLIEST_OPEN = "earliest_open"

# Stage-specific automation play recommended when that stage is the focus.
STAGE_ACTIONS = {
    "marketing_and_advertising": "Refresh listing creative and auto-respond to new leads via SMS & email",
    "screening_and_application": "Trigger AI-driven applicant nudges and status updates across channels",
    "lease_signing_and_move_in": "Bundle lease packet tasks and push DocuSign reminders automatically",
    "handoff": "Send welcome workflow kickoff with onboarding checklist",
}

ESCALATE_COMPLIANCE = "Escalate compliance checklist to coordinator with documented follow-up"
DAILY_STANDUPS = "Schedule daily readiness standups until move-in blockers are cleared"
DISPATCH_OVERDUE = "Dispatch compliance alerts to AppFolio task queues for overdue work"
NO_BLOCKERS = "No blockers detected; maintain current automation cadence"


@dataclass(frozen=True)
class ReadinessPolicy:
    """
    Tunable knobs for readiness banding and blocker ranking.

    Levels:
      - on_track: score >= on_track_min
      - monitor:  monitor_min <= score < on_track_min
      - at_risk:  score < monitor_min
    """

    on_track_min: int = 70
    monitor_min: int = 40
    focus_rule: str = FOCUS_MOST_OPEN
    overdue_blocker_limit: int = 3
    blocker_limit: int = 5

    @classmethod
    def from_settings(cls, s: "Settings") -> "ReadinessPolicy":
        return cls(
            on_track_min=s.readiness_on_track_min,
            monitor_min=s.readiness_monitor_min,
            focus_rule=(s.focus_rule or FOCUS_MOST_OPEN).strip().lower(),
            overdue_blocker_limit=s.overdue_blocker_limit,
            blocker_limit=s.blocker_limit,
        )

    def level_for(self, score: int) -> str:
        if score >= self.on_track_min:
            return ON_TRACK
        if score >= self.monitor_min:
            return MONITOR
        return AT_RISK


@dataclass(frozen=True)
class VacancyInsights:
    readiness_score: int
    readiness_level: str
    expected_completion_pct: float
    days_until_move_in: int
    days_since_vacancy: int
    focus_stage: Optional[str]
    focus_stage_completion: Optional[float]
    blockers: tuple[str, ...] = field(default_factory=tuple)
    ai_observations: tuple[str, ...] = field(default_factory=tuple)
    recommended_actions: tuple[str, ...] = field(default_factory=tuple)
    automation_triggers: tuple[str, ...] = field(default_factory=tuple)

    def as_dict(self) -> dict[str, Any]:
        return {
            "readiness_score": self.readiness_score,
            "readiness_level": self.readiness_level,
            "expected_completion_pct": self.expected_completion_pct,
            "days_until_move_in": self.days_until_move_in,
            "days_since_vacancy": self.days_since_vacancy,
            "focus_stage": self.focus_stage,
            "focus_stage_completion": self.focus_stage_completion,
            "blockers": list(self.blockers),
            "ai_observations": list(self.ai_observations),
            "recommended_actions": list(self.recommended_actions),
            "automation_triggers": list(self.automation_triggers),
        }


def _round_half_up(x: float) -> int:
    return int(x + 0.5) if x >= 0 else -int(-x + 0.5)


def _plural(n: int) -> str:
    return "" if n == 1 else "s"


def readiness_score(completed: int, total: int) -> int:
    """round(100 * completed / total), half-up, in integer arithmetic."""
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


def expected_completion(snapshot: "WorkflowSnapshot") -> float:
    window_days = snapshot.window.length_days
    elapsed = (snapshot.as_of - snapshot.window.vacancy_start).days
    if window_days <= 0:
        return 1.0 if elapsed >= 0 else 0.0
    return min(1.0, max(0.0, elapsed / window_days))


def pick_focus_stage(stage_progress: list["StageProgress"], rule: str) -> Optional["StageProgress"]:
    """
    most_open:     stage with the most open tasks; ties go to the earlier stage
    earliest_open: first stage (declaration order) with any open task
    """
    best: Optional["StageProgress"] = None
    for sp in stage_progress:
        if sp.open <= 0:
            continue
        if rule == FOCUS_EARLIEST_OPEN:
            return sp
        if best is None or sp.open > best.open:
            best = sp
    return best


def render_blocker(task: "TaskView", as_of) -> str:
    if task.is_overdue(as_of):
        return f"{task.name} ({role_label(task.role)}), overdue since {task.due_date.isoformat()}"
    return f"{task.name} ({role_label(task.role)}), pending"


def build_insights(
    snapshot: "WorkflowSnapshot",
    stage_progress: list["StageProgress"],
    overdue: list["TaskView"],
    alerts: list["ComplianceAlert"],
    policy: ReadinessPolicy,
) -> VacancyInsights:
    as_of = snapshot.as_of
    window = snapshot.window

    total = len(snapshot.tasks)
    completed = sum(1 for t in snapshot.tasks if t.status == COMPLETE)
    open_tasks = total - completed
    score = readiness_score(completed, total)
    expected = expected_completion(snapshot)

    days_since_vacancy = (as_of - window.vacancy_start).days
    days_until_move_in = (window.target_move_in - as_of).days
    overdue_count = len(overdue)

    focus = pick_focus_stage(stage_progress, policy.focus_rule)

    # ---- blockers ----
    blockers: list[str] = []
    seen: set[str] = set()
    for t in overdue[: max(0, policy.overdue_blocker_limit)]:
        blockers.append(render_blocker(t, as_of))
        seen.add(t.key)
    if focus is not None:
        focus_open = [t for t in snapshot.tasks if t.stage == focus.stage and t.status != COMPLETE]
        focus_open.sort(key=lambda t: t.due_date)
        for t in focus_open:
            if t.key not in seen:
                blockers.append(render_blocker(t, as_of))
                seen.add(t.key)
    blockers = blockers[: max(0, policy.blocker_limit)]

    # ---- observations ----
    observations: list[str] = [f"{completed} of {total} tasks complete ({score}% readiness)"]
    if overdue_count > 0:
        observations.append(f"{overdue_count} critical task(s) overdue impacting compliance")
    if score + 5 < expected * 100:
        gap = _round_half_up(expected * 100 - score)
        observations.append(f"Progress is {gap}% below expected pace for this vacancy window")
    if days_until_move_in <= 7:
        observations.append(
            f"{max(days_until_move_in, 0)} day(s) until target move-in; prioritize move-in readiness"
        )

    # ---- recommended actions ----
    actions: list[str] = []
    if focus is not None:
        actions.append(
            f"Concentrate automation on {stage_label(focus.stage)} "
            f"({focus.open} open item{_plural(focus.open)})"
        )
        play = STAGE_ACTIONS.get(focus.stage)
        if play:
            actions.append(play)
    if alerts:
        actions.append(ESCALATE_COMPLIANCE)
    if days_until_move_in <= 5 and open_tasks > 0:
        actions.append(DAILY_STANDUPS)
    if not actions:
        actions.append(NO_BLOCKERS)

    # ---- automation triggers ----
    triggers: list[str] = []
    for sp in stage_progress:
        if sp.open > 0:
            triggers.append(
                f"Auto-remind {stage_label(sp.stage)} owners of {sp.open} remaining task{_plural(sp.open)}"
            )
    if overdue_count > 0:
        triggers.append(DISPATCH_OVERDUE)

    return VacancyInsights(
        readiness_score=score,
        readiness_level=policy.level_for(score),
        expected_completion_pct=expected,
        days_until_move_in=days_until_move_in,
        days_since_vacancy=days_since_vacancy,
        focus_stage=stage_label(focus.stage) if focus is not None else None,
        focus_stage_completion=focus.completion if focus is not None else None,
        blockers=tuple(blockers),
        ai_observations=tuple(observations),
        recommended_actions=tuple(actions),
        automation_triggers=tuple(triggers),
    )
