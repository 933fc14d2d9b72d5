# backend/turnover/cli/__main__.py
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError as PayloadError

from turnover.config import settings
from turnover.domain.applications.engine import EvaluationEngine
from turnover.domain.applications.rules import EvaluationConfig
from turnover.domain.applications.types import ApplicationSubmission
from turnover.domain.vacancy.blueprint import standard_blueprint
from turnover.domain.vacancy.insights import ReadinessPolicy
from turnover.errors import TurnoverError, ValidationError
from turnover.logging_config import configure_logging
from turnover.schemas import ApplicationSubmissionIn
from turnover.services.vacancy_service import build_vacancy_report


def _dump(obj) -> None:
    print(json.dumps(obj, indent=2, default=str))


def _vacancy_report(args: argparse.Namespace) -> int:
    apollo_csv: Optional[bytes] = None
    if args.apollo_csv:
        apollo_csv = Path(args.apollo_csv).read_bytes()

    result = build_vacancy_report(
        args.vacancy_start,
        args.target_move_in,
        today=args.today,
        apollo_csv=apollo_csv,
        policy=ReadinessPolicy.from_settings(settings),
    )
    _dump(result.as_dict(include_tasks=args.list_tasks))
    return 0


def _blueprint(args: argparse.Namespace) -> int:
    _dump(standard_blueprint().as_dict())
    return 0


def _load_application(path: str) -> dict[str, Any]:
    """Reads one application JSON object, shaped the same way the HTTP route accepts it."""
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValidationError(f"{path} is not valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise ValidationError(f"{path} must hold a JSON object, got {type(raw).__name__}")
    try:
        return ApplicationSubmissionIn.model_validate(raw).to_payload()
    except PayloadError as e:
        raise ValidationError(f"{path} is not a valid application: {e.error_count()} problem(s)") from e


def _evaluate(args: argparse.Namespace) -> int:
    payload = _load_application(args.payload)
    engine = EvaluationEngine(EvaluationConfig.from_settings(settings))
    outcome = engine.evaluate(ApplicationSubmission.from_payload(payload))
    _dump(
        {
            "decision": outcome.decision.outcome,
            "status": outcome.decision.status,
            "decision_rationale": outcome.decision.rationale,
            "total_score": outcome.total_score,
            "components": [
                {"factor": c.factor, "points": c.points, "justification": c.justification}
                for c in outcome.components
            ],
        }
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="turnover")
    sub = p.add_subparsers(dest="command", required=True)

    r = sub.add_parser("vacancy-report", help="build a vacancy readiness report")
    r.add_argument("--vacancy-start", required=True, help="YYYY-MM-DD")
    r.add_argument("--target-move-in", required=True, help="YYYY-MM-DD")
    r.add_argument("--today", default=None, help="YYYY-MM-DD (defaults to the current date)")
    r.add_argument("--apollo-csv", default=None, help="path to an Apollo task export")
    r.add_argument("--list-tasks", action="store_true", help="include every task with its details")
    r.set_defaults(func=_vacancy_report)

    b = sub.add_parser("blueprint", help="print the standard vacancy blueprint")
    b.set_defaults(func=_blueprint)

    e = sub.add_parser("evaluate-application", help="score one application payload (JSON file)")
    e.add_argument("payload")
    e.set_defaults(func=_evaluate)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    configure_logging(stream=sys.stderr)
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except (TurnoverError, OSError) as e:
        print(json.dumps({"ok": False, "error": str(e)}), file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
