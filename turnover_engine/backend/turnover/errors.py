# backend/turnover/errors.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class TurnoverError(Exception):
    """
    Base class for every typed failure raised by the turnover core.

    Subclasses are plain (non-frozen) dataclasses: contextlib assigns
    __traceback__ on exceptions leaving a generator context manager.
    """


@dataclass(eq=False)
class ValidationError(TurnoverError):
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(eq=False)
class InvalidTransition(TurnoverError):
    task_key: str
    current: str
    requested: str
    reason: str

    def __str__(self) -> str:
        return f"{self.task_key}: cannot move {self.current} -> {self.requested} ({self.reason})"


@dataclass(eq=False)
class TaskNotFound(TurnoverError):
    task_key: str

    def __str__(self) -> str:
        return f"task with key {self.task_key} not found"


@dataclass(eq=False)
class DegenerateBlueprint(TurnoverError):
    message: str = "workflow instance has zero tasks; cannot build a report"

    def __str__(self) -> str:
        return self.message


@dataclass(eq=False)
class ComplianceViolation(TurnoverError):
    practice: str
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(eq=False)
class IncompleteApplication(TurnoverError):
    missing: tuple[str, ...]

    def __str__(self) -> str:
        return "application incomplete; missing: " + ", ".join(self.missing)


@dataclass(eq=False)
class DuplicateApplication(TurnoverError):
    application_id: str
    existing: Optional[Any] = None

    def __str__(self) -> str:
        return f"application already submitted as {self.application_id}"


@dataclass(eq=False)
class ApplicationNotFound(TurnoverError):
    application_id: str

    def __str__(self) -> str:
        return f"application {self.application_id} not found"


@dataclass(eq=False)
class MediaGatewayError(TurnoverError):
    """The media store behind a listing could not be read or written."""

    operation: str
    message: str

    def __str__(self) -> str:
        return f"media {self.operation} failed: {self.message}"


@dataclass(eq=False)
class ProspectEvaluationError(TurnoverError):
    prospect: str
    reason: str

    def __str__(self) -> str:
        return f"unable to evaluate prospect {self.prospect}: {self.reason}"


@dataclass(frozen=True)
class ImportDiagnostic:
    """
    Non-fatal note produced while hydrating a workflow from an external export.

    kind:
      - unmapped_row     task name has no entry in the mapping table
      - unparsable_date  completion date could not be read; status kept, date dropped
      - missing_name     row had no task-name value at all
      - unrecognized_marker  status column held neither a known word nor a date
    """

    row: int
    kind: str
    message: str
    raw: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        return {"row": self.row, "kind": self.kind, "message": self.message, "raw": self.raw}
