# backend/turnover/services/alerts.py
from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Protocol

log = logging.getLogger("turnover.alerts")


@dataclass(frozen=True)
class ApplicationAlert:
    template: str
    application_id: str
    details: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {"template": self.template, "application_id": self.application_id, "details": dict(self.details)}


class AlertPublisher(Protocol):
    def publish(self, alert: ApplicationAlert) -> None: ...


class InMemoryAlertPublisher:
    """Collects alerts in a list. Used by tests and the demo app."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._alerts: list[ApplicationAlert] = []

    def publish(self, alert: ApplicationAlert) -> None:
        with self._lock:
            self._alerts.append(alert)

    @property
    def alerts(self) -> list[ApplicationAlert]:
        with self._lock:
            return list(self._alerts)


class LoggingAlertPublisher:
    """Writes each alert as one structured log line; stands in for a ticketing integration."""

    def publish(self, alert: ApplicationAlert) -> None:
        log.info(json.dumps({"event": "application_alert", **alert.as_dict()}, default=str))
