# backend/turnover/services/application_store.py
from __future__ import annotations

import json
import threading
from datetime import datetime
from typing import Callable, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db import session_scope
from ..domain.applications.record import ApplicationRecord
from ..domain.applications.types import SUBMITTED
from ..errors import ApplicationNotFound
from ..models import ApplicationRow


class ApplicationRepository(Protocol):
    def insert(self, record: ApplicationRecord) -> ApplicationRecord: ...

    def update(self, record: ApplicationRecord) -> ApplicationRecord: ...

    def fetch(self, application_id: str) -> Optional[ApplicationRecord]: ...

    def find_by_dedupe_key(self, dedupe_key: str) -> Optional[ApplicationRecord]: ...

    def pending(self, limit: int = 100) -> list[ApplicationRecord]: ...


class DuplicateKey(ValueError):
    pass


class InMemoryApplicationRepository:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: dict[str, ApplicationRecord] = {}
        self._dedupe: dict[str, str] = {}

    def insert(self, record: ApplicationRecord) -> ApplicationRecord:
        with self._lock:
            if record.application_id in self._rows or record.dedupe_key in self._dedupe:
                raise DuplicateKey(record.application_id)
            self._rows[record.application_id] = record
            self._dedupe[record.dedupe_key] = record.application_id
            return record

    def update(self, record: ApplicationRecord) -> ApplicationRecord:
        with self._lock:
            if record.application_id not in self._rows:
                raise ApplicationNotFound(record.application_id)
            self._rows[record.application_id] = record
            return record

    def fetch(self, application_id: str) -> Optional[ApplicationRecord]:
        with self._lock:
            return self._rows.get(application_id)

    def find_by_dedupe_key(self, dedupe_key: str) -> Optional[ApplicationRecord]:
        with self._lock:
            app_id = self._dedupe.get(dedupe_key)
            return self._rows.get(app_id) if app_id else None

    def pending(self, limit: int = 100) -> list[ApplicationRecord]:
        with self._lock:
            rows = [r for r in self._rows.values() if r.status == SUBMITTED]
        rows.sort(key=lambda r: r.created_at)
        return rows[:limit]


class SqlApplicationRepository:
    """
    SQLAlchemy-backed store. Every call runs in its own session_scope, so a
    failed write is rolled back before the exception reaches the service.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _to_record(row: ApplicationRow) -> ApplicationRecord:
        return ApplicationRecord.from_storage(json.loads(row.record_json))

    @staticmethod
    def _to_json(record: ApplicationRecord) -> str:
        return json.dumps(record.to_storage(), default=str)

    def _one(self, db: Session, *where) -> Optional[ApplicationRow]:
        return db.scalar(select(ApplicationRow).where(*where))

    def insert(self, record: ApplicationRecord) -> ApplicationRecord:
        with session_scope(self._session_factory) as db:
            clash = self._one(
                db,
                (ApplicationRow.application_id == record.application_id)
                | (ApplicationRow.dedupe_key == record.dedupe_key),
            )
            if clash is not None:
                raise DuplicateKey(record.application_id)
            db.add(
                ApplicationRow(
                    application_id=record.application_id,
                    dedupe_key=record.dedupe_key,
                    unit_id=record.submission.listing.unit_id,
                    status=record.status,
                    record_json=self._to_json(record),
                    created_at=record.created_at,
                )
            )
        return record

    def update(self, record: ApplicationRecord) -> ApplicationRecord:
        with session_scope(self._session_factory) as db:
            row = self._one(db, ApplicationRow.application_id == record.application_id)
            if row is None:
                raise ApplicationNotFound(record.application_id)
            row.status = record.status
            row.record_json = self._to_json(record)
            row.updated_at = datetime.utcnow()
        return record

    def fetch(self, application_id: str) -> Optional[ApplicationRecord]:
        with session_scope(self._session_factory) as db:
            row = self._one(db, ApplicationRow.application_id == application_id)
            return self._to_record(row) if row else None

    def find_by_dedupe_key(self, dedupe_key: str) -> Optional[ApplicationRecord]:
        with session_scope(self._session_factory) as db:
            row = self._one(db, ApplicationRow.dedupe_key == dedupe_key)
            return self._to_record(row) if row else None

    def pending(self, limit: int = 100) -> list[ApplicationRecord]:
        with session_scope(self._session_factory) as db:
            rows = db.scalars(
                select(ApplicationRow)
                .where(ApplicationRow.status == SUBMITTED)
                .order_by(ApplicationRow.created_at)
                .limit(limit)
            ).all()
            return [self._to_record(r) for r in rows]
