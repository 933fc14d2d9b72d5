# backend/turnover/models.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base


class ApplicationRow(Base):
    """
    Persisted rental application record.

    The full internal record (profile, score components, decision) lives in
    record_json; the scalar columns exist for lookup and duplicate detection.
    """

    __tablename__ = "vacancy_applications"
    __table_args__ = (UniqueConstraint("dedupe_key", name="uq_vacancy_applications_dedupe_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    application_id: Mapped[str] = mapped_column(String(40), nullable=False, unique=True, index=True)
    dedupe_key: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    unit_id: Mapped[str] = mapped_column(String(80), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="submitted")
    record_json: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
