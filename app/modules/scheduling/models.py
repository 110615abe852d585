"""Scheduling ORM models."""

from __future__ import annotations

import datetime as dt

from sqlalchemy import CheckConstraint, Date, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin


class BlockedSlot(BaseModelMixin, Base):
    """Admin-declared blackout window on a calendar day."""

    __tablename__ = "blocked_slots"
    __table_args__ = (CheckConstraint("end_time > start_time", name="end_after_start"),)

    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    reason: Mapped[str | None] = mapped_column(String(255), nullable=True)
