"""Interview slot ORM models."""

from __future__ import annotations

import datetime as dt
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin
from app.core.enums import StageEnum
from app.modules.scheduling.domain import SlotSchedule, schedule_from_fields


class InterviewSlot(BaseModelMixin, Base):
    """Candidate interview slot; unscheduled until a time is booked."""

    __tablename__ = "interview_slots"
    __table_args__ = (
        CheckConstraint(
            "(date IS NULL AND start_time IS NULL AND duration_minutes = 0) OR "
            "(date IS NOT NULL AND start_time IS NOT NULL AND duration_minutes > 0)",
            name="schedule_consistent",
        ),
    )

    student_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    interviewer_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    date: Mapped[dt.date | None] = mapped_column(Date, nullable=True, index=True)
    start_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    duration_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    stage: Mapped[StageEnum] = mapped_column(
        SAEnum(StageEnum, name="stage_enum", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        default=StageEnum.CLASSES,
        nullable=False,
        index=True,
    )
    company_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    @property
    def schedule(self) -> SlotSchedule:
        return schedule_from_fields(self.date, self.start_time, self.duration_minutes)
