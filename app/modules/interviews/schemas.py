"""Interview slot schemas."""

from __future__ import annotations

import datetime as dt
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import StageEnum
from app.modules.scheduling.domain import SlotSchedule, schedule_from_fields
from app.modules.scheduling.schemas import HHMM_PATTERN


class InterviewScheduleRequest(BaseModel):
    """Book an interview time; admins may book on behalf of ``student_id``."""

    date: dt.date
    start_time: str = Field(pattern=HHMM_PATTERN)
    duration_minutes: int = Field(gt=0, le=24 * 60)
    company_name: str | None = Field(default=None, max_length=255)
    interviewer_id: UUID | None = None
    student_id: UUID | None = None


class StageUpdateRequest(BaseModel):
    """Move slot to another pipeline stage."""

    stage: StageEnum


class AssignInterviewerRequest(BaseModel):
    """Reassign slot to interviewer."""

    interviewer_id: UUID


class InterviewSlotRead(BaseModel):
    """Interview slot response schema; ``duration_minutes`` is 0 for placeholders."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    interviewer_id: UUID | None
    date: dt.date | None
    start_time: str | None
    duration_minutes: int
    stage: StageEnum
    company_name: str | None
    created_at: dt.datetime
    updated_at: dt.datetime

    @property
    def schedule(self) -> SlotSchedule:
        return schedule_from_fields(self.date, self.start_time, self.duration_minutes)
