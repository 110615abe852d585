"""Scheduling schemas."""

from __future__ import annotations

import datetime as dt
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.core.enums import SlotStatusEnum
from app.modules.scheduling.timeutils import time_to_minutes

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$|^24:00$"


class BlockCreate(BaseModel):
    """Create blackout window request."""

    date: dt.date
    start_time: str = Field(pattern=HHMM_PATTERN)
    end_time: str = Field(pattern=HHMM_PATTERN)
    reason: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def validate_range(self) -> "BlockCreate":
        if time_to_minutes(self.end_time) <= time_to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self


class BlockRead(BaseModel):
    """Blackout window response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    date: dt.date
    start_time: str
    end_time: str
    reason: str | None
    created_at: dt.datetime


class SlotOptionRead(BaseModel):
    """Labeled candidate start time."""

    model_config = ConfigDict(from_attributes=True)

    time: str
    status: SlotStatusEnum


class AvailabilityRead(BaseModel):
    """Availability grid for one day and duration."""

    date: dt.date
    duration_minutes: int
    slots: list[SlotOptionRead]
