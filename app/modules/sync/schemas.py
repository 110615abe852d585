"""State sync schemas."""

from __future__ import annotations

from pydantic import BaseModel

from app.modules.identity.schemas import UserRead
from app.modules.interviews.schemas import InterviewSlotRead
from app.modules.notifications.schemas import NotificationRead
from app.modules.scheduling.schemas import BlockRead


class RevisionRead(BaseModel):
    """Latest calendar change revision."""

    revision: int


class CalendarStateRead(BaseModel):
    """Full calendar snapshot at ``revision``."""

    revision: int
    users: list[UserRead]
    interview_slots: list[InterviewSlotRead]
    blocked_slots: list[BlockRead]
    notifications: list[NotificationRead]
