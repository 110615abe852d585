"""Interview slot lifecycle rules."""

from __future__ import annotations

from typing import assert_never
from uuid import UUID

from app.core.enums import SlotStateEnum, StageEnum
from app.modules.interviews.models import InterviewSlot
from app.modules.interviews.repository import InterviewsRepository
from app.modules.scheduling.domain import Unscheduled


def slot_state(slot: InterviewSlot) -> SlotStateEnum:
    """Derive lifecycle state from stage and schedule."""
    match slot.stage:
        case StageEnum.SUCCESSFUL:
            return SlotStateEnum.SUCCESSFUL
        case StageEnum.UNSUCCESSFUL:
            return SlotStateEnum.UNSUCCESSFUL
        case StageEnum.CLASSES | StageEnum.INTERVIEWS:
            if isinstance(slot.schedule, Unscheduled):
                return SlotStateEnum.PLACEHOLDER
            return SlotStateEnum.BOOKED
        case _:
            assert_never(slot.stage)


def is_terminal(slot: InterviewSlot) -> bool:
    return slot_state(slot) in (SlotStateEnum.SUCCESSFUL, SlotStateEnum.UNSUCCESSFUL)


async def ensure_placeholder(
    repository: InterviewsRepository,
    student_id: UUID,
    company_name: str,
) -> tuple[InterviewSlot, bool]:
    """Return the candidate's placeholder, creating it when missing.

    The boolean is True when a new row was created.
    """
    existing = await repository.get_placeholder_for_student(student_id)
    if existing is not None:
        return existing, False

    placeholder = await repository.create_slot(
        student_id=student_id,
        interviewer_id=None,
        date=None,
        start_time=None,
        duration_minutes=0,
        stage=StageEnum.CLASSES,
        company_name=company_name,
    )
    return placeholder, True
