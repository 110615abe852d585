"""Interviews API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.enums import StageEnum
from app.modules.identity.service import get_current_user
from app.modules.interviews.schemas import (
    AssignInterviewerRequest,
    InterviewScheduleRequest,
    InterviewSlotRead,
    StageUpdateRequest,
)
from app.modules.interviews.service import InterviewsService, get_interviews_service
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/interviews", tags=["interviews"])


@router.post("", response_model=InterviewSlotRead, status_code=status.HTTP_201_CREATED)
async def schedule_interview(
    payload: InterviewScheduleRequest,
    service: InterviewsService = Depends(get_interviews_service),
    current_user=Depends(get_current_user),
) -> InterviewSlotRead:
    """Book an interview slot."""
    slot = await service.schedule_interview(payload, current_user)
    return InterviewSlotRead.model_validate(slot)


@router.get("", response_model=Page[InterviewSlotRead])
async def list_interviews(
    stage: StageEnum | None = Query(default=None),
    pagination=Depends(get_pagination_params),
    service: InterviewsService = Depends(get_interviews_service),
    current_user=Depends(get_current_user),
) -> Page[InterviewSlotRead]:
    """List interview slots visible to current user."""
    items, total = await service.list_interviews(current_user, stage, pagination.limit, pagination.offset)
    serialized = [InterviewSlotRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.patch("/{slot_id}/stage", response_model=InterviewSlotRead)
async def update_stage(
    slot_id: UUID,
    payload: StageUpdateRequest,
    service: InterviewsService = Depends(get_interviews_service),
    current_user=Depends(get_current_user),
) -> InterviewSlotRead:
    """Move slot to another pipeline stage."""
    slot = await service.update_stage(slot_id, payload.stage, current_user)
    return InterviewSlotRead.model_validate(slot)


@router.patch("/{slot_id}/interviewer", response_model=InterviewSlotRead)
async def assign_interviewer(
    slot_id: UUID,
    payload: AssignInterviewerRequest,
    service: InterviewsService = Depends(get_interviews_service),
    current_user=Depends(get_current_user),
) -> InterviewSlotRead:
    """Reassign slot to interviewer."""
    slot = await service.assign_interviewer(slot_id, payload.interviewer_id, current_user)
    return InterviewSlotRead.model_validate(slot)


@router.delete("/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_interview(
    slot_id: UUID,
    service: InterviewsService = Depends(get_interviews_service),
    current_user=Depends(get_current_user),
) -> None:
    """Cancel own interview."""
    await service.cancel_interview(slot_id, current_user)


@router.post("/{slot_id}/admin-cancel", status_code=status.HTTP_204_NO_CONTENT)
async def admin_cancel_interview(
    slot_id: UUID,
    service: InterviewsService = Depends(get_interviews_service),
    current_user=Depends(get_current_user),
) -> None:
    """Cancel candidate interview as admin and notify them."""
    await service.admin_cancel_interview(slot_id, current_user)
