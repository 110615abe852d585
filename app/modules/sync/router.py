"""State sync API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.modules.identity.schemas import UserRead
from app.modules.identity.service import get_current_user
from app.modules.interviews.schemas import InterviewSlotRead
from app.modules.notifications.schemas import NotificationRead
from app.modules.scheduling.schemas import BlockRead
from app.modules.sync.schemas import CalendarStateRead, RevisionRead
from app.modules.sync.service import SyncService, get_sync_service

router = APIRouter(prefix="/sync", tags=["sync"])


@router.get("/state", response_model=CalendarStateRead)
async def fetch_state(
    service: SyncService = Depends(get_sync_service),
    current_user=Depends(get_current_user),
) -> CalendarStateRead:
    """Return the whole calendar state."""
    state = await service.fetch_state(current_user)
    return CalendarStateRead(
        revision=state.revision,
        users=[UserRead.model_validate(item) for item in state.users],
        interview_slots=[InterviewSlotRead.model_validate(item) for item in state.interview_slots],
        blocked_slots=[BlockRead.model_validate(item) for item in state.blocked_slots],
        notifications=[NotificationRead.model_validate(item) for item in state.notifications],
    )


@router.get("/revision", response_model=RevisionRead)
async def get_revision(
    service: SyncService = Depends(get_sync_service),
    _=Depends(get_current_user),
) -> RevisionRead:
    """Return latest change revision; poll it and refetch state when it moves."""
    return RevisionRead(revision=await service.current_revision())
