"""Scheduling API router."""

from __future__ import annotations

import datetime as dt
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.enums import RoleEnum
from app.modules.identity.service import get_current_user, require_roles
from app.modules.scheduling.schemas import AvailabilityRead, BlockCreate, BlockRead, SlotOptionRead
from app.modules.scheduling.service import SchedulingService, get_scheduling_service

router = APIRouter(prefix="/scheduling", tags=["scheduling"])


@router.get("/availability", response_model=AvailabilityRead)
async def get_availability(
    date: dt.date = Query(...),
    duration_minutes: int = Query(..., gt=0),
    service: SchedulingService = Depends(get_scheduling_service),
    current_user=Depends(get_current_user),
) -> AvailabilityRead:
    """Return the slot grid for a day and duration."""
    options = await service.get_availability(date, duration_minutes, current_user)
    return AvailabilityRead(
        date=date,
        duration_minutes=duration_minutes,
        slots=[SlotOptionRead.model_validate(option) for option in options],
    )


@router.post("/blocks", response_model=BlockRead, status_code=status.HTTP_201_CREATED)
async def create_block(
    payload: BlockCreate,
    service: SchedulingService = Depends(get_scheduling_service),
    current_user=Depends(require_roles(RoleEnum.ADMIN)),
) -> BlockRead:
    """Create blackout window."""
    block = await service.create_block(payload, current_user)
    return BlockRead.model_validate(block)


@router.get("/blocks", response_model=list[BlockRead])
async def list_blocks(
    date: dt.date | None = Query(default=None),
    service: SchedulingService = Depends(get_scheduling_service),
    _=Depends(get_current_user),
) -> list[BlockRead]:
    """List blackout windows."""
    blocks = await service.list_blocks(date)
    return [BlockRead.model_validate(block) for block in blocks]


@router.delete("/blocks/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_block(
    block_id: UUID,
    service: SchedulingService = Depends(get_scheduling_service),
    current_user=Depends(require_roles(RoleEnum.ADMIN)),
) -> None:
    """Delete blackout window."""
    await service.delete_block(block_id, current_user)
