"""Scheduling business logic layer."""

from __future__ import annotations

import datetime as dt
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import ChangeActionEnum, RoleEnum
from app.modules.identity.models import User
from app.modules.interviews.repository import InterviewsRepository
from app.modules.scheduling.availability import SlotOption, compute_slots
from app.modules.scheduling.domain import WorkingHours, active_intervals, overlapping_bookings
from app.modules.scheduling.models import BlockedSlot
from app.modules.scheduling.repository import SchedulingRepository
from app.modules.scheduling.schemas import BlockCreate
from app.modules.scheduling.timeutils import time_to_minutes
from app.modules.sync.repository import SyncRepository
from app.shared.exceptions import BusinessRuleException, ConflictException, UnauthorizedException
from app.shared.utils import local_now

settings = get_settings()


class SchedulingService:
    """Blackout windows and availability grid."""

    def __init__(
        self,
        repository: SchedulingRepository,
        interviews_repository: InterviewsRepository,
        sync_repository: SyncRepository,
    ) -> None:
        self.repository = repository
        self.interviews_repository = interviews_repository
        self.sync_repository = sync_repository

    async def create_block(self, payload: BlockCreate, actor: User) -> BlockedSlot:
        """Declare blackout window (admin only)."""
        if actor.role.name != RoleEnum.ADMIN:
            raise UnauthorizedException("Only admin can block time")

        await self.repository.lock_day(payload.date)
        bookings = await self.interviews_repository.list_slots_on_date(payload.date)
        colliding = overlapping_bookings(
            active_intervals(bookings, payload.date),
            time_to_minutes(payload.start_time),
            time_to_minutes(payload.end_time),
        )
        if colliding:
            raise ConflictException(
                f"Window overlaps {len(colliding)} scheduled interview(s); cancel them before blocking",
            )

        block = await self.repository.create_block(
            date=payload.date,
            start_time=payload.start_time,
            end_time=payload.end_time,
            reason=payload.reason,
        )
        await self.sync_repository.record_change(
            entity_type="blocked_slot",
            entity_id=str(block.id),
            action=ChangeActionEnum.CREATED,
            payload={"date": payload.date.isoformat(), "start_time": block.start_time, "end_time": block.end_time},
        )
        return block

    async def delete_block(self, block_id: UUID, actor: User) -> None:
        """Remove blackout window; removing a missing one is a no-op."""
        if actor.role.name != RoleEnum.ADMIN:
            raise UnauthorizedException("Only admin can unblock time")

        block = await self.repository.get_block_by_id(block_id)
        if block is None:
            return
        await self.repository.delete_block(block)
        await self.sync_repository.record_change(
            entity_type="blocked_slot",
            entity_id=str(block_id),
            action=ChangeActionEnum.DELETED,
            payload={"date": block.date.isoformat()},
        )

    async def list_blocks(self, day: dt.date | None) -> list[BlockedSlot]:
        """List blackout windows, optionally for one day."""
        return await self.repository.list_blocks(day)

    async def get_availability(self, day: dt.date, duration_minutes: int, actor: User) -> list[SlotOption]:
        """Compute the labeled slot grid for one day and duration."""
        if duration_minutes not in settings.allowed_durations:
            allowed = ", ".join(str(item) for item in settings.allowed_durations)
            raise BusinessRuleException(f"Duration must be one of: {allowed} minutes")

        bookings = await self.interviews_repository.list_slots_on_date(day)
        blocks = await self.repository.list_blocks(day)
        candidate_id = actor.id if actor.role.name == RoleEnum.STUDENT else None

        return compute_slots(
            day,
            duration_minutes,
            bookings,
            blocks,
            local_now(),
            candidate_id=candidate_id,
            hours=WorkingHours.from_settings(settings),
        )


async def get_scheduling_service(session: AsyncSession = Depends(get_db_session)) -> SchedulingService:
    """Dependency provider for scheduling service."""
    return SchedulingService(
        repository=SchedulingRepository(session),
        interviews_repository=InterviewsRepository(session),
        sync_repository=SyncRepository(session),
    )
