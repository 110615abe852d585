"""Scheduling repository layer."""

from __future__ import annotations

import datetime as dt
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import lock_calendar_day
from app.modules.scheduling.models import BlockedSlot


class SchedulingRepository:
    """DB access for blackout windows."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def lock_day(self, day: dt.date) -> None:
        await lock_calendar_day(self.session, day)

    async def create_block(
        self,
        date: dt.date,
        start_time: str,
        end_time: str,
        reason: str | None,
    ) -> BlockedSlot:
        block = BlockedSlot(date=date, start_time=start_time, end_time=end_time, reason=reason)
        self.session.add(block)
        await self.session.flush()
        return block

    async def get_block_by_id(self, block_id: UUID) -> BlockedSlot | None:
        stmt = select(BlockedSlot).where(BlockedSlot.id == block_id)
        return await self.session.scalar(stmt)

    async def list_blocks(self, day: dt.date | None) -> list[BlockedSlot]:
        stmt: Select[tuple[BlockedSlot]] = select(BlockedSlot)
        if day is not None:
            stmt = stmt.where(BlockedSlot.date == day)
        stmt = stmt.order_by(BlockedSlot.date.asc(), BlockedSlot.start_time.asc())
        return list((await self.session.scalars(stmt)).all())

    async def delete_block(self, block: BlockedSlot) -> None:
        await self.session.delete(block)
        await self.session.flush()
