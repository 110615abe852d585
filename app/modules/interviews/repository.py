"""Interview slot repository layer."""

from __future__ import annotations

import datetime as dt
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import lock_calendar_day
from app.core.enums import StageEnum
from app.modules.interviews.models import InterviewSlot


class InterviewsRepository:
    """DB operations for interview slots."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def lock_day(self, day: dt.date) -> None:
        await lock_calendar_day(self.session, day)

    async def create_slot(
        self,
        student_id: UUID,
        interviewer_id: UUID | None,
        date: dt.date | None,
        start_time: str | None,
        duration_minutes: int,
        stage: StageEnum,
        company_name: str | None,
    ) -> InterviewSlot:
        slot = InterviewSlot(
            student_id=student_id,
            interviewer_id=interviewer_id,
            date=date,
            start_time=start_time,
            duration_minutes=duration_minutes,
            stage=stage,
            company_name=company_name,
        )
        self.session.add(slot)
        await self.session.flush()
        return slot

    async def get_slot_by_id(self, slot_id: UUID) -> InterviewSlot | None:
        stmt = select(InterviewSlot).where(InterviewSlot.id == slot_id)
        return await self.session.scalar(stmt)

    async def get_placeholder_for_student(self, student_id: UUID) -> InterviewSlot | None:
        stmt = (
            select(InterviewSlot)
            .where(
                InterviewSlot.student_id == student_id,
                InterviewSlot.duration_minutes == 0,
            )
            .order_by(InterviewSlot.created_at.asc())
            .limit(1)
        )
        return await self.session.scalar(stmt)

    async def list_slots_on_date(self, day: dt.date) -> list[InterviewSlot]:
        stmt = select(InterviewSlot).where(InterviewSlot.date == day).order_by(InterviewSlot.start_time.asc())
        return list((await self.session.scalars(stmt)).all())

    async def list_slots(
        self,
        student_id: UUID | None,
        interviewer_id: UUID | None,
        stage: StageEnum | None,
        limit: int,
        offset: int,
    ) -> tuple[list[InterviewSlot], int]:
        base_stmt: Select[tuple[InterviewSlot]] = select(InterviewSlot)
        if student_id is not None:
            base_stmt = base_stmt.where(InterviewSlot.student_id == student_id)
        if interviewer_id is not None:
            base_stmt = base_stmt.where(InterviewSlot.interviewer_id == interviewer_id)
        if stage is not None:
            base_stmt = base_stmt.where(InterviewSlot.stage == stage)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = (
            base_stmt.order_by(
                InterviewSlot.date.asc().nulls_first(),
                InterviewSlot.start_time.asc(),
                InterviewSlot.created_at.asc(),
            )
            .limit(limit)
            .offset(offset)
        )
        items = (await self.session.scalars(stmt)).all()
        return items, total

    async def save(self, slot: InterviewSlot) -> InterviewSlot:
        await self.session.flush()
        return slot

    async def delete_slot(self, slot: InterviewSlot) -> None:
        await self.session.delete(slot)
        await self.session.flush()
