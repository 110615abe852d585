"""Full-state snapshot and change feed repository."""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import ChangeActionEnum
from app.modules.identity.models import User
from app.modules.interviews.models import InterviewSlot
from app.modules.notifications.models import Notification
from app.modules.scheduling.models import BlockedSlot
from app.modules.sync.models import CalendarChange


@dataclass(slots=True)
class CalendarState:
    """Everything a session needs to render and pre-validate the calendar."""

    revision: int
    users: list[User] = field(default_factory=list)
    interview_slots: list[InterviewSlot] = field(default_factory=list)
    blocked_slots: list[BlockedSlot] = field(default_factory=list)
    notifications: list[Notification] = field(default_factory=list)


class SyncRepository:
    """DB operations for state snapshots and the change feed."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def record_change(
        self,
        entity_type: str,
        entity_id: str,
        action: ChangeActionEnum,
        payload: dict,
    ) -> CalendarChange:
        change = CalendarChange(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            payload=payload,
        )
        self.session.add(change)
        await self.session.flush()
        return change

    async def get_latest_revision(self) -> int:
        stmt = select(func.max(CalendarChange.revision))
        return int((await self.session.scalar(stmt)) or 0)

    async def fetch_state(self, notifications_for: UUID | None) -> CalendarState:
        """Read the whole calendar; notifications are limited to one user unless None."""
        # Revision goes first so a change committed mid-read can only leave the
        # snapshot newer than its revision, never older.
        revision = await self.get_latest_revision()
        users = (await self.session.scalars(select(User).order_by(User.created_at, User.id))).all()
        slots = (
            await self.session.scalars(select(InterviewSlot).order_by(InterviewSlot.created_at, InterviewSlot.id))
        ).all()
        blocks = (
            await self.session.scalars(select(BlockedSlot).order_by(BlockedSlot.date, BlockedSlot.start_time))
        ).all()

        notifications_stmt = select(Notification).order_by(Notification.created_at)
        if notifications_for is not None:
            notifications_stmt = notifications_stmt.where(Notification.user_id == notifications_for)
        notifications = (await self.session.scalars(notifications_stmt)).all()

        return CalendarState(
            revision=revision,
            users=list(users),
            interview_slots=list(slots),
            blocked_slots=list(blocks),
            notifications=list(notifications),
        )
