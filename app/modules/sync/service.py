"""State sync business logic layer."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import RoleEnum
from app.modules.identity.models import User
from app.modules.sync.repository import CalendarState, SyncRepository


class SyncService:
    """Serves full snapshots and the change signal."""

    def __init__(self, repository: SyncRepository) -> None:
        self.repository = repository

    async def fetch_state(self, actor: User) -> CalendarState:
        """Return full state; non-admins only receive their own notifications."""
        notifications_for = None if actor.role.name == RoleEnum.ADMIN else actor.id
        return await self.repository.fetch_state(notifications_for)

    async def current_revision(self) -> int:
        """Return latest change revision."""
        return await self.repository.get_latest_revision()


async def get_sync_service(session: AsyncSession = Depends(get_db_session)) -> SyncService:
    """Dependency provider for sync service."""
    return SyncService(SyncRepository(session))
