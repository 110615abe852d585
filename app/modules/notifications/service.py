"""Notifications business logic layer."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import ChangeActionEnum, RoleEnum
from app.modules.identity.models import User
from app.modules.notifications.models import Notification
from app.modules.notifications.repository import NotificationsRepository
from app.modules.sync.repository import SyncRepository
from app.shared.exceptions import NotFoundException, UnauthorizedException


class NotificationsService:
    """Notifications domain service."""

    def __init__(
        self,
        repository: NotificationsRepository,
        sync_repository: SyncRepository,
    ) -> None:
        self.repository = repository
        self.sync_repository = sync_repository

    def _validate_recipient(self, notification: Notification, actor: User) -> None:
        if actor.role.name != RoleEnum.ADMIN and notification.user_id != actor.id:
            raise UnauthorizedException("Only admin or recipient can manage notification")

    async def list_my_notifications(self, actor: User, limit: int, offset: int) -> tuple[list[Notification], int]:
        """List notifications for current user."""
        return await self.repository.list_notifications_for_user(actor.id, limit, offset)

    async def mark_read(self, notification_id: UUID, actor: User) -> Notification:
        """Mark notification as read."""
        notification = await self.repository.get_notification_by_id(notification_id)
        if notification is None:
            raise NotFoundException("Notification not found")
        self._validate_recipient(notification, actor)
        if notification.read:
            return notification

        notification = await self.repository.mark_read(notification)
        await self.sync_repository.record_change(
            entity_type="notification",
            entity_id=str(notification.id),
            action=ChangeActionEnum.UPDATED,
            payload={"read": True},
        )
        return notification

    async def clear_notification(self, notification_id: UUID, actor: User) -> None:
        """Delete notification; clearing an already removed one is a no-op."""
        notification = await self.repository.get_notification_by_id(notification_id)
        if notification is None:
            return
        self._validate_recipient(notification, actor)

        await self.repository.delete_notification(notification)
        await self.sync_repository.record_change(
            entity_type="notification",
            entity_id=str(notification_id),
            action=ChangeActionEnum.DELETED,
            payload={"user_id": str(notification.user_id)},
        )


async def get_notifications_service(session: AsyncSession = Depends(get_db_session)) -> NotificationsService:
    """Dependency provider for notifications service."""
    return NotificationsService(
        repository=NotificationsRepository(session),
        sync_repository=SyncRepository(session),
    )
