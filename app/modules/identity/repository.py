"""Identity repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enums import RoleEnum
from app.modules.identity.models import Role, User


class IdentityRepository:
    """DB operations for identity domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_role_by_name(self, role_name: RoleEnum) -> Role | None:
        stmt = select(Role).where(Role.name == role_name)
        return await self.session.scalar(stmt)

    async def create_role(self, role_name: RoleEnum) -> Role:
        role = Role(name=role_name)
        self.session.add(role)
        await self.session.flush()
        return role

    async def get_user_by_phone(self, phone: str) -> User | None:
        stmt = select(User).options(selectinload(User.role)).where(User.phone == phone)
        return await self.session.scalar(stmt)

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        stmt = select(User).options(selectinload(User.role)).where(User.id == user_id)
        return await self.session.scalar(stmt)

    async def create_user(
        self,
        name: str,
        phone: str,
        email: str | None,
        role_id: UUID,
        approved: bool,
    ) -> User:
        user = User(name=name, phone=phone, email=email, role_id=role_id, approved=approved)
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user, attribute_names=["role"])
        return user

    async def set_approved(self, user: User, approved: bool) -> User:
        user.approved = approved
        await self.session.flush()
        return user

    async def list_users(self, role_name: RoleEnum | None, limit: int, offset: int) -> tuple[list[User], int]:
        base_stmt: Select[tuple[User]] = select(User).options(selectinload(User.role))
        if role_name is not None:
            base_stmt = base_stmt.join(User.role).where(Role.name == role_name)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(User.created_at.asc(), User.id.asc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return items, total

    async def list_interviewers(self) -> list[User]:
        """Interviewers in creation order; the order is the default-assignment order."""
        stmt = (
            select(User)
            .options(selectinload(User.role))
            .join(User.role)
            .where(Role.name == RoleEnum.INTERVIEWER)
            .order_by(User.created_at.asc(), User.id.asc())
        )
        return list((await self.session.scalars(stmt)).all())
