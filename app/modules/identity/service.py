"""Identity business logic layer."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import ChangeActionEnum, RoleEnum
from app.core.security import actor_header_scheme, parse_actor_id
from app.modules.identity.models import User
from app.modules.identity.repository import IdentityRepository
from app.modules.identity.schemas import CandidateCreate, InterviewerCreate, StudentRegister
from app.modules.interviews.lifecycle import ensure_placeholder
from app.modules.interviews.repository import InterviewsRepository
from app.modules.sync.repository import SyncRepository
from app.shared.exceptions import (
    BusinessRuleException,
    ConflictException,
    NotFoundException,
    UnauthorizedException,
)

settings = get_settings()
logger = logging.getLogger(__name__)


class IdentityService:
    """Identity domain service."""

    def __init__(
        self,
        repository: IdentityRepository,
        interviews_repository: InterviewsRepository,
        sync_repository: SyncRepository,
    ) -> None:
        self.repository = repository
        self.interviews_repository = interviews_repository
        self.sync_repository = sync_repository

    async def ensure_default_roles(self) -> None:
        """Ensure all default roles exist."""
        for role_name in (RoleEnum.STUDENT, RoleEnum.INTERVIEWER, RoleEnum.ADMIN):
            role = await self.repository.get_role_by_name(role_name)
            if role is None:
                await self.repository.create_role(role_name)

    async def ensure_default_admin(self) -> User:
        """Ensure the configured initial administrator exists."""
        existing = await self.repository.get_user_by_phone(settings.default_admin_username)
        if existing is not None:
            return existing
        admin = await self._create_user(
            name=settings.default_admin_name,
            phone=settings.default_admin_username,
            email=settings.default_admin_email,
            role_name=RoleEnum.ADMIN,
            approved=True,
        )
        logger.info("Default admin %s created", admin.phone)
        return admin

    async def _create_user(
        self,
        name: str,
        phone: str,
        email: str | None,
        role_name: RoleEnum,
        approved: bool,
    ) -> User:
        if await self.repository.get_user_by_phone(phone) is not None:
            raise ConflictException("User with this phone or username already exists")

        role = await self.repository.get_role_by_name(role_name)
        if role is None:
            raise NotFoundException("Role not found")

        user = await self.repository.create_user(
            name=name,
            phone=phone,
            email=email,
            role_id=role.id,
            approved=approved,
        )
        await self.sync_repository.record_change(
            entity_type="user",
            entity_id=str(user.id),
            action=ChangeActionEnum.CREATED,
            payload={"role": str(role_name), "approved": approved},
        )
        return user

    async def _create_placeholder(self, student: User) -> None:
        placeholder, created = await ensure_placeholder(
            self.interviews_repository,
            student.id,
            settings.placeholder_company_name,
        )
        if created:
            await self.sync_repository.record_change(
                entity_type="interview_slot",
                entity_id=str(placeholder.id),
                action=ChangeActionEnum.CREATED,
                payload={"student_id": str(student.id), "placeholder": True},
            )

    async def register_student(self, payload: StudentRegister) -> User:
        """Register a candidate who waits for admin approval."""
        return await self._create_user(
            name=payload.name,
            phone=payload.phone,
            email=None,
            role_name=RoleEnum.STUDENT,
            approved=False,
        )

    async def add_candidate(self, payload: CandidateCreate, actor: User) -> User:
        """Create an approved candidate with a placeholder slot (admin only)."""
        if actor.role.name != RoleEnum.ADMIN:
            raise UnauthorizedException("Only admin can add candidates")

        student = await self._create_user(
            name=payload.name,
            phone=payload.phone,
            email=None,
            role_name=RoleEnum.STUDENT,
            approved=True,
        )
        await self._create_placeholder(student)
        return student

    async def approve_student(self, student_id: UUID, actor: User) -> User:
        """Approve candidate and register their placeholder slot (admin only)."""
        if actor.role.name != RoleEnum.ADMIN:
            raise UnauthorizedException("Only admin can approve students")

        student = await self.repository.get_user_by_id(student_id)
        if student is None:
            raise NotFoundException("Student not found")
        if student.role.name != RoleEnum.STUDENT:
            raise BusinessRuleException("Only students require approval")

        if not student.approved:
            await self.repository.set_approved(student, True)
            await self.sync_repository.record_change(
                entity_type="user",
                entity_id=str(student.id),
                action=ChangeActionEnum.UPDATED,
                payload={"approved": True},
            )
        await self._create_placeholder(student)
        return student

    async def create_interviewer(self, payload: InterviewerCreate, actor: User) -> User:
        """Create interviewer account (admin only)."""
        if actor.role.name != RoleEnum.ADMIN:
            raise UnauthorizedException("Only admin can create interviewers")

        return await self._create_user(
            name=payload.name,
            phone=payload.username,
            email=str(payload.email) if payload.email else None,
            role_name=RoleEnum.INTERVIEWER,
            approved=True,
        )

    async def list_users(
        self,
        role_name: RoleEnum | None,
        actor: User,
        limit: int,
        offset: int,
    ) -> tuple[list[User], int]:
        """List users (staff only)."""
        if actor.role.name == RoleEnum.STUDENT:
            raise UnauthorizedException("Students cannot list users")
        return await self.repository.list_users(role_name, limit, offset)

    async def get_user_from_actor_id(self, user_id: UUID) -> User:
        """Resolve user forwarded by the gateway."""
        user = await self.repository.get_user_by_id(user_id)
        if user is None:
            raise UnauthorizedException("User not found")
        return user


async def get_identity_service(session: AsyncSession = Depends(get_db_session)) -> IdentityService:
    """Dependency to provide identity service."""
    return IdentityService(
        repository=IdentityRepository(session),
        interviews_repository=InterviewsRepository(session),
        sync_repository=SyncRepository(session),
    )


async def get_current_user(
    raw_actor_id: str | None = Depends(actor_header_scheme),
    service: IdentityService = Depends(get_identity_service),
) -> User:
    """Resolve the current user from the gateway-forwarded id header."""
    return await service.get_user_from_actor_id(parse_actor_id(raw_actor_id))


def require_roles(*roles: RoleEnum):
    """Dependency factory for role-based access."""

    async def _checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role.name not in roles:
            raise UnauthorizedException("Operation not permitted for your role")
        return current_user

    return _checker
