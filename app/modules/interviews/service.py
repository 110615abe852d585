"""Interview slot business logic layer."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import ChangeActionEnum, RoleEnum, StageEnum
from app.core.metrics import record_booking_attempt
from app.modules.identity.models import User
from app.modules.identity.repository import IdentityRepository
from app.modules.interviews.assignment import can_interview, pick_default_interviewer
from app.modules.interviews.lifecycle import is_terminal
from app.modules.interviews.models import InterviewSlot
from app.modules.interviews.repository import InterviewsRepository
from app.modules.interviews.schemas import InterviewScheduleRequest
from app.modules.notifications.repository import NotificationsRepository
from app.modules.scheduling.availability import is_start_in_past
from app.modules.scheduling.domain import Scheduled, WorkingHours, is_active_stage
from app.modules.scheduling.repository import SchedulingRepository
from app.modules.scheduling.timeutils import time_to_minutes
from app.modules.scheduling.validation import BookingConflict, validate_booking
from app.modules.sync.repository import SyncRepository
from app.shared.exceptions import (
    BookingConflictException,
    BusinessRuleException,
    NotFoundException,
    UnauthorizedException,
)
from app.shared.utils import local_now

settings = get_settings()
logger = logging.getLogger(__name__)


class InterviewsService:
    """Interview slot lifecycle: booking, stage moves, reassignment, cancellation."""

    def __init__(
        self,
        repository: InterviewsRepository,
        identity_repository: IdentityRepository,
        scheduling_repository: SchedulingRepository,
        notifications_repository: NotificationsRepository,
        sync_repository: SyncRepository,
    ) -> None:
        self.repository = repository
        self.identity_repository = identity_repository
        self.scheduling_repository = scheduling_repository
        self.notifications_repository = notifications_repository
        self.sync_repository = sync_repository

    async def _record_slot_change(self, slot_id: UUID, action: ChangeActionEnum, payload: dict) -> None:
        await self.sync_repository.record_change(
            entity_type="interview_slot",
            entity_id=str(slot_id),
            action=action,
            payload=payload,
        )

    async def _get_slot(self, slot_id: UUID) -> InterviewSlot:
        slot = await self.repository.get_slot_by_id(slot_id)
        if slot is None:
            raise NotFoundException("Interview slot not found")
        return slot

    async def _get_interviewer(self, interviewer_id: UUID) -> User:
        interviewer = await self.identity_repository.get_user_by_id(interviewer_id)
        if interviewer is None:
            raise NotFoundException("Interviewer not found")
        if not can_interview(interviewer.role.name):
            raise BusinessRuleException("Selected user is not an interviewer")
        return interviewer

    async def _resolve_student(self, payload: InterviewScheduleRequest, actor: User) -> User:
        if actor.role.name == RoleEnum.STUDENT:
            if payload.student_id is not None and payload.student_id != actor.id:
                raise UnauthorizedException("Students can only book for themselves")
            return actor
        if actor.role.name == RoleEnum.ADMIN:
            if payload.student_id is None:
                raise BusinessRuleException("student_id is required when booking on behalf of a candidate")
            student = await self.identity_repository.get_user_by_id(payload.student_id)
            if student is None or student.role.name != RoleEnum.STUDENT:
                raise NotFoundException("Student not found")
            return student
        raise UnauthorizedException("Interviewers cannot book interviews")

    async def schedule_interview(self, payload: InterviewScheduleRequest, actor: User) -> InterviewSlot:
        """Validate against current state and book, filling the placeholder in place."""
        student = await self._resolve_student(payload, actor)
        if not student.approved:
            raise BusinessRuleException("Registration is pending admin approval")

        company_name = (payload.company_name or "").strip()
        if settings.require_company_name and not company_name:
            raise BusinessRuleException("Company name is required to book an interview")

        if is_start_in_past(payload.date, time_to_minutes(payload.start_time), local_now()):
            raise BusinessRuleException("Cannot book a slot in the past")

        # Day lock serializes concurrent writers until commit, so the re-read
        # below is the state the single write lands on.
        await self.repository.lock_day(payload.date)
        bookings = await self.repository.list_slots_on_date(payload.date)
        blocks = await self.scheduling_repository.list_blocks(payload.date)

        decision = validate_booking(
            payload.date,
            payload.start_time,
            payload.duration_minutes,
            student.id,
            bookings,
            blocks,
            hours=WorkingHours.from_settings(settings),
        )
        if isinstance(decision, BookingConflict):
            record_booking_attempt(str(decision.kind))
            logger.info("Booking rejected (%s) for %s on %s", decision.kind, student.id, payload.date)
            raise BookingConflictException(decision.kind, decision.detail, decision.conflicting_slot_id)

        if payload.interviewer_id is not None:
            interviewer_id: UUID | None = (await self._get_interviewer(payload.interviewer_id)).id
        else:
            interviewer_id = pick_default_interviewer(await self.identity_repository.list_interviewers())

        placeholder = await self.repository.get_placeholder_for_student(student.id)
        if placeholder is not None:
            placeholder.date = payload.date
            placeholder.start_time = payload.start_time
            placeholder.duration_minutes = payload.duration_minutes
            placeholder.company_name = company_name or None
            placeholder.interviewer_id = interviewer_id
            slot = await self.repository.save(placeholder)
            action = ChangeActionEnum.UPDATED
        else:
            slot = await self.repository.create_slot(
                student_id=student.id,
                interviewer_id=interviewer_id,
                date=payload.date,
                start_time=payload.start_time,
                duration_minutes=payload.duration_minutes,
                stage=StageEnum.CLASSES,
                company_name=company_name or None,
            )
            action = ChangeActionEnum.CREATED

        await self._record_slot_change(
            slot.id,
            action,
            {
                "student_id": str(student.id),
                "date": payload.date.isoformat(),
                "start_time": payload.start_time,
                "duration_minutes": payload.duration_minutes,
            },
        )
        record_booking_attempt("booked")
        logger.info("Interview %s booked for %s on %s %s", slot.id, student.id, payload.date, payload.start_time)
        return slot

    async def update_stage(self, slot_id: UUID, stage: StageEnum, actor: User) -> InterviewSlot:
        """Move slot to any pipeline stage (admin only)."""
        if actor.role.name != RoleEnum.ADMIN:
            raise UnauthorizedException("Only admin can change stages")

        slot = await self._get_slot(slot_id)
        schedule = slot.schedule
        if isinstance(schedule, Scheduled) and is_active_stage(stage) and not is_active_stage(slot.stage):
            await self._ensure_reactivation_fits(slot, schedule)

        slot.stage = stage
        await self.repository.save(slot)
        await self._record_slot_change(slot.id, ChangeActionEnum.UPDATED, {"stage": str(stage)})
        return slot

    async def _ensure_reactivation_fits(self, slot: InterviewSlot, schedule: Scheduled) -> None:
        # A finished slot may have lost its time to a blackout or another booking.
        await self.repository.lock_day(schedule.day)
        bookings = [item for item in await self.repository.list_slots_on_date(schedule.day) if item.id != slot.id]
        blocks = await self.scheduling_repository.list_blocks(schedule.day)

        decision = validate_booking(
            schedule.day,
            schedule.start_time,
            schedule.duration_minutes,
            slot.student_id,
            bookings,
            blocks,
            hours=WorkingHours.from_settings(settings),
        )
        if isinstance(decision, BookingConflict):
            logger.info("Reactivation of %s rejected (%s)", slot.id, decision.kind)
            raise BookingConflictException(decision.kind, decision.detail, decision.conflicting_slot_id)

    async def assign_interviewer(self, slot_id: UUID, interviewer_id: UUID, actor: User) -> InterviewSlot:
        """Reassign slot to another interviewer."""
        if actor.role.name not in (RoleEnum.ADMIN, RoleEnum.INTERVIEWER):
            raise UnauthorizedException("Only staff can reassign interviews")

        slot = await self._get_slot(slot_id)
        if is_terminal(slot):
            raise BusinessRuleException("Finished interviews cannot be reassigned")

        interviewer = await self._get_interviewer(interviewer_id)
        slot.interviewer_id = interviewer.id
        await self.repository.save(slot)
        await self._record_slot_change(slot.id, ChangeActionEnum.UPDATED, {"interviewer_id": str(interviewer.id)})
        return slot

    async def cancel_interview(self, slot_id: UUID, actor: User) -> None:
        """Self-service cancellation; cancelling a missing slot is a no-op."""
        slot = await self.repository.get_slot_by_id(slot_id)
        if slot is None:
            return
        if actor.role.name == RoleEnum.INTERVIEWER:
            raise UnauthorizedException("Interviewers cannot cancel interviews")
        if actor.role.name == RoleEnum.STUDENT and slot.student_id != actor.id:
            raise UnauthorizedException("You cannot cancel this interview")

        await self.repository.delete_slot(slot)
        await self._record_slot_change(slot_id, ChangeActionEnum.DELETED, {"student_id": str(slot.student_id)})

    async def admin_cancel_interview(self, slot_id: UUID, actor: User) -> None:
        """Cancel on behalf of admin and notify the candidate."""
        if actor.role.name != RoleEnum.ADMIN:
            raise UnauthorizedException("Only admin can cancel interviews for candidates")

        slot = await self.repository.get_slot_by_id(slot_id)
        if slot is None:
            return

        schedule = slot.schedule
        if isinstance(schedule, Scheduled):
            when = f"on {schedule.day.isoformat()} at {schedule.start_time}"
        else:
            when = "registration"
        notification = await self.notifications_repository.create_notification(
            user_id=slot.student_id,
            message=f"Admin cancelled your interview {when}. Please contact them and reschedule.",
        )
        await self.repository.delete_slot(slot)

        await self.sync_repository.record_change(
            entity_type="notification",
            entity_id=str(notification.id),
            action=ChangeActionEnum.CREATED,
            payload={"user_id": str(slot.student_id)},
        )
        await self._record_slot_change(
            slot_id,
            ChangeActionEnum.DELETED,
            {"student_id": str(slot.student_id), "by_admin": True},
        )

    async def list_interviews(
        self,
        actor: User,
        stage: StageEnum | None,
        limit: int,
        offset: int,
    ) -> tuple[list[InterviewSlot], int]:
        """List slots visible to actor according to role."""
        student_id = actor.id if actor.role.name == RoleEnum.STUDENT else None
        interviewer_id = actor.id if actor.role.name == RoleEnum.INTERVIEWER else None
        return await self.repository.list_slots(student_id, interviewer_id, stage, limit, offset)


async def get_interviews_service(session: AsyncSession = Depends(get_db_session)) -> InterviewsService:
    """Dependency provider for interviews service."""
    return InterviewsService(
        repository=InterviewsRepository(session),
        identity_repository=IdentityRepository(session),
        scheduling_repository=SchedulingRepository(session),
        notifications_repository=NotificationsRepository(session),
        sync_repository=SyncRepository(session),
    )
