from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest

import app.modules.interviews.service as interviews_service_module
from app.core.enums import ChangeActionEnum, ConflictKindEnum, RoleEnum, StageEnum
from app.modules.interviews.schemas import InterviewScheduleRequest
from app.modules.interviews.service import InterviewsService, settings
from app.modules.scheduling.domain import Scheduled, SlotSchedule, Unscheduled, schedule_from_fields
from app.shared.exceptions import (
    BookingConflictException,
    BusinessRuleException,
    NotFoundException,
    UnauthorizedException,
)

DAY = date(2030, 1, 7)
FIXED_NOW = datetime(2030, 1, 6, 12, 0)


@dataclass
class FakeSlot:
    id: UUID
    student_id: UUID
    interviewer_id: UUID | None
    date: date | None
    start_time: str | None
    duration_minutes: int
    stage: StageEnum
    company_name: str | None

    @property
    def schedule(self) -> SlotSchedule:
        return schedule_from_fields(self.date, self.start_time, self.duration_minutes)


@dataclass
class FakeBlock:
    id: UUID
    date: date
    start_time: str
    end_time: str


class FakeInterviewsRepository:
    def __init__(self, slots: list[FakeSlot] | None = None) -> None:
        self.slots: dict[UUID, FakeSlot] = {slot.id: slot for slot in slots or []}
        self.locked_days: list[date] = []

    async def lock_day(self, day: date) -> None:
        self.locked_days.append(day)

    async def create_slot(self, **values) -> FakeSlot:
        slot = FakeSlot(id=uuid4(), **values)
        self.slots[slot.id] = slot
        return slot

    async def get_slot_by_id(self, slot_id: UUID) -> FakeSlot | None:
        return self.slots.get(slot_id)

    async def get_placeholder_for_student(self, student_id: UUID) -> FakeSlot | None:
        for slot in self.slots.values():
            if slot.student_id == student_id and slot.duration_minutes == 0:
                return slot
        return None

    async def list_slots_on_date(self, day: date) -> list[FakeSlot]:
        return [slot for slot in self.slots.values() if slot.date == day]

    async def list_slots(self, student_id, interviewer_id, stage, limit, offset):
        items = [
            slot
            for slot in self.slots.values()
            if (student_id is None or slot.student_id == student_id)
            and (interviewer_id is None or slot.interviewer_id == interviewer_id)
            and (stage is None or slot.stage == stage)
        ]
        return items[offset : offset + limit], len(items)

    async def save(self, slot: FakeSlot) -> FakeSlot:
        self.slots[slot.id] = slot
        return slot

    async def delete_slot(self, slot: FakeSlot) -> None:
        self.slots.pop(slot.id, None)


class FakeIdentityRepository:
    def __init__(self, users: list[SimpleNamespace]) -> None:
        self.users = {user.id: user for user in users}

    async def get_user_by_id(self, user_id: UUID) -> SimpleNamespace | None:
        return self.users.get(user_id)

    async def list_interviewers(self) -> list[SimpleNamespace]:
        return [user for user in self.users.values() if user.role.name == RoleEnum.INTERVIEWER]


class FakeSchedulingRepository:
    def __init__(self, blocks: list[FakeBlock] | None = None) -> None:
        self.blocks = blocks or []

    async def list_blocks(self, day: date | None) -> list[FakeBlock]:
        return [block for block in self.blocks if day is None or block.date == day]


class FakeNotificationsRepository:
    def __init__(self) -> None:
        self.notifications: list[SimpleNamespace] = []

    async def create_notification(self, user_id: UUID, message: str) -> SimpleNamespace:
        notification = SimpleNamespace(id=uuid4(), user_id=user_id, message=message, read=False)
        self.notifications.append(notification)
        return notification


@dataclass
class FakeSyncRepository:
    changes: list[dict] = field(default_factory=list)

    async def record_change(self, entity_type: str, entity_id: str, action: ChangeActionEnum, payload: dict) -> None:
        self.changes.append(
            {"entity_type": entity_type, "entity_id": entity_id, "action": action, "payload": payload},
        )


def make_user(role: RoleEnum, approved: bool = True) -> SimpleNamespace:
    return SimpleNamespace(id=uuid4(), role=SimpleNamespace(name=role), approved=approved)


def make_placeholder(student_id: UUID) -> FakeSlot:
    return FakeSlot(
        id=uuid4(),
        student_id=student_id,
        interviewer_id=None,
        date=None,
        start_time=None,
        duration_minutes=0,
        stage=StageEnum.CLASSES,
        company_name="Pending",
    )


def make_booked(student_id: UUID, start_time: str, duration: int, **overrides) -> FakeSlot:
    values = {
        "id": uuid4(),
        "student_id": student_id,
        "interviewer_id": None,
        "date": DAY,
        "start_time": start_time,
        "duration_minutes": duration,
        "stage": StageEnum.CLASSES,
        "company_name": "Acme",
    }
    values.update(overrides)
    return FakeSlot(**values)


def make_service(
    *,
    users: list[SimpleNamespace],
    slots: list[FakeSlot] | None = None,
    blocks: list[FakeBlock] | None = None,
) -> tuple[InterviewsService, FakeInterviewsRepository, FakeNotificationsRepository, FakeSyncRepository]:
    interviews_repo = FakeInterviewsRepository(slots)
    notifications_repo = FakeNotificationsRepository()
    sync_repo = FakeSyncRepository()
    service = InterviewsService(
        repository=interviews_repo,
        identity_repository=FakeIdentityRepository(users),
        scheduling_repository=FakeSchedulingRepository(blocks),
        notifications_repository=notifications_repo,
        sync_repository=sync_repo,
    )
    return service, interviews_repo, notifications_repo, sync_repo


def make_request(start_time: str = "10:00", duration: int = 60, **overrides) -> InterviewScheduleRequest:
    values = {"date": DAY, "start_time": start_time, "duration_minutes": duration, "company_name": "Acme"}
    values.update(overrides)
    return InterviewScheduleRequest(**values)


@pytest.fixture(autouse=True)
def fixed_clock(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(interviews_service_module, "local_now", lambda: FIXED_NOW)


@pytest.mark.asyncio
async def test_first_booking_fills_placeholder_in_place() -> None:
    student = make_user(RoleEnum.STUDENT)
    interviewer = make_user(RoleEnum.INTERVIEWER)
    placeholder = make_placeholder(student.id)
    service, interviews_repo, _, sync_repo = make_service(users=[student, interviewer], slots=[placeholder])

    slot = await service.schedule_interview(make_request(), student)

    assert slot.id == placeholder.id
    assert len(interviews_repo.slots) == 1
    assert slot.schedule == Scheduled(day=DAY, start_minutes=600, duration_minutes=60)
    assert slot.company_name == "Acme"
    assert slot.interviewer_id == interviewer.id
    assert interviews_repo.locked_days == [DAY]
    assert sync_repo.changes[-1]["action"] == ChangeActionEnum.UPDATED


@pytest.mark.asyncio
async def test_booking_without_placeholder_creates_slot() -> None:
    student = make_user(RoleEnum.STUDENT)
    service, interviews_repo, _, sync_repo = make_service(users=[student])

    slot = await service.schedule_interview(make_request("11:15", 30), student)

    assert slot.id in interviews_repo.slots
    assert slot.stage == StageEnum.CLASSES
    assert slot.interviewer_id is None
    assert sync_repo.changes[-1]["action"] == ChangeActionEnum.CREATED


@pytest.mark.asyncio
async def test_second_booking_keeps_first_and_adds_new_slot() -> None:
    student = make_user(RoleEnum.STUDENT)
    placeholder = make_placeholder(student.id)
    service, interviews_repo, _, _ = make_service(users=[student], slots=[placeholder])

    first = await service.schedule_interview(make_request("10:00", 60), student)
    second = await service.schedule_interview(make_request("14:00", 30), student)

    assert first.id == placeholder.id
    assert second.id != first.id
    assert len(interviews_repo.slots) == 2


@pytest.mark.asyncio
async def test_default_assignment_is_deterministic() -> None:
    first = make_user(RoleEnum.INTERVIEWER)
    second = make_user(RoleEnum.INTERVIEWER)
    students = [make_user(RoleEnum.STUDENT) for _ in range(3)]
    service, _, _, _ = make_service(users=[first, second, *students])

    assigned = [
        (await service.schedule_interview(make_request(f"1{index}:00", 30), student)).interviewer_id
        for index, student in enumerate(students)
    ]

    assert assigned == [first.id, first.id, first.id]


@pytest.mark.asyncio
async def test_explicit_interviewer_overrides_default() -> None:
    student = make_user(RoleEnum.STUDENT)
    default = make_user(RoleEnum.INTERVIEWER)
    chosen = make_user(RoleEnum.INTERVIEWER)
    service, _, _, _ = make_service(users=[student, default, chosen])

    slot = await service.schedule_interview(make_request(interviewer_id=chosen.id), student)

    assert slot.interviewer_id == chosen.id


@pytest.mark.asyncio
async def test_explicit_interviewer_must_have_interviewer_role() -> None:
    student = make_user(RoleEnum.STUDENT)
    admin = make_user(RoleEnum.ADMIN)
    service, _, _, _ = make_service(users=[student, admin])

    with pytest.raises(BusinessRuleException):
        await service.schedule_interview(make_request(interviewer_id=admin.id), student)


@pytest.mark.asyncio
async def test_overlapping_booking_is_rejected_without_mutation() -> None:
    student = make_user(RoleEnum.STUDENT)
    other = make_user(RoleEnum.STUDENT)
    existing = make_booked(other.id, "10:00", 60)
    placeholder = make_placeholder(student.id)
    service, interviews_repo, _, sync_repo = make_service(users=[student, other], slots=[existing, placeholder])

    with pytest.raises(BookingConflictException) as exc:
        await service.schedule_interview(make_request("10:30", 30), student)

    assert exc.value.kind == ConflictKindEnum.OVERLAPS_EXISTING_INTERVIEW
    assert exc.value.conflicting_slot_id == existing.id
    assert isinstance(placeholder.schedule, Unscheduled)
    assert len(interviews_repo.slots) == 2
    assert sync_repo.changes == []


@pytest.mark.asyncio
async def test_concurrent_sessions_same_start_only_first_wins() -> None:
    first_student = make_user(RoleEnum.STUDENT)
    second_student = make_user(RoleEnum.STUDENT)
    service, interviews_repo, _, _ = make_service(users=[first_student, second_student])

    await service.schedule_interview(make_request("15:00", 60), first_student)
    with pytest.raises(BookingConflictException):
        await service.schedule_interview(make_request("15:30", 60), second_student)

    assert len(interviews_repo.slots) == 1


@pytest.mark.asyncio
async def test_blackout_booking_is_rejected() -> None:
    student = make_user(RoleEnum.STUDENT)
    block = FakeBlock(id=uuid4(), date=DAY, start_time="13:00", end_time="14:00")
    service, _, _, _ = make_service(users=[student], blocks=[block])

    with pytest.raises(BookingConflictException) as exc:
        await service.schedule_interview(make_request("13:30", 15), student)

    assert exc.value.kind == ConflictKindEnum.BLOCKED_BY_ADMIN


@pytest.mark.asyncio
async def test_booking_outside_working_hours_is_rejected() -> None:
    student = make_user(RoleEnum.STUDENT)
    service, _, _, _ = make_service(users=[student])

    with pytest.raises(BookingConflictException) as exc:
        await service.schedule_interview(make_request("21:00", 30), student)

    assert exc.value.kind == ConflictKindEnum.PAST_WORKING_HOURS


@pytest.mark.asyncio
async def test_booking_in_the_past_is_rejected() -> None:
    student = make_user(RoleEnum.STUDENT)
    service, _, _, _ = make_service(users=[student])

    with pytest.raises(BusinessRuleException):
        await service.schedule_interview(make_request(date=date(2030, 1, 5)), student)


@pytest.mark.asyncio
async def test_company_name_is_required_when_enabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "require_company_name", True)
    student = make_user(RoleEnum.STUDENT)
    service, interviews_repo, _, _ = make_service(users=[student])

    with pytest.raises(BusinessRuleException):
        await service.schedule_interview(make_request(company_name="   "), student)
    assert interviews_repo.slots == {}


@pytest.mark.asyncio
async def test_company_name_is_optional_when_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "require_company_name", False)
    student = make_user(RoleEnum.STUDENT)
    service, _, _, _ = make_service(users=[student])

    slot = await service.schedule_interview(make_request(company_name=None), student)

    assert slot.company_name is None


@pytest.mark.asyncio
async def test_unapproved_student_cannot_book() -> None:
    student = make_user(RoleEnum.STUDENT, approved=False)
    service, _, _, _ = make_service(users=[student])

    with pytest.raises(BusinessRuleException):
        await service.schedule_interview(make_request(), student)


@pytest.mark.asyncio
async def test_student_cannot_book_for_someone_else() -> None:
    student = make_user(RoleEnum.STUDENT)
    other = make_user(RoleEnum.STUDENT)
    service, _, _, _ = make_service(users=[student, other])

    with pytest.raises(UnauthorizedException):
        await service.schedule_interview(make_request(student_id=other.id), student)


@pytest.mark.asyncio
async def test_interviewer_cannot_book() -> None:
    interviewer = make_user(RoleEnum.INTERVIEWER)
    service, _, _, _ = make_service(users=[interviewer])

    with pytest.raises(UnauthorizedException):
        await service.schedule_interview(make_request(), interviewer)


@pytest.mark.asyncio
async def test_admin_books_on_behalf_of_student() -> None:
    admin = make_user(RoleEnum.ADMIN)
    student = make_user(RoleEnum.STUDENT)
    service, _, _, _ = make_service(users=[admin, student])

    with pytest.raises(BusinessRuleException):
        await service.schedule_interview(make_request(), admin)

    slot = await service.schedule_interview(make_request(student_id=student.id), admin)
    assert slot.student_id == student.id


@pytest.mark.asyncio
async def test_admin_booking_for_unknown_student_is_not_found() -> None:
    admin = make_user(RoleEnum.ADMIN)
    service, _, _, _ = make_service(users=[admin])

    with pytest.raises(NotFoundException):
        await service.schedule_interview(make_request(student_id=uuid4()), admin)


@pytest.mark.asyncio
async def test_cancel_is_idempotent() -> None:
    student = make_user(RoleEnum.STUDENT)
    slot = make_booked(student.id, "10:00", 60)
    service, interviews_repo, _, sync_repo = make_service(users=[student], slots=[slot])

    await service.cancel_interview(slot.id, student)
    await service.cancel_interview(slot.id, student)

    assert interviews_repo.slots == {}
    assert len(sync_repo.changes) == 1
    assert sync_repo.changes[0]["action"] == ChangeActionEnum.DELETED


@pytest.mark.asyncio
async def test_cancel_frees_time_for_others() -> None:
    student = make_user(RoleEnum.STUDENT)
    other = make_user(RoleEnum.STUDENT)
    slot = make_booked(student.id, "10:00", 60)
    service, _, _, _ = make_service(users=[student, other], slots=[slot])

    await service.cancel_interview(slot.id, student)
    booked = await service.schedule_interview(make_request("10:00", 60), other)

    assert booked.student_id == other.id


@pytest.mark.asyncio
async def test_student_cannot_cancel_foreign_slot() -> None:
    student = make_user(RoleEnum.STUDENT)
    other = make_user(RoleEnum.STUDENT)
    slot = make_booked(other.id, "10:00", 60)
    service, interviews_repo, _, _ = make_service(users=[student, other], slots=[slot])

    with pytest.raises(UnauthorizedException):
        await service.cancel_interview(slot.id, student)
    assert slot.id in interviews_repo.slots


@pytest.mark.asyncio
async def test_interviewer_cannot_cancel() -> None:
    interviewer = make_user(RoleEnum.INTERVIEWER)
    slot = make_booked(uuid4(), "10:00", 60, interviewer_id=interviewer.id)
    service, _, _, _ = make_service(users=[interviewer], slots=[slot])

    with pytest.raises(UnauthorizedException):
        await service.cancel_interview(slot.id, interviewer)


@pytest.mark.asyncio
async def test_admin_cancel_notifies_candidate_and_deletes_slot() -> None:
    admin = make_user(RoleEnum.ADMIN)
    student = make_user(RoleEnum.STUDENT)
    slot = make_booked(student.id, "14:30", 60)
    service, interviews_repo, notifications_repo, sync_repo = make_service(users=[admin, student], slots=[slot])

    await service.admin_cancel_interview(slot.id, admin)

    assert interviews_repo.slots == {}
    assert len(notifications_repo.notifications) == 1
    notification = notifications_repo.notifications[0]
    assert notification.user_id == student.id
    assert "2030-01-07" in notification.message
    assert "14:30" in notification.message
    assert {change["entity_type"] for change in sync_repo.changes} == {"notification", "interview_slot"}


@pytest.mark.asyncio
async def test_admin_cancel_of_placeholder_mentions_registration() -> None:
    admin = make_user(RoleEnum.ADMIN)
    student = make_user(RoleEnum.STUDENT)
    placeholder = make_placeholder(student.id)
    service, _, notifications_repo, _ = make_service(users=[admin, student], slots=[placeholder])

    await service.admin_cancel_interview(placeholder.id, admin)

    assert "registration" in notifications_repo.notifications[0].message


@pytest.mark.asyncio
async def test_admin_cancel_is_idempotent_and_admin_only() -> None:
    admin = make_user(RoleEnum.ADMIN)
    student = make_user(RoleEnum.STUDENT)
    slot = make_booked(student.id, "10:00", 60)
    service, _, notifications_repo, _ = make_service(users=[admin, student], slots=[slot])

    with pytest.raises(UnauthorizedException):
        await service.admin_cancel_interview(slot.id, student)

    await service.admin_cancel_interview(slot.id, admin)
    await service.admin_cancel_interview(slot.id, admin)

    assert len(notifications_repo.notifications) == 1


@pytest.mark.asyncio
async def test_stage_change_is_admin_only_and_any_transition_allowed() -> None:
    admin = make_user(RoleEnum.ADMIN)
    student = make_user(RoleEnum.STUDENT)
    slot = make_booked(student.id, "10:00", 60)
    service, _, _, _ = make_service(users=[admin, student], slots=[slot])

    with pytest.raises(UnauthorizedException):
        await service.update_stage(slot.id, StageEnum.SUCCESSFUL, student)

    await service.update_stage(slot.id, StageEnum.SUCCESSFUL, admin)
    assert slot.stage == StageEnum.SUCCESSFUL
    await service.update_stage(slot.id, StageEnum.INTERVIEWS, admin)
    assert slot.stage == StageEnum.INTERVIEWS


@pytest.mark.asyncio
async def test_finished_slot_frees_its_time() -> None:
    admin = make_user(RoleEnum.ADMIN)
    student = make_user(RoleEnum.STUDENT)
    other = make_user(RoleEnum.STUDENT)
    slot = make_booked(student.id, "10:00", 60)
    service, _, _, _ = make_service(users=[admin, student, other], slots=[slot])

    await service.update_stage(slot.id, StageEnum.UNSUCCESSFUL, admin)
    booked = await service.schedule_interview(make_request("10:00", 60), other)

    assert booked.student_id == other.id


@pytest.mark.asyncio
async def test_reactivating_finished_slot_inside_blackout_is_rejected() -> None:
    admin = make_user(RoleEnum.ADMIN)
    student = make_user(RoleEnum.STUDENT)
    slot = make_booked(student.id, "13:00", 60, stage=StageEnum.SUCCESSFUL)
    block = FakeBlock(id=uuid4(), date=DAY, start_time="13:00", end_time="14:00")
    service, interviews_repo, _, sync_repo = make_service(users=[admin, student], slots=[slot], blocks=[block])

    with pytest.raises(BookingConflictException) as exc:
        await service.update_stage(slot.id, StageEnum.CLASSES, admin)

    assert exc.value.kind == ConflictKindEnum.BLOCKED_BY_ADMIN
    assert slot.stage == StageEnum.SUCCESSFUL
    assert interviews_repo.locked_days == [DAY]
    assert sync_repo.changes == []


@pytest.mark.asyncio
async def test_reactivating_finished_slot_over_new_booking_is_rejected() -> None:
    admin = make_user(RoleEnum.ADMIN)
    student = make_user(RoleEnum.STUDENT)
    other = make_user(RoleEnum.STUDENT)
    slot = make_booked(student.id, "10:00", 60, stage=StageEnum.UNSUCCESSFUL)
    newer = make_booked(other.id, "10:30", 30)
    service, _, _, _ = make_service(users=[admin, student, other], slots=[slot, newer])

    with pytest.raises(BookingConflictException) as exc:
        await service.update_stage(slot.id, StageEnum.INTERVIEWS, admin)

    assert exc.value.kind == ConflictKindEnum.OVERLAPS_EXISTING_INTERVIEW
    assert exc.value.conflicting_slot_id == newer.id
    assert slot.stage == StageEnum.UNSUCCESSFUL


@pytest.mark.asyncio
async def test_reactivating_finished_slot_with_free_time_succeeds() -> None:
    admin = make_user(RoleEnum.ADMIN)
    student = make_user(RoleEnum.STUDENT)
    slot = make_booked(student.id, "10:00", 60, stage=StageEnum.SUCCESSFUL)
    placeholder = make_placeholder(student.id)
    placeholder.stage = StageEnum.UNSUCCESSFUL
    block = FakeBlock(id=uuid4(), date=DAY, start_time="13:00", end_time="14:00")
    service, interviews_repo, _, _ = make_service(
        users=[admin, student],
        slots=[slot, placeholder],
        blocks=[block],
    )

    await service.update_stage(slot.id, StageEnum.CLASSES, admin)
    await service.update_stage(placeholder.id, StageEnum.CLASSES, admin)

    assert slot.stage == StageEnum.CLASSES
    assert placeholder.stage == StageEnum.CLASSES
    assert interviews_repo.locked_days == [DAY]


@pytest.mark.asyncio
async def test_reassignment_validates_target_and_stage() -> None:
    admin = make_user(RoleEnum.ADMIN)
    interviewer = make_user(RoleEnum.INTERVIEWER)
    student = make_user(RoleEnum.STUDENT)
    active = make_booked(student.id, "10:00", 60)
    finished = make_booked(student.id, "12:00", 60, stage=StageEnum.SUCCESSFUL)
    service, _, _, _ = make_service(users=[admin, interviewer, student], slots=[active, finished])

    await service.assign_interviewer(active.id, interviewer.id, admin)
    assert active.interviewer_id == interviewer.id

    with pytest.raises(BusinessRuleException):
        await service.assign_interviewer(finished.id, interviewer.id, admin)
    with pytest.raises(BusinessRuleException):
        await service.assign_interviewer(active.id, student.id, admin)
    with pytest.raises(NotFoundException):
        await service.assign_interviewer(active.id, uuid4(), admin)
    with pytest.raises(UnauthorizedException):
        await service.assign_interviewer(active.id, interviewer.id, student)


@pytest.mark.asyncio
async def test_list_interviews_is_scoped_by_role() -> None:
    admin = make_user(RoleEnum.ADMIN)
    interviewer = make_user(RoleEnum.INTERVIEWER)
    student = make_user(RoleEnum.STUDENT)
    mine = make_booked(student.id, "10:00", 60, interviewer_id=interviewer.id)
    foreign = make_booked(uuid4(), "12:00", 60)
    service, _, _, _ = make_service(users=[admin, interviewer, student], slots=[mine, foreign])

    student_items, student_total = await service.list_interviews(student, None, 20, 0)
    interviewer_items, _ = await service.list_interviews(interviewer, None, 20, 0)
    admin_items, admin_total = await service.list_interviews(admin, None, 20, 0)

    assert [item.id for item in student_items] == [mine.id]
    assert student_total == 1
    assert [item.id for item in interviewer_items] == [mine.id]
    assert admin_total == 2
    assert len(admin_items) == 2
