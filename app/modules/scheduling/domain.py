"""Value types shared by the availability calculator and booking validator."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Protocol, assert_never
from uuid import UUID

from app.core.config import Settings
from app.core.enums import StageEnum
from app.modules.scheduling.timeutils import minutes_to_time, overlaps, time_to_minutes


@dataclass(frozen=True, slots=True)
class Unscheduled:
    """Slot registered for a candidate but not yet placed on the calendar."""


@dataclass(frozen=True, slots=True)
class Scheduled:
    """Slot placed on a calendar day."""

    day: date
    start_minutes: int
    duration_minutes: int

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration_minutes

    @property
    def start_time(self) -> str:
        return minutes_to_time(self.start_minutes)


SlotSchedule = Scheduled | Unscheduled


class BookingLike(Protocol):
    id: UUID
    student_id: UUID
    stage: StageEnum

    @property
    def schedule(self) -> SlotSchedule: ...


class BlockLike(Protocol):
    id: UUID
    date: date
    start_time: str
    end_time: str


@dataclass(frozen=True, slots=True)
class WorkingHours:
    """Bookable window of a calendar day in minute offsets."""

    opening_minute: int = 9 * 60
    closing_minute: int = 20 * 60 + 30
    step_minutes: int = 15
    end_grace_minutes: int | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> WorkingHours:
        return cls(
            opening_minute=settings.opening_minute,
            closing_minute=settings.closing_minute,
            step_minutes=settings.slot_step_minutes,
            end_grace_minutes=settings.slot_end_grace_minutes,
        )

    def candidate_starts(self) -> range:
        return range(self.opening_minute, self.closing_minute + 1, self.step_minutes)

    def end_exceeds_bound(self, end_minutes: int) -> bool:
        if self.end_grace_minutes is None:
            return False
        return end_minutes > self.closing_minute + self.end_grace_minutes


def is_active_stage(stage: StageEnum) -> bool:
    """Return True for stages that take part in overlap checks."""
    match stage:
        case StageEnum.CLASSES | StageEnum.INTERVIEWS:
            return True
        case StageEnum.SUCCESSFUL | StageEnum.UNSUCCESSFUL:
            return False
        case _:
            assert_never(stage)


def active_intervals(bookings: Iterable[BookingLike], day: date) -> list[tuple[BookingLike, Scheduled]]:
    """Select scheduled, active bookings on ``day`` paired with their schedule."""
    selected: list[tuple[BookingLike, Scheduled]] = []
    for booking in bookings:
        schedule = booking.schedule
        if not isinstance(schedule, Scheduled) or schedule.day != day:
            continue
        if is_active_stage(booking.stage):
            selected.append((booking, schedule))
    return selected


def first_overlapping_block(
    blocks: Iterable[BlockLike],
    day: date,
    start: int,
    end: int,
) -> BlockLike | None:
    for block in blocks:
        if block.date != day:
            continue
        if overlaps(start, end, time_to_minutes(block.start_time), time_to_minutes(block.end_time)):
            return block
    return None


def overlapping_bookings(
    intervals: Iterable[tuple[BookingLike, Scheduled]],
    start: int,
    end: int,
) -> list[BookingLike]:
    return [
        booking
        for booking, schedule in intervals
        if overlaps(start, end, schedule.start_minutes, schedule.end_minutes)
    ]


def schedule_from_fields(day: date | None, start_time: str | None, duration_minutes: int) -> SlotSchedule:
    """Build the schedule variant from stored slot columns."""
    if day is None or start_time is None or duration_minutes <= 0:
        return Unscheduled()
    return Scheduled(day=day, start_minutes=time_to_minutes(start_time), duration_minutes=duration_minutes)
