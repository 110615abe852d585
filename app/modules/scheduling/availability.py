"""Availability grid computation for one calendar day."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from app.core.enums import SlotStatusEnum
from app.modules.scheduling.domain import (
    BlockLike,
    BookingLike,
    WorkingHours,
    active_intervals,
    first_overlapping_block,
    overlapping_bookings,
)
from app.modules.scheduling.timeutils import minutes_to_time


@dataclass(frozen=True, slots=True)
class SlotOption:
    """One labeled candidate start time."""

    time: str
    status: SlotStatusEnum


def _seconds_into_day(moment: datetime) -> float:
    return moment.hour * 3600 + moment.minute * 60 + moment.second + moment.microsecond / 1_000_000


def is_start_in_past(day: date, start_minutes: int, now: datetime) -> bool:
    """Return True when the start instant on ``day`` precedes ``now``."""
    today = now.date()
    if day != today:
        return day < today
    return start_minutes * 60 < _seconds_into_day(now)


def compute_slots(
    day: date,
    duration_minutes: int,
    bookings: Iterable[BookingLike],
    blocks: Iterable[BlockLike],
    now: datetime,
    *,
    candidate_id: UUID | None = None,
    hours: WorkingHours | None = None,
) -> list[SlotOption]:
    """Label every candidate start of the working day.

    Starts step through the working window at a fixed granularity whatever
    the duration; the duration only widens the conflict window. Starts in the
    past are omitted, blackout windows win over bookings, and a booking of
    ``candidate_id`` is reported as ``mine``.
    """
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")

    hours = hours or WorkingHours()
    blocks = list(blocks)
    intervals = active_intervals(bookings, day)

    options: list[SlotOption] = []
    for start in hours.candidate_starts():
        end = start + duration_minutes
        if is_start_in_past(day, start, now) or hours.end_exceeds_bound(end):
            continue

        if first_overlapping_block(blocks, day, start, end) is not None:
            status = SlotStatusEnum.BLOCKED
        else:
            colliding = overlapping_bookings(intervals, start, end)
            if not colliding:
                status = SlotStatusEnum.AVAILABLE
            elif candidate_id is not None and any(item.student_id == candidate_id for item in colliding):
                status = SlotStatusEnum.MINE
            else:
                status = SlotStatusEnum.BOOKED

        options.append(SlotOption(time=minutes_to_time(start), status=status))
    return options
