"""Commit-time booking validation against authoritative calendar state."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from app.core.enums import ConflictKindEnum
from app.modules.scheduling.domain import (
    BlockLike,
    BookingLike,
    WorkingHours,
    active_intervals,
    first_overlapping_block,
    overlapping_bookings,
)
from app.modules.scheduling.timeutils import minutes_to_time, time_to_minutes


@dataclass(frozen=True, slots=True)
class BookingOk:
    """Requested interval is free."""

    start_minutes: int
    end_minutes: int


@dataclass(frozen=True, slots=True)
class BookingConflict:
    """Requested interval collides with the calendar."""

    kind: ConflictKindEnum
    detail: str
    conflicting_slot_id: UUID | None = None


BookingDecision = BookingOk | BookingConflict


def validate_booking(
    day: date,
    start_time: str,
    duration_minutes: int,
    candidate_id: UUID,
    bookings: Iterable[BookingLike],
    blocks: Iterable[BlockLike],
    *,
    hours: WorkingHours | None = None,
) -> BookingDecision:
    """Re-check a requested booking with the same overlap rules as the grid."""
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")

    hours = hours or WorkingHours()
    start = time_to_minutes(start_time)
    end = start + duration_minutes

    if start < hours.opening_minute or start > hours.closing_minute or hours.end_exceeds_bound(end):
        return BookingConflict(
            kind=ConflictKindEnum.PAST_WORKING_HOURS,
            detail=(
                f"{minutes_to_time(start)}-{minutes_to_time(end)} is outside working hours "
                f"{minutes_to_time(hours.opening_minute)}-{minutes_to_time(hours.closing_minute)}"
            ),
        )

    block = first_overlapping_block(blocks, day, start, end)
    if block is not None:
        return BookingConflict(
            kind=ConflictKindEnum.BLOCKED_BY_ADMIN,
            detail=f"Time {block.start_time}-{block.end_time} on {day.isoformat()} is blocked by admin",
        )

    colliding = overlapping_bookings(active_intervals(bookings, day), start, end)
    if colliding:
        mine = candidate_id is not None and any(item.student_id == candidate_id for item in colliding)
        return BookingConflict(
            kind=ConflictKindEnum.OVERLAPS_EXISTING_INTERVIEW,
            detail=(
                "You already have an interview at this time"
                if mine
                else f"Time {minutes_to_time(start)} on {day.isoformat()} is already booked"
            ),
            conflicting_slot_id=colliding[0].id,
        )

    return BookingOk(start_minutes=start, end_minutes=end)
