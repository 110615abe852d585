"""Minute-offset arithmetic for naive local times of day."""

from __future__ import annotations

import re

_HHMM_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")

MINUTES_PER_DAY = 24 * 60


def time_to_minutes(hhmm: str | None) -> int:
    """Convert ``HH:MM`` to minutes after midnight.

    Malformed values normalize to ``0`` instead of raising, so one bad row
    cannot break a whole availability grid.
    """
    if not hhmm:
        return 0
    match = _HHMM_PATTERN.match(hhmm.strip())
    if match is None:
        return 0
    hours, minutes = int(match.group(1)), int(match.group(2))
    if minutes >= 60 or hours * 60 + minutes > MINUTES_PER_DAY:
        return 0
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """Convert minutes after midnight to zero-padded ``HH:MM``."""
    if minutes < 0:
        raise ValueError("Minute offset must not be negative")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open interval intersection; touching boundaries do not overlap."""
    return max(start_a, start_b) < min(end_a, end_b)
