"""Core enums used across modules."""

from enum import StrEnum


class RoleEnum(StrEnum):
    """System roles."""

    STUDENT = "student"
    INTERVIEWER = "interviewer"
    ADMIN = "admin"


class StageEnum(StrEnum):
    """Candidate pipeline stage attached to an interview slot."""

    CLASSES = "Classes"
    INTERVIEWS = "Interviews"
    SUCCESSFUL = "Successful"
    UNSUCCESSFUL = "Unsuccessful"


class SlotStatusEnum(StrEnum):
    """Display status of a candidate start time in the availability grid."""

    AVAILABLE = "available"
    BOOKED = "booked"
    MINE = "mine"
    BLOCKED = "blocked"


class ConflictKindEnum(StrEnum):
    """Reason a booking attempt was rejected at commit time."""

    BLOCKED_BY_ADMIN = "blocked_by_admin"
    OVERLAPS_EXISTING_INTERVIEW = "overlaps_existing_interview"
    PAST_WORKING_HOURS = "past_working_hours"


class SlotStateEnum(StrEnum):
    """Lifecycle state of an interview slot."""

    PLACEHOLDER = "placeholder"
    BOOKED = "booked"
    SUCCESSFUL = "successful"
    UNSUCCESSFUL = "unsuccessful"


class ChangeActionEnum(StrEnum):
    """Kind of mutation recorded in the calendar change feed."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
