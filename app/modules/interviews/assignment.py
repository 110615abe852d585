"""Default interviewer assignment policy."""

from __future__ import annotations

from collections.abc import Iterable
from typing import assert_never
from uuid import UUID

from app.core.enums import RoleEnum


def can_interview(role: RoleEnum) -> bool:
    """Return True when users of ``role`` may be attached to a slot."""
    match role:
        case RoleEnum.INTERVIEWER:
            return True
        case RoleEnum.STUDENT | RoleEnum.ADMIN:
            return False
        case _:
            assert_never(role)


def pick_default_interviewer(users: Iterable) -> UUID | None:
    """Return the first eligible interviewer in the given order.

    Load, availability and specialization are not considered; the same
    ordered input always yields the same assignee.
    """
    for user in users:
        if can_interview(user.role.name):
            return user.id
    return None
