"""Identity schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core.enums import RoleEnum


class RoleRead(BaseModel):
    """Role response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: RoleEnum


class StudentRegister(BaseModel):
    """Self-service candidate registration request."""

    name: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=3, max_length=64)


class CandidateCreate(BaseModel):
    """Admin-created, pre-approved candidate."""

    name: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=3, max_length=64)


class InterviewerCreate(BaseModel):
    """Admin-created interviewer account."""

    name: str = Field(min_length=1, max_length=255)
    username: str = Field(min_length=3, max_length=64)
    email: EmailStr | None = None


class UserRead(BaseModel):
    """User output schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    phone: str
    email: str | None
    approved: bool
    role: RoleRead
    created_at: datetime
    updated_at: datetime
