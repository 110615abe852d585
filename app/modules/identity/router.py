"""Identity API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.enums import RoleEnum
from app.modules.identity.schemas import CandidateCreate, InterviewerCreate, StudentRegister, UserRead
from app.modules.identity.service import IdentityService, get_current_user, get_identity_service, require_roles
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/identity", tags=["identity"])


@router.post("/students/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register_student(
    payload: StudentRegister,
    service: IdentityService = Depends(get_identity_service),
) -> UserRead:
    """Register a candidate pending admin approval."""
    user = await service.register_student(payload)
    return UserRead.model_validate(user)


@router.post("/students", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def add_candidate(
    payload: CandidateCreate,
    service: IdentityService = Depends(get_identity_service),
    current_user=Depends(get_current_user),
) -> UserRead:
    """Create an approved candidate with a placeholder slot."""
    user = await service.add_candidate(payload, current_user)
    return UserRead.model_validate(user)


@router.post("/students/{student_id}/approve", response_model=UserRead)
async def approve_student(
    student_id: UUID,
    service: IdentityService = Depends(get_identity_service),
    current_user=Depends(get_current_user),
) -> UserRead:
    """Approve candidate for booking."""
    user = await service.approve_student(student_id, current_user)
    return UserRead.model_validate(user)


@router.post("/interviewers", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_interviewer(
    payload: InterviewerCreate,
    service: IdentityService = Depends(get_identity_service),
    current_user=Depends(require_roles(RoleEnum.ADMIN)),
) -> UserRead:
    """Create interviewer account."""
    user = await service.create_interviewer(payload, current_user)
    return UserRead.model_validate(user)


@router.get("/users", response_model=Page[UserRead])
async def list_users(
    role: RoleEnum | None = Query(default=None),
    pagination=Depends(get_pagination_params),
    service: IdentityService = Depends(get_identity_service),
    current_user=Depends(get_current_user),
) -> Page[UserRead]:
    """List users, optionally filtered by role."""
    items, total = await service.list_users(role, current_user, pagination.limit, pagination.offset)
    serialized = [UserRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/users/me", response_model=UserRead)
async def get_me(current_user=Depends(get_current_user)) -> UserRead:
    """Return profile of current user."""
    return UserRead.model_validate(current_user)
