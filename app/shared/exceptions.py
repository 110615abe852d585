"""Custom exception hierarchy and handlers."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.enums import ConflictKindEnum

logger = logging.getLogger(__name__)

OVERLAP_CONSTRAINT_NAME = "ex_interview_slots_no_overlap"


class AppException(Exception):
    """Base application exception."""

    status_code = 400
    code = "app_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def extra(self) -> dict[str, Any]:
        """Additional fields rendered next to code and message."""
        return {}


class NotFoundException(AppException):
    """Raised when entity is not found."""

    status_code = 404
    code = "not_found"


class ConflictException(AppException):
    """Raised when entity conflicts with current state."""

    status_code = 409
    code = "conflict"


class BookingConflictException(ConflictException):
    """Raised when a booking collides with the authoritative calendar state."""

    code = "booking_conflict"

    def __init__(self, kind: str, message: str, conflicting_slot_id: UUID | None = None) -> None:
        self.kind = kind
        self.conflicting_slot_id = conflicting_slot_id
        super().__init__(message)

    def extra(self) -> dict[str, Any]:
        return {
            "kind": str(self.kind),
            "conflicting_slot_id": str(self.conflicting_slot_id) if self.conflicting_slot_id else None,
        }


class UnauthorizedException(AppException):
    """Raised when user has no rights for operation."""

    status_code = 403
    code = "forbidden"


class BusinessRuleException(AppException):
    """Raised when business rule validation fails."""

    status_code = 422
    code = "business_rule_violation"


class PersistenceException(AppException):
    """Raised when the backing store rejects or fails a call."""

    status_code = 503
    code = "persistence_failure"


async def app_exception_handler(_: Request, exc: AppException) -> JSONResponse:
    """Handle custom domain exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": exc.code, "message": exc.message, **exc.extra()}},
    )


async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions in unified shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": "http_error", "message": str(exc.detail)}},
    )


async def persistence_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Surface store failures as typed persistence errors."""
    if isinstance(exc, IntegrityError) and OVERLAP_CONSTRAINT_NAME in str(exc.orig):
        logger.info("Overlap constraint rejected write on %s", request.url.path)
        return await app_exception_handler(
            request,
            BookingConflictException(
                ConflictKindEnum.OVERLAPS_EXISTING_INTERVIEW,
                "Requested time overlaps an interview booked concurrently",
            ),
        )
    logger.exception("Persistence failure on %s: %s", request.url.path, exc)
    return await app_exception_handler(request, PersistenceException("Backing store call failed"))


async def unhandled_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "internal_error", "message": "Internal server error"}},
    )


def register_exception_handlers(app) -> None:
    """Register global exception handlers."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, persistence_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
