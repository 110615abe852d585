"""Actor identification forwarded by the authenticating gateway."""

from __future__ import annotations

from uuid import UUID

from fastapi.security import APIKeyHeader

from app.shared.exceptions import UnauthorizedException

ACTOR_HEADER_NAME = "X-User-Id"

actor_header_scheme = APIKeyHeader(name=ACTOR_HEADER_NAME, auto_error=False)


def parse_actor_id(raw_value: str | None) -> UUID:
    """Parse the forwarded user id header into a UUID."""
    if not raw_value:
        raise UnauthorizedException(f"{ACTOR_HEADER_NAME} header is required")
    try:
        return UUID(raw_value.strip())
    except ValueError as exc:
        raise UnauthorizedException(f"{ACTOR_HEADER_NAME} header is not a valid id") from exc
