"""HTTP client keeping a session-local calendar snapshot in sync with the API.

Reads are optimistic: the availability grid is computed locally from the
last fetched snapshot, which may be stale. Writes are authoritative: the
server re-validates every booking, and on any failure the provisional local
change is rolled back. Every write ends with a full refetch; when that
refetch fails the snapshot is flagged stale and the next poll reloads it.
"""

from __future__ import annotations

import datetime as dt
import logging
from uuid import UUID, uuid4

import httpx

from app.core.enums import StageEnum
from app.core.security import ACTOR_HEADER_NAME
from app.modules.interviews.schemas import InterviewScheduleRequest, InterviewSlotRead
from app.modules.scheduling.availability import SlotOption, compute_slots
from app.modules.scheduling.domain import WorkingHours
from app.modules.sync.schemas import CalendarStateRead, RevisionRead
from app.shared.utils import local_now, utc_now

logger = logging.getLogger(__name__)


class CalendarWriteError(Exception):
    """Raised when the API rejects or fails an authoritative write."""

    def __init__(self, status_code: int, code: str, message: str, kind: str | None = None) -> None:
        self.status_code = status_code
        self.code = code
        self.kind = kind
        super().__init__(message)

    @classmethod
    def from_response(cls, response: httpx.Response) -> CalendarWriteError:
        try:
            error = response.json().get("error", {})
        except ValueError:
            error = {}
        return cls(
            status_code=response.status_code,
            code=error.get("code", "http_error"),
            message=error.get("message", response.text),
            kind=error.get("kind"),
        )


class CalendarClient:
    """Calendar session bound to one acting user."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        actor_id: UUID,
        *,
        hours: WorkingHours | None = None,
    ) -> None:
        self.http = http
        self.actor_id = actor_id
        self.hours = hours or WorkingHours()
        self.snapshot: CalendarStateRead | None = None
        self.stale = False

    @property
    def _headers(self) -> dict[str, str]:
        return {ACTOR_HEADER_NAME: str(self.actor_id)}

    def _require_snapshot(self) -> CalendarStateRead:
        if self.snapshot is None:
            raise RuntimeError("Calendar snapshot is not loaded; call refresh() first")
        return self.snapshot

    async def refresh(self) -> CalendarStateRead:
        """Replace the local snapshot with the full current state."""
        response = await self.http.get("/sync/state", headers=self._headers)
        if response.is_error:
            raise CalendarWriteError.from_response(response)
        self.snapshot = CalendarStateRead.model_validate(response.json())
        self.stale = False
        return self.snapshot

    async def refresh_if_changed(self) -> bool:
        """Poll the change signal and refetch everything when it moved."""
        response = await self.http.get("/sync/revision", headers=self._headers)
        if response.is_error:
            raise CalendarWriteError.from_response(response)
        revision = RevisionRead.model_validate(response.json()).revision
        if self.snapshot is not None and not self.stale and self.snapshot.revision == revision:
            return False
        await self.refresh()
        return True

    def available_slots(
        self,
        day: dt.date,
        duration_minutes: int,
        now: dt.datetime | None = None,
    ) -> list[SlotOption]:
        """Compute the slot grid from the cached snapshot."""
        snapshot = self._require_snapshot()
        return compute_slots(
            day,
            duration_minutes,
            snapshot.interview_slots,
            snapshot.blocked_slots,
            now or local_now(),
            candidate_id=self.actor_id,
            hours=self.hours,
        )

    async def book(self, request: InterviewScheduleRequest) -> InterviewSlotRead:
        """Apply a provisional booking locally, then commit it through the API."""
        snapshot = self._require_snapshot()
        created_at = utc_now()
        provisional = InterviewSlotRead(
            id=uuid4(),
            student_id=request.student_id or self.actor_id,
            interviewer_id=request.interviewer_id,
            date=request.date,
            start_time=request.start_time,
            duration_minutes=request.duration_minutes,
            stage=StageEnum.CLASSES,
            company_name=request.company_name,
            created_at=created_at,
            updated_at=created_at,
        )
        snapshot.interview_slots.append(provisional)

        try:
            response = await self.http.post(
                "/interviews",
                json=request.model_dump(mode="json", exclude_none=True),
                headers=self._headers,
            )
        except httpx.HTTPError:
            # The server may have committed before the transport failed.
            snapshot.interview_slots.remove(provisional)
            await self._reconcile()
            raise

        if response.is_error:
            snapshot.interview_slots.remove(provisional)
            error = CalendarWriteError.from_response(response)
            logger.info("Booking rejected by server: %s (%s)", error, error.kind)
            await self._reconcile()
            raise error

        booked = InterviewSlotRead.model_validate(response.json())
        snapshot.interview_slots[snapshot.interview_slots.index(provisional)] = booked
        await self._reconcile()
        return booked

    async def _reconcile(self) -> None:
        """Refetch after a write; on failure keep the snapshot flagged stale."""
        try:
            await self.refresh()
        except (httpx.HTTPError, CalendarWriteError) as exc:
            self.stale = True
            logger.warning("Calendar refetch after write failed, snapshot marked stale: %s", exc)
