from __future__ import annotations

import json
from datetime import date, datetime
from uuid import UUID, uuid4

import httpx
import pytest

from app.core.enums import SlotStatusEnum
from app.modules.interviews.schemas import InterviewScheduleRequest
from app.modules.sync.client import CalendarClient, CalendarWriteError

DAY = date(2030, 1, 7)
BEFORE_DAY = datetime(2030, 1, 6, 8, 0)
TIMESTAMP = "2030-01-01T00:00:00+00:00"


def slot_payload(student_id: UUID, start_time: str, duration: int) -> dict:
    return {
        "id": str(uuid4()),
        "student_id": str(student_id),
        "interviewer_id": None,
        "date": DAY.isoformat(),
        "start_time": start_time,
        "duration_minutes": duration,
        "stage": "Classes",
        "company_name": "Acme",
        "created_at": TIMESTAMP,
        "updated_at": TIMESTAMP,
    }


class FakeCalendarServer:
    """In-memory stand-in for the sync and interviews endpoints."""

    def __init__(self) -> None:
        self.revision = 1
        self.slots: list[dict] = []
        self.blocks: list[dict] = []
        self.reject_with: tuple[int, dict] | None = None
        self.fail_transport = False
        self.timeout_after_commit = False
        self.state_failures = 0
        self.state_calls = 0
        self.seen_actor_ids: set[str] = set()

    def state(self) -> dict:
        return {
            "revision": self.revision,
            "users": [],
            "interview_slots": list(self.slots),
            "blocked_slots": list(self.blocks),
            "notifications": [],
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.seen_actor_ids.add(request.headers.get("X-User-Id", ""))
        if request.url.path == "/sync/state":
            self.state_calls += 1
            if self.state_failures:
                self.state_failures -= 1
                return httpx.Response(503, json={"error": {"code": "persistence_failure", "message": "down"}})
            return httpx.Response(200, json=self.state())
        if request.url.path == "/sync/revision":
            return httpx.Response(200, json={"revision": self.revision})
        if request.url.path == "/interviews" and request.method == "POST":
            if self.fail_transport:
                raise httpx.ConnectError("connection refused", request=request)
            if self.reject_with is not None:
                status_code, error = self.reject_with
                return httpx.Response(status_code, json={"error": error})
            body = json.loads(request.content)
            slot = slot_payload(UUID(request.headers["X-User-Id"]), body["start_time"], body["duration_minutes"])
            self.slots.append(slot)
            self.revision += 1
            if self.timeout_after_commit:
                raise httpx.ReadTimeout("response lost", request=request)
            return httpx.Response(201, json=slot)
        return httpx.Response(404, json={"error": {"code": "not_found", "message": "Not Found"}})


def make_client(server: FakeCalendarServer, actor_id: UUID) -> tuple[CalendarClient, httpx.AsyncClient]:
    http = httpx.AsyncClient(transport=httpx.MockTransport(server.handler), base_url="http://testserver")
    return CalendarClient(http, actor_id), http


def request_for(start_time: str, duration: int = 60) -> InterviewScheduleRequest:
    return InterviewScheduleRequest(date=DAY, start_time=start_time, duration_minutes=duration, company_name="Acme")


@pytest.mark.asyncio
async def test_grid_is_computed_from_cached_snapshot() -> None:
    server = FakeCalendarServer()
    actor_id = uuid4()
    server.slots.append(slot_payload(actor_id, "10:00", 60))
    server.slots.append(slot_payload(uuid4(), "14:00", 60))
    server.blocks.append(
        {"id": str(uuid4()), "date": DAY.isoformat(), "start_time": "12:00", "end_time": "13:00", "reason": None,
         "created_at": TIMESTAMP},
    )
    client, http = make_client(server, actor_id)

    async with http:
        await client.refresh()
        statuses = {item.time: item.status for item in client.available_slots(DAY, 60, now=BEFORE_DAY)}

    assert statuses["10:00"] == SlotStatusEnum.MINE
    assert statuses["14:00"] == SlotStatusEnum.BOOKED
    assert statuses["12:00"] == SlotStatusEnum.BLOCKED
    assert statuses["16:00"] == SlotStatusEnum.AVAILABLE
    assert server.seen_actor_ids == {str(actor_id)}


@pytest.mark.asyncio
async def test_grid_requires_loaded_snapshot() -> None:
    client, http = make_client(FakeCalendarServer(), uuid4())

    async with http:
        with pytest.raises(RuntimeError):
            client.available_slots(DAY, 60, now=BEFORE_DAY)


@pytest.mark.asyncio
async def test_successful_booking_refetches_authoritative_state() -> None:
    server = FakeCalendarServer()
    client, http = make_client(server, uuid4())

    async with http:
        await client.refresh()
        booked = await client.book(request_for("10:00"))

    assert booked.start_time == "10:00"
    assert client.snapshot.revision == 2
    assert [slot.id for slot in client.snapshot.interview_slots] == [booked.id]


@pytest.mark.asyncio
async def test_rejected_booking_rolls_back_and_refetches() -> None:
    server = FakeCalendarServer()
    server.reject_with = (
        409,
        {
            "code": "booking_conflict",
            "message": "Time 10:00 on 2030-01-07 is already booked",
            "kind": "overlaps_existing_interview",
            "conflicting_slot_id": None,
        },
    )
    client, http = make_client(server, uuid4())

    async with http:
        await client.refresh()
        server.slots.append(slot_payload(uuid4(), "10:00", 60))
        with pytest.raises(CalendarWriteError) as exc:
            await client.book(request_for("10:00"))

    assert exc.value.status_code == 409
    assert exc.value.kind == "overlaps_existing_interview"
    assert server.state_calls == 2
    assert len(client.snapshot.interview_slots) == 1
    assert str(client.snapshot.interview_slots[0].student_id) != str(client.actor_id)


@pytest.mark.asyncio
async def test_transport_failure_removes_provisional_slot() -> None:
    server = FakeCalendarServer()
    server.fail_transport = True
    client, http = make_client(server, uuid4())

    async with http:
        await client.refresh()
        with pytest.raises(httpx.ConnectError):
            await client.book(request_for("10:00"))

    assert client.snapshot.interview_slots == []


@pytest.mark.asyncio
async def test_refresh_if_changed_polls_revision() -> None:
    server = FakeCalendarServer()
    client, http = make_client(server, uuid4())

    async with http:
        assert await client.refresh_if_changed() is True
        assert await client.refresh_if_changed() is False
        server.revision += 1
        assert await client.refresh_if_changed() is True

    assert server.state_calls == 2


@pytest.mark.asyncio
async def test_committed_booking_is_returned_when_refetch_fails() -> None:
    server = FakeCalendarServer()
    client, http = make_client(server, uuid4())

    async with http:
        await client.refresh()
        server.state_failures = 1
        booked = await client.book(request_for("10:00"))

        assert booked.start_time == "10:00"
        assert client.stale is True
        assert [slot.id for slot in client.snapshot.interview_slots] == [booked.id]

        assert await client.refresh_if_changed() is True

    assert client.stale is False
    assert client.snapshot.revision == server.revision
    assert [str(slot.id) for slot in client.snapshot.interview_slots] == [server.slots[0]["id"]]


@pytest.mark.asyncio
async def test_stale_snapshot_is_reloaded_even_when_revision_matches() -> None:
    server = FakeCalendarServer()
    client, http = make_client(server, uuid4())

    async with http:
        await client.refresh()
        client.stale = True
        assert await client.refresh_if_changed() is True
        assert await client.refresh_if_changed() is False

    assert server.state_calls == 2


@pytest.mark.asyncio
async def test_lost_response_after_commit_refetches_server_state() -> None:
    server = FakeCalendarServer()
    server.timeout_after_commit = True
    client, http = make_client(server, uuid4())

    async with http:
        await client.refresh()
        with pytest.raises(httpx.ReadTimeout):
            await client.book(request_for("10:00"))

    assert server.state_calls == 2
    assert client.stale is False
    assert [str(slot.id) for slot in client.snapshot.interview_slots] == [server.slots[0]["id"]]
