"""Tests for transient storage failures and the retry loop.

Run with: pytest tests/test_atomic.py -v
"""

import httpx
import pytest
from httpx import ASGITransport

from ticketing.domain import EventStatus, TicketStatus
from ticketing.main import create_app
from ticketing.services import TicketingCore, atomic, run_atomic
from ticketing.services.base import REGISTRATIONS
from ticketing.stores import (
    MemoryGateway,
    StoreContentionError,
    StoreUnavailableError,
    WriteConflictError,
)

pytestmark = pytest.mark.anyio


class ConflictingGateway(MemoryGateway):
    """Loses every conditional write once `failing` is switched on."""

    def __init__(self) -> None:
        super().__init__()
        self.failing = False
        self.rejected = 0

    async def conditional_write(self, writes):
        if self.failing:
            self.rejected += 1
            raise WriteConflictError(writes[0].collection, writes[0].key)
        await super().conditional_write(writes)


class UnreachableGateway(MemoryGateway):
    async def get(self, collection):
        raise StoreUnavailableError("connection refused")

    async def get_one(self, collection, key):
        raise StoreUnavailableError("connection refused")


@pytest.fixture(autouse=True)
def few_retries(monkeypatch):
    monkeypatch.setattr(atomic, "MAX_RETRIES", 3)


@pytest.fixture
def flaky() -> ConflictingGateway:
    return ConflictingGateway()


class TestRunAtomic:
    async def test_gives_up_after_max_retries(self):
        calls = []

        async def attempt():
            calls.append(1)
            raise WriteConflictError("tickets", "tkt_1")

        with pytest.raises(StoreContentionError):
            await run_atomic(attempt, label="test")
        assert len(calls) == 3

    async def test_recovers_after_conflicts(self):
        calls = []

        async def attempt():
            calls.append(1)
            if len(calls) < 3:
                raise WriteConflictError("events", "evt_1")
            return "done"

        assert await run_atomic(attempt, label="test") == "done"
        assert len(calls) == 3

    async def test_explicit_single_attempt(self):
        calls = []

        async def attempt():
            calls.append(1)
            raise WriteConflictError("events", "evt_1")

        with pytest.raises(StoreContentionError):
            await run_atomic(attempt, label="test", max_retries=1)
        assert len(calls) == 1

    async def test_zero_attempts_rejected(self):
        async def attempt():
            return "never"

        with pytest.raises(ValueError):
            await run_atomic(attempt, label="test", max_retries=0)


class TestContentionInServices:
    async def test_register_raises_and_commits_nothing(self, flaky):
        core = TicketingCore(flaky)
        event = (await core.events.create_event(
            title="Hack Night", capacity=5, status=EventStatus.UPCOMING
        )).unwrap()
        flaky.failing = True

        with pytest.raises(StoreContentionError):
            await core.registrations.register("usr_1", event.id)

        assert flaky.rejected == 3
        assert await flaky.get(REGISTRATIONS) == []
        assert (await core.events.get_event(event.id)).unwrap().registered_count == 0

    async def test_check_in_raises_and_leaves_ticket_valid(self, flaky):
        core = TicketingCore(flaky)
        event = (await core.events.create_event(
            title="Hack Night", capacity=5, status=EventStatus.UPCOMING
        )).unwrap()
        reg = (await core.registrations.register("usr_1", event.id)).unwrap()
        ticket = (await core.tickets.issue_ticket(reg.id)).unwrap()
        flaky.failing = True

        with pytest.raises(StoreContentionError):
            await core.checkin.check_in(ticket.qr_code)

        assert (await core.tickets.get_ticket(ticket.id)).unwrap().status == TicketStatus.VALID
        assert (await core.registrations.get_registration(reg.id)).unwrap().checked_in is False

        # the same scan is safe to repeat once the store settles
        flaky.failing = False
        assert (await core.checkin.check_in(ticket.qr_code)).ok


class TestTransientErrorsOverHttp:
    async def _client(self, gateway):
        app = create_app(TicketingCore(gateway))
        return httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test")

    async def test_contention_is_503(self, flaky):
        core = TicketingCore(flaky)
        event = (await core.events.create_event(
            title="Hack Night", capacity=5, status=EventStatus.UPCOMING
        )).unwrap()
        flaky.failing = True
        async with await self._client(flaky) as client:
            r = await client.post("/registrations", json={"user_id": "usr_1", "event_id": event.id})
        assert r.status_code == 503

    async def test_unreachable_store_is_503(self):
        async with await self._client(UnreachableGateway()) as client:
            r = await client.get("/events")
            assert r.status_code == 503
            r = await client.post("/tickets/checkin", json={"qr_code": "QR_ABC"})
            assert r.status_code == 503
