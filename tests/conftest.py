"""Pytest configuration and shared fixtures."""

from decimal import Decimal

import httpx
import pytest
from httpx import ASGITransport

from ticketing.deps import ADMIN_KEY
from ticketing.domain import EventStatus
from ticketing.main import create_app
from ticketing.services import TicketingCore
from ticketing.stores import MemoryGateway


# Make anyio run on asyncio (so our async fixtures work everywhere)
@pytest.fixture(scope="session", autouse=True)
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store() -> MemoryGateway:
    return MemoryGateway()


@pytest.fixture
def core(store) -> TicketingCore:
    return TicketingCore(store)


@pytest.fixture
def other_core(store) -> TicketingCore:
    """A second service stack on the same store, like another API process."""
    return TicketingCore(store)


@pytest.fixture
def make_event(core):
    async def _make(capacity: int = 10, price: Decimal = Decimal("0"), **kwargs):
        kwargs.setdefault("title", "TechFest")
        kwargs.setdefault("status", EventStatus.UPCOMING)
        res = await core.events.create_event(capacity=capacity, price=price, **kwargs)
        return res.unwrap()

    return _make


@pytest.fixture
def make_ticket(core, make_event):
    """Register a fresh user for a fresh event and issue their ticket."""

    async def _make(user_id: str = "usr_alice"):
        event = await make_event()
        registration = (await core.registrations.register(user_id, event.id)).unwrap()
        return (await core.tickets.issue_ticket(registration.id)).unwrap()

    return _make


@pytest.fixture
async def client(core):
    app = create_app(core)
    async with httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def admin_headers() -> dict:
    return {"X-Admin-Key": ADMIN_KEY}
