"""Tests for the ticket issuer.

Run with: pytest tests/test_tickets.py -v
"""

import asyncio

import pytest

from ticketing.domain import (
    ErrorCode,
    InvariantViolation,
    RegistrationStatus,
    TicketRejection,
    TicketStatus,
)
from ticketing.services.base import REGISTRATIONS, TICKET_QR, TICKETS
from ticketing.stores import Write

pytestmark = pytest.mark.anyio


@pytest.fixture
async def registration(core, make_event):
    event = await make_event()
    return (await core.registrations.register("usr_alice", event.id)).unwrap()


class TestIssueTicket:
    async def test_first_call_creates_valid_ticket(self, core, registration):
        ticket = (await core.tickets.issue_ticket(registration.id)).unwrap()
        assert ticket.status == TicketStatus.VALID
        assert ticket.registration_id == registration.id
        assert ticket.user_id == registration.user_id
        assert ticket.event_id == registration.event_id
        assert ticket.used_at is None
        linked = (await core.registrations.get_registration(registration.id)).unwrap()
        assert linked.ticket_id == ticket.id

    async def test_unknown_registration(self, core):
        res = await core.tickets.issue_ticket("reg_missing")
        assert res.error.code == ErrorCode.REGISTRATION_NOT_FOUND

    async def test_sequential_calls_return_same_ticket(self, core, registration):
        first = (await core.tickets.issue_ticket(registration.id)).unwrap()
        second = (await core.tickets.issue_ticket(registration.id)).unwrap()
        assert (second.id, second.qr_code) == (first.id, first.qr_code)

    async def test_concurrent_calls_return_same_ticket(self, core, other_core, store, registration):
        stacks = [core, other_core]
        results = await asyncio.gather(
            *[stacks[i % 2].tickets.issue_ticket(registration.id) for i in range(10)]
        )
        tickets = [r.unwrap() for r in results]
        assert len({(t.id, t.qr_code) for t in tickets}) == 1
        assert len(await store.get(TICKETS)) == 1
        assert len(await store.get(TICKET_QR)) == 1

    async def test_dangling_ticket_reference_is_invariant_violation(self, core, store, registration):
        stored = await store.get_one(REGISTRATIONS, registration.id)
        broken = registration.model_copy(update={"ticket_id": "tkt_missing"})
        await store.conditional_write([Write.replace(REGISTRATIONS, stored, broken.to_json())])
        with pytest.raises(InvariantViolation):
            await core.tickets.issue_ticket(registration.id)

    async def test_cancelled_registration_gets_no_ticket(self, core, store, registration):
        stored = await store.get_one(REGISTRATIONS, registration.id)
        cancelled = registration.model_copy(update={"status": RegistrationStatus.CANCELLED})
        await store.conditional_write([Write.replace(REGISTRATIONS, stored, cancelled.to_json())])

        res = await core.tickets.issue_ticket(registration.id)
        assert res.error.code == ErrorCode.INVALID_INPUT
        assert await store.get(TICKETS) == []
        assert (await core.registrations.get_registration(registration.id)).unwrap().ticket_id is None

    async def test_cancelled_registration_keeps_existing_ticket(self, core, store, registration):
        ticket = (await core.tickets.issue_ticket(registration.id)).unwrap()
        stored = await store.get_one(REGISTRATIONS, registration.id)
        await store.conditional_write(
            [Write.replace(REGISTRATIONS, stored, {**stored.data, "status": RegistrationStatus.CANCELLED.value})]
        )
        assert (await core.tickets.issue_ticket(registration.id)).unwrap().id == ticket.id


class TestLookups:
    async def test_ticket_for_registration(self, core, registration):
        assert (await core.tickets.ticket_for_registration(registration.id)).error.code == ErrorCode.TICKET_NOT_FOUND
        ticket = (await core.tickets.issue_ticket(registration.id)).unwrap()
        assert (await core.tickets.ticket_for_registration(registration.id)).unwrap() == ticket

    async def test_find_by_qr_is_exact_match(self, core, registration):
        ticket = (await core.tickets.issue_ticket(registration.id)).unwrap()
        assert (await core.tickets.find_by_qr(ticket.qr_code))[1].id == ticket.id
        assert await core.tickets.find_by_qr(ticket.qr_code.lower()) is None
        assert await core.tickets.find_by_qr(ticket.qr_code + " ") is None


class TestCancelTicket:
    async def test_cancel_valid_ticket(self, core, registration):
        ticket = (await core.tickets.issue_ticket(registration.id)).unwrap()
        cancelled = (await core.tickets.cancel_ticket(ticket.id)).unwrap()
        assert cancelled.status == TicketStatus.CANCELLED
        # capacity is not released
        event = (await core.events.get_event(registration.event_id)).unwrap()
        assert event.registered_count == 1

    async def test_cancel_is_one_way(self, core, registration):
        ticket = (await core.tickets.issue_ticket(registration.id)).unwrap()
        (await core.tickets.cancel_ticket(ticket.id)).unwrap()
        again = await core.tickets.cancel_ticket(ticket.id)
        assert again.error.reason == TicketRejection.CANCELLED

    async def test_used_ticket_cannot_be_cancelled(self, core, registration):
        ticket = (await core.tickets.issue_ticket(registration.id)).unwrap()
        (await core.checkin.check_in(ticket.qr_code)).unwrap()
        res = await core.tickets.cancel_ticket(ticket.id)
        assert res.error.reason == TicketRejection.ALREADY_USED
        assert (await core.tickets.get_ticket(ticket.id)).unwrap().status == TicketStatus.USED

    async def test_cancel_unknown_ticket(self, core):
        assert (await core.tickets.cancel_ticket("tkt_missing")).error.code == ErrorCode.TICKET_NOT_FOUND
