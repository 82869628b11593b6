"""Ticket issuer.

Issuance is idempotent per registration: the ticket, its QR index entry and
the registration's ticket_id back-reference are committed together, guarded
by the registration's version. A concurrent duplicate call loses the write,
re-reads, finds the ticket_id and returns the winner's ticket.
"""

import logging

from ticketing.domain import (
    InvalidInputError,
    InvalidTicketError,
    InvariantViolation,
    Registration,
    RegistrationNotFoundError,
    Result,
    Ticket,
    TicketNotFoundError,
    TicketStatus,
)
from ticketing.domain.models import transition_ticket, utcnow
from ticketing.ids import new_id, new_qr_token
from ticketing.services.atomic import KeyedLocks, run_atomic
from ticketing.services.base import REGISTRATIONS, TICKET_QR, TICKETS, load
from ticketing.stores import StoredRecord, StoreGateway, Write

logger = logging.getLogger(__name__)


class TicketIssuer:
    def __init__(self, store: StoreGateway, locks: KeyedLocks | None = None) -> None:
        self._store = store
        self._locks = locks or KeyedLocks()

    async def issue_ticket(self, registration_id: str) -> Result[Ticket]:
        """Return the registration's ticket, creating it on the first call.

        Failures (returned): RegistrationNotFoundError, InvalidInputError for
        cancelled registrations.

        Raises:
            InvariantViolation: If the registration points at a missing ticket.
        """
        async with self._locks.hold(f"registration:{registration_id}"):
            return await run_atomic(
                lambda: self._attempt_issue(registration_id), label="issue_ticket"
            )

    async def _attempt_issue(self, registration_id: str) -> Result[Ticket]:
        found = await load(self._store, REGISTRATIONS, registration_id, Registration)
        if found is None:
            return Result.failure(RegistrationNotFoundError(registration_id))
        stored_reg, registration = found

        if registration.ticket_id is not None:
            existing = await load(self._store, TICKETS, registration.ticket_id, Ticket)
            if existing is None:
                logger.error(
                    "registration %s references missing ticket %s",
                    registration_id, registration.ticket_id,
                )
                raise InvariantViolation(f"registration {registration_id} has a dangling ticket_id")
            return Result.success(existing[1])

        if not registration.is_active:
            return Result.failure(InvalidInputError("registration is cancelled"))

        ticket = Ticket(
            id=new_id("tkt"),
            event_id=registration.event_id,
            user_id=registration.user_id,
            registration_id=registration.id,
            qr_code=new_qr_token(),
        )
        linked = registration.model_copy(update={"ticket_id": ticket.id})
        # a QR collision surfaces as a conflict on ticket_qr and the retry draws a new token
        await self._store.conditional_write(
            [
                Write.insert(TICKETS, ticket.id, ticket.to_json()),
                Write.insert(TICKET_QR, ticket.qr_code, {"ticket_id": ticket.id}),
                Write.replace(REGISTRATIONS, stored_reg, linked.to_json()),
            ]
        )
        logger.info("issued ticket %s for registration %s", ticket.id, registration_id)
        return Result.success(ticket)

    async def get_ticket(self, ticket_id: str) -> Result[Ticket]:
        found = await load(self._store, TICKETS, ticket_id, Ticket)
        if found is None:
            return Result.failure(TicketNotFoundError(ticket_id))
        return Result.success(found[1])

    async def ticket_for_registration(self, registration_id: str) -> Result[Ticket]:
        found = await load(self._store, REGISTRATIONS, registration_id, Registration)
        if found is None:
            return Result.failure(RegistrationNotFoundError(registration_id))
        registration = found[1]
        if registration.ticket_id is None:
            return Result.failure(TicketNotFoundError(registration_id))
        return await self.get_ticket(registration.ticket_id)

    async def find_by_qr(self, qr_code: str) -> tuple[StoredRecord, Ticket] | None:
        """Exact, case-sensitive lookup of an issued token."""
        index = await self._store.get_one(TICKET_QR, qr_code)
        if index is None:
            return None
        found = await load(self._store, TICKETS, index.data["ticket_id"], Ticket)
        if found is None:
            logger.error("qr index %s points at missing ticket %s", qr_code, index.data["ticket_id"])
            raise InvariantViolation("qr index entry without ticket")
        return found

    async def cancel_ticket(self, ticket_id: str) -> Result[Ticket]:
        """valid -> cancelled. Capacity and the registration are left untouched."""

        async def attempt() -> Result[Ticket]:
            found = await load(self._store, TICKETS, ticket_id, Ticket)
            if found is None:
                return Result.failure(TicketNotFoundError(ticket_id))
            stored, ticket = found
            try:
                cancelled = transition_ticket(ticket, TicketStatus.CANCELLED, at=utcnow())
            except InvalidTicketError as err:
                return Result.failure(err)
            await self._store.conditional_write([Write.replace(TICKETS, stored, cancelled.to_json())])
            logger.info("cancelled ticket %s", ticket_id)
            return Result.success(cancelled)

        async with self._locks.hold(f"ticket:{ticket_id}"):
            return await run_atomic(attempt, label="cancel_ticket")
