"""Check-in state machine.

A ticket goes valid -> used exactly once. The status check and the write of
both the ticket (used, used_at) and its registration (checked_in,
checked_in_at) are one conditional write guarded by both records' versions.
Of any number of concurrent scans of one token, one commits; every other
caller re-reads, sees `used` and gets InvalidTicketError(already_used).
"""

import logging

from ticketing.domain import (
    CheckInReceipt,
    Event,
    InvalidTicketError,
    InvariantViolation,
    Registration,
    Result,
    TicketRejection,
    TicketStatus,
    User,
    VerificationResult,
)
from ticketing.domain.models import rejection_for, transition_ticket, utcnow
from ticketing.services.atomic import KeyedLocks, run_atomic
from ticketing.services.base import EVENTS, REGISTRATIONS, TICKETS, USERS, load, load_record
from ticketing.services.tickets import TicketIssuer
from ticketing.stores import StoreGateway, Write, WriteConflictError

logger = logging.getLogger(__name__)


class CheckInService:
    def __init__(
        self,
        store: StoreGateway,
        issuer: TicketIssuer | None = None,
        locks: KeyedLocks | None = None,
    ) -> None:
        self._store = store
        self._locks = locks or KeyedLocks()
        self._issuer = issuer or TicketIssuer(store, self._locks)

    async def verify(self, qr_code: str) -> VerificationResult:
        """Read-only scan. Unknown, used and cancelled tokens all come back valid=False."""
        found = await self._issuer.find_by_qr(qr_code)
        if found is None:
            logger.info("verify: unknown token")
            return VerificationResult(valid=False, reason=TicketRejection.NOT_FOUND)
        ticket = found[1]
        reason = rejection_for(ticket)
        if reason is not None:
            logger.info("verify: ticket %s rejected (%s)", ticket.id, reason.value)
            return VerificationResult(valid=False, reason=reason)
        return VerificationResult(
            valid=True,
            ticket=ticket,
            event=await load_record(self._store, EVENTS, ticket.event_id, Event),
            user=await load_record(self._store, USERS, ticket.user_id, User),
        )

    async def check_in(self, qr_code: str) -> Result[CheckInReceipt]:
        """Redeem a scanned token.

        Failures (returned): InvalidTicketError with reason not_found,
        already_used or cancelled.

        Raises:
            InvariantViolation: If the ticket's registration is missing or
                already checked in while the ticket is still valid.
            StoreContentionError: If concurrent writers kept winning.
        """
        found = await self._issuer.find_by_qr(qr_code)
        if found is None:
            result = Result.failure(InvalidTicketError(TicketRejection.NOT_FOUND))
        else:
            ticket_id = found[1].id
            async with self._locks.hold(f"ticket:{ticket_id}"):
                result = await run_atomic(lambda: self._attempt_check_in(qr_code), label="check_in")

        if result.ok:
            logger.info(
                "checked in ticket %s (registration %s)",
                result.value.ticket.id, result.value.registration.id,
            )
        else:
            logger.warning("check-in rejected: %s", result.error.reason.value)
        return result

    async def _attempt_check_in(self, qr_code: str) -> Result[CheckInReceipt]:
        found = await self._issuer.find_by_qr(qr_code)
        if found is None:
            return Result.failure(InvalidTicketError(TicketRejection.NOT_FOUND))
        stored_ticket, ticket = found

        now = utcnow()
        try:
            used = transition_ticket(ticket, TicketStatus.USED, at=now)
        except InvalidTicketError as err:
            return Result.failure(err)

        reg_found = await load(self._store, REGISTRATIONS, ticket.registration_id, Registration)
        if reg_found is None:
            logger.error("ticket %s has no registration %s", ticket.id, ticket.registration_id)
            raise InvariantViolation(f"ticket {ticket.id} without registration")
        stored_reg, registration = reg_found
        if registration.checked_in:
            # another scanner committed between our two reads; if the ticket
            # moved on, this is a lost race and the retry will see `used`
            current = await self._store.get_one(TICKETS, ticket.id)
            if current is None or current.version != stored_ticket.version:
                raise WriteConflictError(TICKETS, ticket.id)
            logger.error("registration %s checked in while ticket %s still valid", registration.id, ticket.id)
            raise InvariantViolation(f"registration {registration.id} checked in with a valid ticket")

        checked = registration.model_copy(update={"checked_in": True, "checked_in_at": now})
        await self._store.conditional_write(
            [
                Write.replace(TICKETS, stored_ticket, used.to_json()),
                Write.replace(REGISTRATIONS, stored_reg, checked.to_json()),
            ]
        )
        return Result.success(
            CheckInReceipt(
                ticket=used,
                registration=checked,
                event=await load_record(self._store, EVENTS, ticket.event_id, Event),
                user=await load_record(self._store, USERS, ticket.user_id, User),
            )
        )
