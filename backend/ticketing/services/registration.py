"""Registration manager.

One atomic unit per registration: the duplicate guard (a `registration_keys`
index entry that must not exist yet), the new registration and the event's
registered_count increment go out in a single conditional write.
"""

import logging
from typing import AsyncIterator

from ticketing.domain import (
    DuplicateRegistrationError,
    Event,
    PaymentRequiredError,
    PaymentStatus,
    Registration,
    RegistrationNotFoundError,
    RegistrationStatus,
    Result,
)
from ticketing.ids import new_id
from ticketing.services.atomic import KeyedLocks, run_atomic
from ticketing.services.base import (
    EVENTS,
    REGISTRATION_KEYS,
    REGISTRATIONS,
    load,
    load_record,
    registration_key,
)
from ticketing.services.events import CapacityLedger
from ticketing.stores import StoreGateway, Write

logger = logging.getLogger(__name__)


class UserRegistrations:
    """
    A user's registrations joined with their events, newest first.
    Every `async for` re-reads the store; events that no longer exist are
    skipped. Events are fetched one at a time as the caller advances.
    """

    def __init__(self, store: StoreGateway, user_id: str) -> None:
        self._store = store
        self.user_id = user_id

    def __aiter__(self) -> AsyncIterator[tuple[Registration, Event]]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[tuple[Registration, Event]]:
        mine = [
            Registration.from_json(r.data)
            for r in await self._store.get(REGISTRATIONS)
            if r.data.get("user_id") == self.user_id
        ]
        mine.sort(key=lambda r: (r.registered_at, r.id), reverse=True)
        for reg in mine:
            event = await load_record(self._store, EVENTS, reg.event_id, Event)
            if event is None:
                continue
            yield reg, event

    async def to_list(self) -> list[tuple[Registration, Event]]:
        return [pair async for pair in self]


class RegistrationManager:
    def __init__(
        self,
        store: StoreGateway,
        ledger: CapacityLedger | None = None,
        locks: KeyedLocks | None = None,
    ) -> None:
        self._store = store
        self._ledger = ledger or CapacityLedger(store)
        self._locks = locks or KeyedLocks()

    async def register(
        self, user_id: str, event_id: str, *, payment_completed: bool = False
    ) -> Result[Registration]:
        """Register `user_id` for `event_id`.

        `payment_completed` is the external payment signal; it is only
        consulted for paid events and never verified here.

        Failures (returned, not raised): EventNotFoundError,
        DuplicateRegistrationError, EventFullError, PaymentRequiredError.

        Raises:
            StoreContentionError: If concurrent writers kept winning.
            StoreUnavailableError: If the store cannot be reached.
        """
        async with self._locks.hold(f"event:{event_id}"):
            result = await run_atomic(
                lambda: self._attempt_register(user_id, event_id, payment_completed),
                label="register",
            )
        if result.ok:
            logger.info("registered user %s for event %s (%s)", user_id, event_id, result.value.id)
        else:
            logger.info("registration rejected user=%s event=%s: %s", user_id, event_id, result.error)
        return result

    async def _attempt_register(
        self, user_id: str, event_id: str, payment_completed: bool
    ) -> Result[Registration]:
        key = registration_key(user_id, event_id)
        index = await self._store.get_one(REGISTRATION_KEYS, key)
        if index is not None:
            previous = await load_record(
                self._store, REGISTRATIONS, index.data["registration_id"], Registration
            )
            if previous is not None and previous.is_active:
                return Result.failure(DuplicateRegistrationError(user_id, event_id))

        slot = await self._ledger.reserve_slot(event_id)
        if not slot.ok:
            return Result.failure(slot.error)
        event, take_slot = slot.value
        if not event.is_free and not payment_completed:
            return Result.failure(PaymentRequiredError(event_id))

        registration = Registration(
            id=new_id("reg"),
            user_id=user_id,
            event_id=event_id,
            status=RegistrationStatus.CONFIRMED,
            payment_status=PaymentStatus.COMPLETED,
        )
        index_data = {"registration_id": registration.id}
        if index is None:
            claim = Write.insert(REGISTRATION_KEYS, key, index_data)
        else:
            # previous registration for this pair was cancelled upstream
            claim = Write.replace(REGISTRATION_KEYS, index, index_data)
        await self._store.conditional_write(
            [
                claim,
                Write.insert(REGISTRATIONS, registration.id, registration.to_json()),
                take_slot,
            ]
        )
        return Result.success(registration)

    async def get_registration(self, registration_id: str) -> Result[Registration]:
        found = await load(self._store, REGISTRATIONS, registration_id, Registration)
        if found is None:
            return Result.failure(RegistrationNotFoundError(registration_id))
        return Result.success(found[1])

    def registrations_for_user(self, user_id: str) -> UserRegistrations:
        return UserRegistrations(self._store, user_id)
