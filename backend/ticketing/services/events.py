"""Event catalog and capacity ledger."""

import logging
from datetime import datetime
from decimal import Decimal

from ticketing.domain import (
    Event,
    EventFullError,
    EventNotFoundError,
    EventStatus,
    InvalidInputError,
    Result,
)
from ticketing.domain.models import utcnow
from ticketing.ids import new_id
from ticketing.services.atomic import run_atomic
from ticketing.services.base import EVENTS, load
from ticketing.stores import StoreGateway, Write

logger = logging.getLogger(__name__)


class EventCatalog:
    """Organizer-side event records. Only what the core needs to read and seed."""

    def __init__(self, store: StoreGateway) -> None:
        self._store = store

    async def create_event(
        self,
        *,
        title: str,
        capacity: int,
        price: Decimal = Decimal("0"),
        venue: str | None = None,
        starts_at: datetime | None = None,
        status: EventStatus = EventStatus.DRAFT,
    ) -> Result[Event]:
        if capacity <= 0:
            return Result.failure(InvalidInputError("capacity must be > 0"))
        if price < 0:
            return Result.failure(InvalidInputError("price must be >= 0"))
        event = Event(
            id=new_id("evt"),
            title=title,
            venue=venue,
            starts_at=starts_at,
            capacity=capacity,
            price=price,
            status=status,
        )
        await self._store.conditional_write([Write.insert(EVENTS, event.id, event.to_json())])
        logger.info("created event %s capacity=%d", event.id, capacity)
        return Result.success(event)

    async def get_event(self, event_id: str) -> Result[Event]:
        found = await load(self._store, EVENTS, event_id, Event)
        if found is None:
            return Result.failure(EventNotFoundError(event_id))
        return Result.success(found[1])

    async def list_events(self, status: EventStatus | None = None) -> list[Event]:
        """Events ordered by start time (unscheduled last), then creation."""
        events = [Event.from_json(r.data) for r in await self._store.get(EVENTS)]
        if status is not None:
            events = [e for e in events if e.status == status]
        return sorted(
            events,
            key=lambda e: (e.starts_at is None, e.starts_at or e.created_at, e.created_at),
        )

    async def set_status(self, event_id: str, status: EventStatus) -> Result[Event]:
        async def attempt() -> Result[Event]:
            found = await load(self._store, EVENTS, event_id, Event)
            if found is None:
                return Result.failure(EventNotFoundError(event_id))
            stored, event = found
            updated = event.model_copy(update={"status": status, "updated_at": utcnow()})
            await self._store.conditional_write([Write.replace(EVENTS, stored, updated.to_json())])
            return Result.success(updated)

        return await run_atomic(attempt, label="set_event_status")


class CapacityLedger:
    """Admission control: registered_count never passes capacity."""

    def __init__(self, store: StoreGateway) -> None:
        self._store = store

    async def reserve_slot(self, event_id: str) -> Result[tuple[Event, Write]]:
        """
        Read the event and, if a slot is free, return the versioned write that
        takes it. Nothing is committed here: the caller must send the write in
        the same conditional_write as the registration it pays for, so the
        capacity check and the increment land together or not at all.
        """
        found = await load(self._store, EVENTS, event_id, Event)
        if found is None:
            return Result.failure(EventNotFoundError(event_id))
        stored, event = found
        if event.registered_count >= event.capacity:
            return Result.failure(EventFullError(event_id))
        taken = event.model_copy(
            update={"registered_count": event.registered_count + 1, "updated_at": utcnow()}
        )
        return Result.success((taken, Write.replace(EVENTS, stored, taken.to_json())))
