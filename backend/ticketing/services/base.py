from typing import Type, TypeVar

from ticketing.domain.models import Record
from ticketing.stores import StoredRecord, StoreGateway

EVENTS = "events"
USERS = "users"
USER_EMAILS = "user_emails"
REGISTRATIONS = "registrations"
REGISTRATION_KEYS = "registration_keys"
TICKETS = "tickets"
TICKET_QR = "ticket_qr"

R = TypeVar("R", bound=Record)


async def load(store: StoreGateway, collection: str, key: str, model: Type[R]) -> tuple[StoredRecord, R] | None:
    stored = await store.get_one(collection, key)
    if stored is None:
        return None
    return stored, model.from_json(stored.data)


async def load_record(store: StoreGateway, collection: str, key: str | None, model: Type[R]) -> R | None:
    if key is None:
        return None
    found = await load(store, collection, key, model)
    return found[1] if found else None


def registration_key(user_id: str, event_id: str) -> str:
    return f"{user_id}:{event_id}"
