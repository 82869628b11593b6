from ticketing.services.atomic import KeyedLocks, run_atomic
from ticketing.services.checkin import CheckInService
from ticketing.services.events import CapacityLedger, EventCatalog
from ticketing.services.registration import RegistrationManager, UserRegistrations
from ticketing.services.tickets import TicketIssuer
from ticketing.services.users import UserDirectory
from ticketing.stores import StoreGateway


class TicketingCore:
    """Wires every core service onto one store and one lock table."""

    def __init__(self, store: StoreGateway) -> None:
        self.store = store
        self.locks = KeyedLocks()
        self.events = EventCatalog(store)
        self.users = UserDirectory(store)
        self.ledger = CapacityLedger(store)
        self.registrations = RegistrationManager(store, self.ledger, self.locks)
        self.tickets = TicketIssuer(store, self.locks)
        self.checkin = CheckInService(store, self.tickets, self.locks)

    async def close(self) -> None:
        await self.store.close()


__all__ = [
    "CapacityLedger",
    "CheckInService",
    "EventCatalog",
    "KeyedLocks",
    "RegistrationManager",
    "TicketIssuer",
    "TicketingCore",
    "UserDirectory",
    "UserRegistrations",
    "run_atomic",
]
