"""Domain records for the ticketing core.

Records are pydantic models so every store backend can persist them as JSON.
Only three fields are shared mutable state: Event.registered_count,
Registration.checked_in and Ticket.status. Everything else is written once.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ticketing.domain.errors import InvalidTicketError, TicketRejection


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EventStatus(str, Enum):
    DRAFT = "draft"
    UPCOMING = "upcoming"
    LIVE = "live"
    ENDED = "ended"


class RegistrationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class TicketStatus(str, Enum):
    VALID = "valid"
    USED = "used"
    CANCELLED = "cancelled"


class UserRole(str, Enum):
    STUDENT = "student"
    ORGANIZER = "organizer"
    CREW = "crew"
    ADMIN = "admin"


class Record(BaseModel):
    model_config = ConfigDict(frozen=True, use_enum_values=False)

    def to_json(self) -> dict:
        return self.model_dump(mode="json")

    @classmethod
    def from_json(cls, data: dict):
        return cls.model_validate(data)


class User(Record):
    id: str
    name: str
    email: str
    role: UserRole = UserRole.STUDENT
    created_at: datetime = Field(default_factory=utcnow)


class Event(Record):
    id: str
    title: str
    venue: Optional[str] = None
    starts_at: Optional[datetime] = None
    capacity: int = Field(..., gt=0)
    registered_count: int = Field(0, ge=0)
    status: EventStatus = EventStatus.DRAFT
    price: Decimal = Field(Decimal("0"), ge=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def seats_available(self) -> int:
        return self.capacity - self.registered_count

    @property
    def is_free(self) -> bool:
        return self.price == 0


class Registration(Record):
    id: str
    user_id: str
    event_id: str
    status: RegistrationStatus = RegistrationStatus.CONFIRMED
    payment_status: PaymentStatus = PaymentStatus.COMPLETED
    registered_at: datetime = Field(default_factory=utcnow)
    checked_in: bool = False
    checked_in_at: Optional[datetime] = None
    ticket_id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status != RegistrationStatus.CANCELLED


class Ticket(Record):
    id: str
    event_id: str
    user_id: str
    registration_id: str
    qr_code: str
    status: TicketStatus = TicketStatus.VALID
    generated_at: datetime = Field(default_factory=utcnow)
    used_at: Optional[datetime] = None


class VerificationResult(BaseModel):
    """Outcome of a read-only scan. `reason` is internal and not serialised."""

    valid: bool
    ticket: Optional[Ticket] = None
    event: Optional[Event] = None
    user: Optional[User] = None
    reason: Optional[TicketRejection] = Field(default=None, exclude=True)


class CheckInReceipt(BaseModel):
    """What the scanning crew member sees after a successful check-in."""

    ticket: Ticket
    registration: Registration
    event: Optional[Event] = None
    user: Optional[User] = None


# valid is the only state with outgoing edges
TICKET_TRANSITIONS = {
    TicketStatus.VALID: frozenset({TicketStatus.USED, TicketStatus.CANCELLED}),
    TicketStatus.USED: frozenset(),
    TicketStatus.CANCELLED: frozenset(),
}

_REJECTIONS = {
    TicketStatus.USED: TicketRejection.ALREADY_USED,
    TicketStatus.CANCELLED: TicketRejection.CANCELLED,
}


def rejection_for(ticket: Ticket) -> Optional[TicketRejection]:
    """Why `ticket` cannot be redeemed, or None if it is still valid."""
    return _REJECTIONS.get(ticket.status)


def transition_ticket(ticket: Ticket, target: TicketStatus, *, at: datetime) -> Ticket:
    """Return `ticket` moved to `target`.

    Raises:
        InvalidTicketError: If the move is not allowed from the current status.
    """
    if target not in TICKET_TRANSITIONS[ticket.status]:
        raise InvalidTicketError(_REJECTIONS.get(ticket.status, TicketRejection.NOT_FOUND))
    update = {"status": target}
    if target == TicketStatus.USED:
        update["used_at"] = at
    return ticket.model_copy(update=update)
