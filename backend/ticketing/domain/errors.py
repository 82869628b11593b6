"""Domain error codes for the ticketing core.

Expected business outcomes (full event, duplicate registration, used ticket)
are DomainError values returned inside a Result. Storage failures and broken
invariants are raised.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    REGISTRATION_NOT_FOUND = "REGISTRATION_NOT_FOUND"
    TICKET_NOT_FOUND = "TICKET_NOT_FOUND"
    EVENT_FULL = "EVENT_FULL"
    DUPLICATE_REGISTRATION = "DUPLICATE_REGISTRATION"
    PAYMENT_REQUIRED = "PAYMENT_REQUIRED"
    INVALID_TICKET = "INVALID_TICKET"
    EMAIL_TAKEN = "EMAIL_TAKEN"
    INVALID_INPUT = "INVALID_INPUT"


class TicketRejection(str, Enum):
    """Why a scanned ticket was refused."""

    NOT_FOUND = "not_found"
    ALREADY_USED = "already_used"
    CANCELLED = "cancelled"


NOT_FOUND_CODES = frozenset(
    {
        ErrorCode.EVENT_NOT_FOUND,
        ErrorCode.USER_NOT_FOUND,
        ErrorCode.REGISTRATION_NOT_FOUND,
        ErrorCode.TICKET_NOT_FOUND,
    }
)


@dataclass(eq=False)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    @property
    def is_not_found(self) -> bool:
        return self.code in NOT_FOUND_CODES


class EventNotFoundError(DomainError):
    def __init__(self, event_id: str) -> None:
        super().__init__(code=ErrorCode.EVENT_NOT_FOUND, message="Event not found")
        self.event_id = event_id


class UserNotFoundError(DomainError):
    def __init__(self, user_id: str) -> None:
        super().__init__(code=ErrorCode.USER_NOT_FOUND, message="User not found")
        self.user_id = user_id


class RegistrationNotFoundError(DomainError):
    def __init__(self, registration_id: str) -> None:
        super().__init__(
            code=ErrorCode.REGISTRATION_NOT_FOUND,
            message="Registration not found",
        )
        self.registration_id = registration_id


class TicketNotFoundError(DomainError):
    def __init__(self, ticket_id: str) -> None:
        super().__init__(code=ErrorCode.TICKET_NOT_FOUND, message="Ticket not found")
        self.ticket_id = ticket_id


class EventFullError(DomainError):
    """Raised when an event has no free slot left."""

    def __init__(self, event_id: str) -> None:
        super().__init__(code=ErrorCode.EVENT_FULL, message="Event is full")
        self.event_id = event_id


class DuplicateRegistrationError(DomainError):
    """The user already holds an active registration for the event."""

    def __init__(self, user_id: str, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.DUPLICATE_REGISTRATION,
            message="Already registered for this event",
        )
        self.user_id = user_id
        self.event_id = event_id


class PaymentRequiredError(DomainError):
    def __init__(self, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.PAYMENT_REQUIRED,
            message="Payment must be completed before registering for a paid event",
        )
        self.event_id = event_id


class InvalidTicketError(DomainError):
    """A scanned or referenced ticket cannot be redeemed."""

    _MESSAGES = {
        TicketRejection.NOT_FOUND: "Invalid ticket",
        TicketRejection.ALREADY_USED: "Ticket already used",
        TicketRejection.CANCELLED: "Ticket has been cancelled",
    }

    def __init__(self, reason: TicketRejection) -> None:
        super().__init__(code=ErrorCode.INVALID_TICKET, message=self._MESSAGES[reason])
        self.reason = reason


class EmailTakenError(DomainError):
    def __init__(self, email: str) -> None:
        super().__init__(code=ErrorCode.EMAIL_TAKEN, message="Email already registered")
        self.email = email


class InvalidInputError(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_INPUT, message=message)


class InvariantViolation(RuntimeError):
    """Stored state that correct core logic can never produce."""
