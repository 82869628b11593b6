from ticketing.domain.errors import (
    DomainError,
    DuplicateRegistrationError,
    EmailTakenError,
    ErrorCode,
    EventFullError,
    EventNotFoundError,
    InvalidInputError,
    InvalidTicketError,
    InvariantViolation,
    PaymentRequiredError,
    RegistrationNotFoundError,
    TicketNotFoundError,
    TicketRejection,
    UserNotFoundError,
)
from ticketing.domain.models import (
    CheckInReceipt,
    Event,
    EventStatus,
    PaymentStatus,
    Registration,
    RegistrationStatus,
    Ticket,
    TicketStatus,
    User,
    UserRole,
    VerificationResult,
)
from ticketing.domain.result import Result

__all__ = [
    "CheckInReceipt",
    "DomainError",
    "DuplicateRegistrationError",
    "EmailTakenError",
    "ErrorCode",
    "Event",
    "EventFullError",
    "EventNotFoundError",
    "EventStatus",
    "InvalidInputError",
    "InvalidTicketError",
    "InvariantViolation",
    "PaymentRequiredError",
    "PaymentStatus",
    "Registration",
    "RegistrationNotFoundError",
    "RegistrationStatus",
    "Result",
    "Ticket",
    "TicketNotFoundError",
    "TicketRejection",
    "TicketStatus",
    "User",
    "UserNotFoundError",
    "UserRole",
    "VerificationResult",
]
