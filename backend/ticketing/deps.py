# backend/ticketing/deps.py
import os
from typing import Optional, TypeVar

from fastapi import Header, HTTPException, Request, status

from ticketing.domain import DomainError, ErrorCode, Result
from ticketing.services import TicketingCore

ADMIN_KEY = os.getenv("ADMIN_KEY", "change_me_admin_key")

T = TypeVar("T")

_STATUS_BY_CODE = {
    ErrorCode.EVENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.REGISTRATION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.TICKET_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
}


def get_core(request: Request) -> TicketingCore:
    return request.app.state.core


def require_admin(x_admin_key: Optional[str] = Header(None)):
    if x_admin_key is None or x_admin_key != ADMIN_KEY:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="admin auth required")


def http_status_for(error: DomainError) -> int:
    # everything else is a business conflict: full, duplicate, used, unpaid
    return _STATUS_BY_CODE.get(error.code, status.HTTP_409_CONFLICT)


def unwrap_or_http(result: Result[T]) -> T:
    if not result.ok:
        err = result.error
        raise HTTPException(status_code=http_status_for(err), detail={"code": err.code.value, "message": err.message})
    return result.value
