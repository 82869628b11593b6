from typing import List

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field

from ticketing.deps import get_core, unwrap_or_http
from ticketing.domain import Event, Registration, User, UserRole
from ticketing.services import TicketingCore

router = APIRouter()


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    role: UserRole = UserRole.STUDENT


class UserRegistrationOut(BaseModel):
    registration: Registration
    event: Event


@router.post("/users", response_model=User, status_code=status.HTTP_201_CREATED)
async def create_user(payload: UserCreate, core: TicketingCore = Depends(get_core)):
    return unwrap_or_http(
        await core.users.create_user(name=payload.name, email=payload.email, role=payload.role)
    )


@router.get("/users/{user_id}", response_model=User)
async def get_user(user_id: str, core: TicketingCore = Depends(get_core)):
    return unwrap_or_http(await core.users.get_user(user_id))


@router.get("/users/{user_id}/registrations", response_model=List[UserRegistrationOut])
async def user_registrations(user_id: str, core: TicketingCore = Depends(get_core)):
    # newest first, registrations for deleted events are left out
    return [
        UserRegistrationOut(registration=reg, event=event)
        async for reg, event in core.registrations.registrations_for_user(user_id)
    ]
