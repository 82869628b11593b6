from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from ticketing.deps import get_core, unwrap_or_http
from ticketing.domain import Registration
from ticketing.services import TicketingCore

router = APIRouter()


class RegistrationRequest(BaseModel):
    # supplied by the upstream auth layer, trusted as-is
    user_id: str
    event_id: str
    # external payment confirmation; ignored for free events
    payment_completed: bool = False


@router.post("/registrations", response_model=Registration, status_code=status.HTTP_201_CREATED)
async def post_registration(req: RegistrationRequest, core: TicketingCore = Depends(get_core)):
    result = await core.registrations.register(
        req.user_id, req.event_id, payment_completed=req.payment_completed
    )
    return unwrap_or_http(result)


@router.get("/registrations/{registration_id}", response_model=Registration)
async def get_registration(registration_id: str, core: TicketingCore = Depends(get_core)):
    return unwrap_or_http(await core.registrations.get_registration(registration_id))
