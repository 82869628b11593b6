from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ticketing.deps import get_core, http_status_for, require_admin, unwrap_or_http
from ticketing.domain import Ticket, VerificationResult
from ticketing.services import TicketingCore

router = APIRouter()
admin_router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


class TicketRequest(BaseModel):
    registration_id: str


class ScanRequest(BaseModel):
    # raw string from the camera decode or manual entry; opaque to us
    qr_code: str


@router.post("/tickets", response_model=Ticket)
async def issue_ticket(req: TicketRequest, core: TicketingCore = Depends(get_core)):
    # idempotent: repeating the call returns the same ticket
    return unwrap_or_http(await core.tickets.issue_ticket(req.registration_id))


@router.get("/tickets/{ticket_id}", response_model=Ticket)
async def get_ticket(ticket_id: str, core: TicketingCore = Depends(get_core)):
    return unwrap_or_http(await core.tickets.get_ticket(ticket_id))


@router.post("/tickets/verify", response_model=VerificationResult)
async def verify_ticket(req: ScanRequest, core: TicketingCore = Depends(get_core)):
    return await core.checkin.verify(req.qr_code)


@router.post("/tickets/checkin")
async def check_in_ticket(req: ScanRequest, core: TicketingCore = Depends(get_core)):
    result = await core.checkin.check_in(req.qr_code)
    if not result.ok:
        err = result.error
        return JSONResponse(
            status_code=http_status_for(err),
            content={"success": False, "error": err.message, "reason": err.reason.value},
        )
    return {"success": True, **result.value.model_dump(mode="json")}


@admin_router.post("/tickets/{ticket_id}/cancel", response_model=Ticket)
async def cancel_ticket(ticket_id: str, core: TicketingCore = Depends(get_core)):
    return unwrap_or_http(await core.tickets.cancel_ticket(ticket_id))
