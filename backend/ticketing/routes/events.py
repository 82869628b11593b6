from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from ticketing.deps import get_core, require_admin, unwrap_or_http
from ticketing.domain import Event, EventStatus
from ticketing.services import TicketingCore

router = APIRouter()
admin_router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1)
    venue: Optional[str] = None
    starts_at: Optional[datetime] = None
    capacity: int = Field(..., gt=0)
    price: Decimal = Field(Decimal("0"), ge=0)
    status: EventStatus = EventStatus.DRAFT


class EventStatusUpdate(BaseModel):
    status: EventStatus


@router.get("/events", response_model=List[Event])
async def list_events(status: Optional[EventStatus] = None, core: TicketingCore = Depends(get_core)):
    return await core.events.list_events(status)


@router.get("/events/{event_id}", response_model=Event)
async def get_event(event_id: str, core: TicketingCore = Depends(get_core)):
    return unwrap_or_http(await core.events.get_event(event_id))


@admin_router.post("/events", response_model=Event, status_code=status.HTTP_201_CREATED)
async def create_event(payload: EventCreate, core: TicketingCore = Depends(get_core)):
    return unwrap_or_http(await core.events.create_event(**payload.model_dump()))


@admin_router.put("/events/{event_id}/status", response_model=Event)
async def update_event_status(event_id: str, payload: EventStatusUpdate, core: TicketingCore = Depends(get_core)):
    return unwrap_or_http(await core.events.set_status(event_id, payload.status))
