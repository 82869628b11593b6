from ticketing.routes.events import admin_router as events_admin_router
from ticketing.routes.events import router as events_router
from ticketing.routes.registrations import router as registrations_router
from ticketing.routes.tickets import admin_router as tickets_admin_router
from ticketing.routes.tickets import router as tickets_router
from ticketing.routes.users import router as users_router

__all__ = [
    "events_admin_router",
    "events_router",
    "registrations_router",
    "tickets_admin_router",
    "tickets_router",
    "users_router",
]
