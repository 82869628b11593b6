# backend/ticketing/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ticketing.domain import InvariantViolation
from ticketing.routes import (
    events_admin_router,
    events_router,
    registrations_router,
    tickets_admin_router,
    tickets_router,
    users_router,
)
from ticketing.services import TicketingCore
from ticketing.stores import StoreContentionError, StoreUnavailableError, build_gateway

logger = logging.getLogger(__name__)


def create_app(core: TicketingCore | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = getattr(app.state, "core", None) is None
        if owned:
            app.state.core = TicketingCore(build_gateway())
        store = app.state.core.store
        if hasattr(store, "create_schema"):
            try:
                await store.create_schema()
            except Exception:
                # alembic owns the schema in deployed environments
                logger.exception("create_schema failed; continuing")
        yield
        if owned:
            await app.state.core.close()

    app = FastAPI(title="Campus Ticketing - Backend", lifespan=lifespan)
    if core is not None:
        app.state.core = core

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.exception_handler(StoreContentionError)
    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable(request: Request, exc: Exception):
        # transient: the client may retry the same request safely
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": "store busy, retry"})

    @app.exception_handler(InvariantViolation)
    async def invariant_violation(request: Request, exc: InvariantViolation):
        logger.error("invariant violation on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "internal error"})

    app.include_router(users_router)
    app.include_router(events_router)
    app.include_router(registrations_router)
    app.include_router(tickets_router)
    # Register admin routes after the public ones
    app.include_router(events_admin_router)
    app.include_router(tickets_admin_router)
    return app


app = create_app()
