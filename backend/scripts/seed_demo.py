# backend/scripts/seed_demo.py
"""
Usage:
  # ensure STORE_BACKEND and DATABASE_URL / REDIS_URL env vars are set
  python backend/scripts/seed_demo.py
This script will:
 - create 3 sample users (skipped if the email already exists)
 - create 3 sample events (skipped if an event with the same title exists)
"""
import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from ticketing.domain import EventStatus
from ticketing.services import TicketingCore
from ticketing.stores import build_gateway

DEMO_USERS = [("alice@example.com", "Alice"), ("bob@example.com", "Bob"), ("carol@example.com", "Carol")]


async def seed():
    core = TicketingCore(build_gateway())
    try:
        if hasattr(core.store, "create_schema"):
            await core.store.create_schema()

        created_users = []
        for email, name in DEMO_USERS:
            res = await core.users.create_user(name=name, email=email)
            if res.ok:
                created_users.append(email)

        # small capacities to test concurrency
        now = datetime.now(timezone.utc)
        demo_events = [
            {"title": "Indie Concert", "venue": "Stadium A", "capacity": 5, "price": Decimal("0")},
            {"title": "Tech Talk", "venue": "Hall B", "capacity": 50, "price": Decimal("0")},
            {"title": "Art Expo", "venue": "Gallery C", "capacity": 100, "price": Decimal("150")},
        ]
        existing = {e.title for e in await core.events.list_events()}
        created_events = []
        for i, ev in enumerate(demo_events):
            if ev["title"] in existing:
                continue
            res = await core.events.create_event(
                starts_at=now + timedelta(days=i + 1), status=EventStatus.UPCOMING, **ev
            )
            created_events.append(res.unwrap().title)
    finally:
        await core.close()

    print("Seed complete.")
    print("Users created:", created_users)
    print("Events created:", created_events)


if __name__ == "__main__":
    asyncio.run(seed())
