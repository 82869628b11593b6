"""
Load script against a running server (not collected as tests).

  BASE=http://localhost:8000 python tests/concurrency_test.py

Fires CONCURRENCY registrations at a small event, issues tickets for the
winners and then scans one ticket from SCANNERS devices at once. Expected:
successes == capacity, and exactly one successful check-in.
"""
import asyncio, httpx, os
from datetime import datetime, timedelta, timezone

BASE = os.getenv("BASE", "http://localhost:8000")
ADMIN_KEY = os.getenv("ADMIN_KEY", "change_me_admin_key")
CONCURRENCY = 172
CAPACITY = 10
SCANNERS = 8


async def create_event(client: httpx.AsyncClient) -> str:
    starts_at = (datetime.now(timezone.utc) + timedelta(days=1)).isoformat()
    r = await client.post(
        f"{BASE}/admin/events",
        json={"title": "Concurrency Test Event", "venue": "Test Hall", "starts_at": starts_at,
              "capacity": CAPACITY, "status": "upcoming"},
        headers={"X-Admin-Key": ADMIN_KEY},
    )
    r.raise_for_status()
    return r.json()["id"]


async def main():
    async with httpx.AsyncClient(timeout=30) as client:
        event_id = await create_event(client)

        async def try_register(i):
            try:
                r = await client.post(f"{BASE}/registrations", json={"user_id": f"load-user-{i}", "event_id": event_id})
                try:
                    body = r.json() if r.content else None
                except ValueError:
                    body = r.text
                return r.status_code, body
            except httpx.HTTPError as e:
                return "err", str(e)

        results = await asyncio.gather(*[try_register(i) for i in range(CONCURRENCY)])
        winners = [body for st, body in results if st == 201]
        conflict = sum(1 for st, _ in results if st == 409)
        print("registrations total:", len(results), "success:", len(winners), "conflict:", conflict)

        if not winners:
            return
        r = await client.post(f"{BASE}/tickets", json={"registration_id": winners[0]["id"]})
        r.raise_for_status()
        qr_code = r.json()["qr_code"]

        async def scan(_):
            r = await client.post(f"{BASE}/tickets/checkin", json={"qr_code": qr_code})
            return r.status_code

        scans = await asyncio.gather(*[scan(i) for i in range(SCANNERS)])
        print("check-ins:", len(scans), "success:", scans.count(200), "rejected:", scans.count(409))

if __name__ == "__main__":
    asyncio.run(main())
