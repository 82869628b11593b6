"""Retry discipline for read-check-write units.

Each attempt reads fresh state and commits with exactly one
`conditional_write`, so a cancelled or failed attempt leaves nothing behind.
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, TypeVar

from ticketing.stores import StoreContentionError, WriteConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_RETRIES = int(os.getenv("STORE_MAX_RETRIES", 8))


async def run_atomic(
    attempt: Callable[[], Awaitable[T]],
    *,
    label: str,
    max_retries: int | None = None,
) -> T:
    """Run `attempt` until its conditional write commits.

    Raises:
        StoreContentionError: If every attempt lost a write conflict.
        ValueError: If fewer than one attempt is allowed.
    """
    retries = MAX_RETRIES if max_retries is None else max_retries
    if retries < 1:
        raise ValueError("run_atomic needs at least one attempt")
    for n in range(retries):
        try:
            return await attempt()
        except WriteConflictError as exc:
            if n < retries - 1:
                logger.warning(
                    "%s: conflict on %s/%s, retrying (attempt %d)",
                    label, exc.collection, exc.key, n + 1,
                )
                # Simple linear backoff
                await asyncio.sleep(0.02 * (n + 1))
                continue
            raise StoreContentionError(f"{label}: gave up after {retries} conflicting attempts") from exc
    raise AssertionError("unreachable")


class KeyedLocks:
    """
    Per-key asyncio locks, dropped once nobody holds or waits on them.
    Only serialises callers inside one process; cross-process safety comes
    from the conditional write.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                self._locks.pop(key, None)

    def __len__(self) -> int:
        return len(self._locks)
