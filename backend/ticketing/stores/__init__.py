import os

from ticketing.stores.interfaces import (
    StoredRecord,
    StoreContentionError,
    StoreError,
    StoreGateway,
    StoreUnavailableError,
    Write,
    WriteConflictError,
)
from ticketing.stores.memory_store import MemoryGateway

STORE_BACKEND = os.getenv("STORE_BACKEND", "postgres")


def build_gateway(backend: str | None = None) -> StoreGateway:
    """Pick the store implementation named by STORE_BACKEND."""
    backend = (backend or STORE_BACKEND).lower()
    if backend == "memory":
        return MemoryGateway()
    if backend == "postgres":
        from ticketing.stores.sql_store import SqlGateway

        return SqlGateway()
    if backend == "redis":
        from ticketing.stores.redis_store import RedisGateway

        return RedisGateway()
    raise ValueError(f"unknown STORE_BACKEND {backend!r}")


__all__ = [
    "MemoryGateway",
    "StoredRecord",
    "StoreContentionError",
    "StoreError",
    "StoreGateway",
    "StoreUnavailableError",
    "Write",
    "WriteConflictError",
    "build_gateway",
]
