"""In-process store used for tests and local development."""

import asyncio
import copy
import threading
from typing import Sequence

from ticketing.stores.interfaces import StoredRecord, StoreGateway, Write, WriteConflictError


class MemoryGateway(StoreGateway):
    """
    Dict-of-dicts store. Every call yields to the event loop first, so
    concurrent callers interleave between their reads and writes the same way
    they would against a network store. The mutex makes the check-and-apply
    step atomic even when several threads share one instance.
    """

    def __init__(self) -> None:
        self._data: dict[str, dict[str, StoredRecord]] = {}
        self._mutex = threading.Lock()

    async def get(self, collection: str) -> list[StoredRecord]:
        await asyncio.sleep(0)
        with self._mutex:
            return [self._copy(r) for r in self._data.get(collection, {}).values()]

    async def get_one(self, collection: str, key: str) -> StoredRecord | None:
        await asyncio.sleep(0)
        with self._mutex:
            rec = self._data.get(collection, {}).get(key)
            return self._copy(rec) if rec else None

    async def conditional_write(self, writes: Sequence[Write]) -> None:
        await asyncio.sleep(0)
        with self._mutex:
            for w in writes:
                current = self._data.get(w.collection, {}).get(w.key)
                if w.expected_version is None:
                    if current is not None:
                        raise WriteConflictError(w.collection, w.key)
                elif current is None or current.version != w.expected_version:
                    raise WriteConflictError(w.collection, w.key)
            for w in writes:
                version = 1 if w.expected_version is None else w.expected_version + 1
                self._data.setdefault(w.collection, {})[w.key] = StoredRecord(
                    key=w.key, version=version, data=copy.deepcopy(w.data)
                )

    @staticmethod
    def _copy(rec: StoredRecord) -> StoredRecord:
        return StoredRecord(key=rec.key, version=rec.version, data=copy.deepcopy(rec.data))
