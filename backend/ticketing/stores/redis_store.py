"""Redis-backed store. Conditional writes run as one Lua script on the server."""

import json
import logging
from typing import Sequence

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from ticketing.redis_tools import CONDITIONAL_WRITE, REDIS_KEY_PREFIX, make_redis
from ticketing.stores.interfaces import (
    StoredRecord,
    StoreGateway,
    StoreUnavailableError,
    Write,
    WriteConflictError,
)

logger = logging.getLogger(__name__)

_UNAVAILABLE = (RedisConnectionError, RedisTimeoutError, OSError)


class RedisGateway(StoreGateway):
    def __init__(self, client=None, prefix: str = REDIS_KEY_PREFIX) -> None:
        self.redis = client or make_redis()
        self.prefix = prefix

    def _record_key(self, collection: str, key: str) -> str:
        return f"{self.prefix}:{collection}:{key}"

    def _set_key(self, collection: str) -> str:
        return f"{self.prefix}:{collection}:__keys__"

    async def get(self, collection: str) -> list[StoredRecord]:
        try:
            keys = sorted(await self.redis.smembers(self._set_key(collection)))
            if not keys:
                return []
            pipe = self.redis.pipeline(transaction=False)
            for k in keys:
                pipe.hmget(self._record_key(collection, k), "v", "d")
            rows = await pipe.execute()
        except _UNAVAILABLE as exc:
            logger.exception("Redis error reading %s", collection)
            raise StoreUnavailableError(str(exc)) from exc
        return [
            StoredRecord(key=k, version=int(v), data=json.loads(d))
            for k, (v, d) in zip(keys, rows)
            if v is not None
        ]

    async def get_one(self, collection: str, key: str) -> StoredRecord | None:
        try:
            v, d = await self.redis.hmget(self._record_key(collection, key), "v", "d")
        except _UNAVAILABLE as exc:
            logger.exception("Redis error reading %s/%s", collection, key)
            raise StoreUnavailableError(str(exc)) from exc
        if v is None:
            return None
        return StoredRecord(key=key, version=int(v), data=json.loads(d))

    async def conditional_write(self, writes: Sequence[Write]) -> None:
        if not writes:
            return
        keys = [self._record_key(w.collection, w.key) for w in writes]
        keys += [self._set_key(w.collection) for w in writes]
        args = [len(writes)]
        args += [-1 if w.expected_version is None else w.expected_version for w in writes]
        args += [json.dumps(w.data) for w in writes]
        args += [w.key for w in writes]
        try:
            failed = int(await self.redis.eval(CONDITIONAL_WRITE, len(keys), *keys, *args))
        except _UNAVAILABLE as exc:
            logger.exception("Redis error during conditional write")
            raise StoreUnavailableError(str(exc)) from exc
        if failed:
            w = writes[failed - 1]
            raise WriteConflictError(w.collection, w.key)

    async def close(self) -> None:
        await self.redis.aclose()
