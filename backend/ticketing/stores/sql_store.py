"""SQLAlchemy-backed store: one versioned row per record in `kv_records`."""

import logging
from typing import Sequence

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine

from ticketing.db import make_engine, make_sessionmaker
from ticketing.models import Base, KVRecord
from ticketing.stores.interfaces import (
    StoredRecord,
    StoreGateway,
    StoreUnavailableError,
    Write,
    WriteConflictError,
)

logger = logging.getLogger(__name__)


class SqlGateway(StoreGateway):
    """
    Conditional writes run inside one transaction: inserts rely on the
    (collection, key) primary key, replacements on
    `UPDATE ... WHERE version = :expected`. Any miss rolls the batch back.
    """

    def __init__(self, engine: AsyncEngine | None = None) -> None:
        self.engine = engine or make_engine()
        self._sessions = make_sessionmaker(self.engine)

    async def create_schema(self) -> None:
        """Create tables directly (tests, local dev). Production uses Alembic."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def get(self, collection: str) -> list[StoredRecord]:
        try:
            async with self._sessions() as session:
                res = await session.execute(
                    select(KVRecord).where(KVRecord.collection == collection)
                )
                return [self._to_stored(r) for r in res.scalars().all()]
        except (OperationalError, InterfaceError, OSError) as exc:
            logger.exception("Database error reading %s", collection)
            raise StoreUnavailableError(str(exc)) from exc

    async def get_one(self, collection: str, key: str) -> StoredRecord | None:
        try:
            async with self._sessions() as session:
                res = await session.execute(
                    select(KVRecord).where(KVRecord.collection == collection, KVRecord.key == key)
                )
                row = res.scalars().first()
                return self._to_stored(row) if row else None
        except (OperationalError, InterfaceError, OSError) as exc:
            logger.exception("Database error reading %s/%s", collection, key)
            raise StoreUnavailableError(str(exc)) from exc

    async def conditional_write(self, writes: Sequence[Write]) -> None:
        try:
            async with self._sessions() as session:
                async with session.begin():
                    for w in writes:
                        await self._apply(session, w)
        except (OperationalError, InterfaceError, OSError) as exc:
            logger.exception("Database error during conditional write")
            raise StoreUnavailableError(str(exc)) from exc

    async def _apply(self, session, w: Write) -> None:
        if w.expected_version is None:
            try:
                await session.execute(
                    insert(KVRecord).values(
                        collection=w.collection, key=w.key, version=1, data=w.data
                    )
                )
            except IntegrityError:
                # another writer inserted the same key first
                raise WriteConflictError(w.collection, w.key)
            return

        res = await session.execute(
            update(KVRecord)
            .where(
                KVRecord.collection == w.collection,
                KVRecord.key == w.key,
                KVRecord.version == w.expected_version,
            )
            .values(version=w.expected_version + 1, data=w.data, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            raise WriteConflictError(w.collection, w.key)

    async def close(self) -> None:
        await self.engine.dispose()

    @staticmethod
    def _to_stored(row: KVRecord) -> StoredRecord:
        return StoredRecord(key=row.key, version=row.version, data=dict(row.data))
