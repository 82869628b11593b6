"""Persistence gateway interface (repository pattern).

Stores hold JSON records keyed by (collection, key). Each record carries a
version that is bumped on every write; `conditional_write` is the only way to
mutate state and commits a batch only if every expected version still holds.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Sequence


class StoreError(Exception):
    """Base class for persistence failures."""


class WriteConflictError(StoreError):
    """A conditional write lost against a concurrent writer."""

    def __init__(self, collection: str, key: str) -> None:
        super().__init__(f"write conflict on {collection}/{key}")
        self.collection = collection
        self.key = key


class StoreUnavailableError(StoreError):
    """The backing store could not be reached."""


class StoreContentionError(StoreError):
    """Gave up after repeated write conflicts; safe for the caller to retry."""


@dataclass(frozen=True)
class StoredRecord:
    key: str
    version: int
    data: dict[str, Any]


@dataclass(frozen=True)
class Write:
    """
    Put `data` at (collection, key).
    expected_version=None -> the record must not exist yet.
    expected_version=N    -> the stored version must still be N.
    """

    collection: str
    key: str
    data: dict[str, Any]
    expected_version: Optional[int] = None

    @classmethod
    def insert(cls, collection: str, key: str, data: dict[str, Any]) -> "Write":
        return cls(collection, key, data, None)

    @classmethod
    def replace(cls, collection: str, stored: StoredRecord, data: dict[str, Any]) -> "Write":
        return cls(collection, stored.key, data, stored.version)


class StoreGateway(ABC):
    """Interface for keyed, versioned record storage."""

    @abstractmethod
    async def get(self, collection: str) -> list[StoredRecord]:
        """Return every record in a collection."""
        ...

    @abstractmethod
    async def get_one(self, collection: str, key: str) -> StoredRecord | None:
        """Return a single record, or None if absent."""
        ...

    @abstractmethod
    async def conditional_write(self, writes: Sequence[Write]) -> None:
        """Apply all writes atomically or none of them.

        Raises:
            WriteConflictError: If any expected version no longer holds.
            StoreUnavailableError: If the backend cannot be reached.
        """
        ...

    async def close(self) -> None:
        return None
