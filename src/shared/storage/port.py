"""Document store port (abstract interface).

Defines the contract the ordering engine needs from persistence: point
reads and writes by key, exact-match queries and collection scans, an atomic
numeric increment, and multi-record batches that commit all-or-nothing.
Adapters: MemoryDocumentStore (dev/test) and MongoDocumentStore (production).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class StoreError(Exception):
    """A storage operation failed. Batches that raise this persist nothing."""


@dataclass(frozen=True)
class DocumentKey:
    """Address of a single record: a (possibly nested) collection path and an id."""

    collection: str
    id: str

    @property
    def path(self) -> str:
        return f"{self.collection}/{self.id}"


@dataclass(frozen=True)
class Document:
    """A record read back from the store."""

    key: DocumentKey
    data: dict[str, Any]

    @property
    def id(self) -> str:
        return self.key.id


class WriteKind(Enum):
    SET = "set"
    UPDATE = "update"
    INCREMENT = "increment"
    DELETE = "delete"


@dataclass(frozen=True)
class Write:
    """One staged operation inside a WriteBatch."""

    kind: WriteKind
    key: DocumentKey
    data: dict[str, Any] | None = None
    field: str | None = None
    delta: int | float = 0


@dataclass
class WriteBatch:
    """Collects writes and hands them to the store as one indivisible unit."""

    store: "DocumentStore"
    writes: list[Write] = field(default_factory=list)
    committed: bool = False

    def set(self, key: DocumentKey, data: dict[str, Any]) -> "WriteBatch":
        self.writes.append(Write(WriteKind.SET, key, data=data))
        return self

    def update(self, key: DocumentKey, data: dict[str, Any]) -> "WriteBatch":
        self.writes.append(Write(WriteKind.UPDATE, key, data=data))
        return self

    def increment(self, key: DocumentKey, field_path: str, delta: int | float) -> "WriteBatch":
        self.writes.append(Write(WriteKind.INCREMENT, key, field=field_path, delta=delta))
        return self

    def delete(self, key: DocumentKey) -> "WriteBatch":
        self.writes.append(Write(WriteKind.DELETE, key))
        return self

    def __len__(self) -> int:
        return len(self.writes)

    async def commit(self) -> None:
        if self.committed:
            raise StoreError("Batch has already been committed")
        await self.store.commit(self.writes)
        self.committed = True


class DocumentStore(ABC):
    """Abstract document store interface."""

    @abstractmethod
    async def get(self, key: DocumentKey) -> dict[str, Any] | None:
        """Return the record at `key`, or None when it does not exist."""
        ...

    @abstractmethod
    async def set(self, key: DocumentKey, data: dict[str, Any]) -> None:
        """Create or replace the record at `key`."""
        ...

    @abstractmethod
    async def update(self, key: DocumentKey, data: dict[str, Any]) -> None:
        """Merge `data` into an existing record. Raises StoreError if it is missing."""
        ...

    @abstractmethod
    async def delete(self, key: DocumentKey) -> None:
        """Remove the record at `key`. Deleting a missing record is not an error."""
        ...

    @abstractmethod
    async def increment(self, key: DocumentKey, field_path: str, delta: int | float) -> None:
        """Atomically add `delta` to a numeric field (dotted paths address nested maps)."""
        ...

    @abstractmethod
    async def query(self, collection: str, **criteria: Any) -> list[Document]:
        """Return records in `collection` whose fields equal every criterion."""
        ...

    @abstractmethod
    async def scan(self, collection: str) -> list[Document]:
        """Return every record in `collection`."""
        ...

    @abstractmethod
    async def commit(self, writes: list[Write]) -> None:
        """Apply `writes` atomically: all of them persist or none do."""
        ...

    def batch(self) -> WriteBatch:
        return WriteBatch(store=self)
