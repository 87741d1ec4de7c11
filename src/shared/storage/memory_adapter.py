"""In-memory document store for development and testing.

Mirrors the semantics the engine relies on from a real document database:

- every call suspends once, like network I/O, so concurrent coroutines
  interleave between operations;
- a single operation (including a whole batch) is applied without
  suspending, so it is atomic with respect to other coroutines;
- increments are applied against the stored value at commit time, never
  against a value the caller read earlier.

Failures can be injected to exercise the all-or-nothing guarantee of
batches, in the same spirit as FakeGateway in the payments domain.
"""

import asyncio
import copy
from collections import defaultdict
from typing import Any

from shared.storage.port import Document, DocumentKey, DocumentStore, StoreError, Write, WriteKind


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _assign(record: dict[str, Any], field_path: str, value: Any) -> None:
    *parents, leaf = field_path.split(".")
    target = record
    for part in parents:
        child = target.setdefault(part, {})
        if not isinstance(child, dict):
            raise StoreError(f"Field `{part}` in `{field_path}` is not a map")
        target = child
    target[leaf] = value


def _add(record: dict[str, Any], field_path: str, delta: int | float) -> None:
    *parents, leaf = field_path.split(".")
    target = record
    for part in parents:
        child = target.setdefault(part, {})
        if not isinstance(child, dict):
            raise StoreError(f"Field `{part}` in `{field_path}` is not a map")
        target = child

    current = target.get(leaf, 0)
    if not _is_number(current):
        raise StoreError(f"Cannot increment non-numeric field `{field_path}`")
    target[leaf] = current + delta


class MemoryDocumentStore(DocumentStore):
    """Dictionary-backed DocumentStore."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self._fail_after: int | None = None
        self._failure_reason = "Simulated storage failure"
        self.commits: list[list[Write]] = []

    # -------------------------------------------------------------------
    # Failure injection
    # -------------------------------------------------------------------
    def fail_next_commit(self, after_writes: int = 0, reason: str = "Simulated storage failure") -> None:
        """Make the next batch commit raise after applying `after_writes` writes to its staging copy."""
        self._fail_after = after_writes
        self._failure_reason = reason

    def reset(self) -> None:
        self._collections.clear()
        self._fail_after = None
        self.commits.clear()

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    async def _io(self) -> None:
        await asyncio.sleep(0)

    def _apply(self, collections: dict[str, dict[str, dict[str, Any]]], write: Write) -> None:
        records = collections.setdefault(write.key.collection, {})
        if write.kind is WriteKind.SET:
            records[write.key.id] = copy.deepcopy(write.data or {})
        elif write.kind is WriteKind.UPDATE:
            record = records.get(write.key.id)
            if record is None:
                raise StoreError(f"No document to update at `{write.key.path}`")
            for field_path, value in (write.data or {}).items():
                _assign(record, field_path, copy.deepcopy(value))
        elif write.kind is WriteKind.INCREMENT:
            record = records.get(write.key.id)
            if record is None:
                raise StoreError(f"No document to update at `{write.key.path}`")
            _add(record, write.field, write.delta)
        elif write.kind is WriteKind.DELETE:
            records.pop(write.key.id, None)

    # -------------------------------------------------------------------
    # DocumentStore interface
    # -------------------------------------------------------------------
    async def get(self, key: DocumentKey) -> dict[str, Any] | None:
        await self._io()
        record = self._collections.get(key.collection, {}).get(key.id)
        return copy.deepcopy(record) if record is not None else None

    async def set(self, key: DocumentKey, data: dict[str, Any]) -> None:
        await self._io()
        self._apply(self._collections, Write(WriteKind.SET, key, data=data))

    async def update(self, key: DocumentKey, data: dict[str, Any]) -> None:
        await self._io()
        self._commit_writes([Write(WriteKind.UPDATE, key, data=data)])

    async def delete(self, key: DocumentKey) -> None:
        await self._io()
        self._apply(self._collections, Write(WriteKind.DELETE, key))

    async def increment(self, key: DocumentKey, field_path: str, delta: int | float) -> None:
        await self._io()
        self._commit_writes([Write(WriteKind.INCREMENT, key, field=field_path, delta=delta)])

    async def query(self, collection: str, **criteria: Any) -> list[Document]:
        await self._io()
        return [
            Document(DocumentKey(collection, doc_id), copy.deepcopy(record))
            for doc_id, record in self._collections.get(collection, {}).items()
            if all(record.get(name) == value for name, value in criteria.items())
        ]

    async def scan(self, collection: str) -> list[Document]:
        return await self.query(collection)

    async def commit(self, writes: list[Write]) -> None:
        await self._io()
        fail_after, self._fail_after = self._fail_after, None
        self._commit_writes(writes, fail_after=fail_after)
        self.commits.append(list(writes))

    def _commit_writes(self, writes: list[Write], fail_after: int | None = None) -> None:
        # Stage on a copy; the live collections are swapped in only on success.
        staged = copy.deepcopy(self._collections)
        for applied, write in enumerate(writes):
            if fail_after is not None and applied >= fail_after:
                raise StoreError(self._failure_reason)
            self._apply(staged, write)
        if fail_after is not None:
            raise StoreError(self._failure_reason)

        self._collections = staged
