"""MongoDB document store adapter (production).

All records live in a single MongoDB collection. Each record is stored with
its full key path as `_id` and its collection path in `_collection`, so
nested collections such as `accounts/{id}/cart` need no schema of their own.

Increments map to `$inc`, which MongoDB applies atomically on the server.
Batches run inside a multi-document transaction, which requires the server
to be a replica set or sharded cluster.
"""

from typing import Any

import structlog
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from shared.settings import StorefrontSettings
from shared.storage.port import Document, DocumentKey, DocumentStore, StoreError, Write, WriteKind

logger = structlog.get_logger(__name__)

_INTERNAL_FIELDS = ("_id", "_collection")


def _strip(record: dict[str, Any]) -> dict[str, Any]:
    return {name: value for name, value in record.items() if name not in _INTERNAL_FIELDS}


class MongoDocumentStore(DocumentStore):
    """DocumentStore backed by MongoDB through motor."""

    def __init__(self, client: AsyncIOMotorClient, database: str, collection: str = "documents") -> None:
        self._client = client
        self._records = client[database][collection]

    @classmethod
    def from_settings(cls, settings: StorefrontSettings) -> "MongoDocumentStore":
        client = AsyncIOMotorClient(settings.mongodb_url)
        return cls(client, settings.mongodb_database, settings.mongodb_collection)

    async def ensure_indexes(self) -> None:
        await self._records.create_index("_collection")

    # -------------------------------------------------------------------
    # Single-record operations
    # -------------------------------------------------------------------
    async def get(self, key: DocumentKey) -> dict[str, Any] | None:
        try:
            record = await self._records.find_one({"_id": key.path})
        except PyMongoError as exc:
            raise StoreError(str(exc)) from exc
        return _strip(record) if record is not None else None

    async def set(self, key: DocumentKey, data: dict[str, Any]) -> None:
        await self._run(Write(WriteKind.SET, key, data=data))

    async def update(self, key: DocumentKey, data: dict[str, Any]) -> None:
        await self._run(Write(WriteKind.UPDATE, key, data=data))

    async def delete(self, key: DocumentKey) -> None:
        await self._run(Write(WriteKind.DELETE, key))

    async def increment(self, key: DocumentKey, field_path: str, delta: int | float) -> None:
        await self._run(Write(WriteKind.INCREMENT, key, field=field_path, delta=delta))

    # -------------------------------------------------------------------
    # Collection reads
    # -------------------------------------------------------------------
    async def query(self, collection: str, **criteria: Any) -> list[Document]:
        try:
            cursor = self._records.find({"_collection": collection, **criteria})
            return [
                Document(DocumentKey(collection, record["_id"].rsplit("/", 1)[-1]), _strip(record))
                async for record in cursor
            ]
        except PyMongoError as exc:
            raise StoreError(str(exc)) from exc

    async def scan(self, collection: str) -> list[Document]:
        return await self.query(collection)

    # -------------------------------------------------------------------
    # Batches
    # -------------------------------------------------------------------
    async def commit(self, writes: list[Write]) -> None:
        try:
            async with await self._client.start_session() as session:
                async with session.start_transaction():
                    for write in writes:
                        await self._apply(write, session=session)
        except PyMongoError as exc:
            logger.error("Batch commit failed", writes=len(writes), error=str(exc))
            raise StoreError(str(exc)) from exc

    async def _run(self, write: Write) -> None:
        try:
            await self._apply(write)
        except PyMongoError as exc:
            raise StoreError(str(exc)) from exc

    async def _apply(self, write: Write, session=None) -> None:
        selector = {"_id": write.key.path}
        if write.kind is WriteKind.SET:
            record = {**(write.data or {}), "_id": write.key.path, "_collection": write.key.collection}
            await self._records.replace_one(selector, record, upsert=True, session=session)
        elif write.kind is WriteKind.DELETE:
            await self._records.delete_one(selector, session=session)
        else:
            if write.kind is WriteKind.UPDATE:
                change = {"$set": dict(write.data or {})}
            else:
                change = {"$inc": {write.field: write.delta}}
            result = await self._records.update_one(selector, change, session=session)
            if result.matched_count == 0:
                raise StoreError(f"No document to update at `{write.key.path}`")
