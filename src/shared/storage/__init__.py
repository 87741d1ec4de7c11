"""Document store factory.

Provides get_store() / set_store() to swap implementations:
- MemoryDocumentStore for development and testing
- MongoDocumentStore for production (STOREFRONT_STORE_BACKEND=mongodb)
"""

from shared.settings import get_settings
from shared.storage.memory_adapter import MemoryDocumentStore
from shared.storage.port import Document, DocumentKey, DocumentStore, StoreError, WriteBatch

_current_store: DocumentStore | None = None


def get_store() -> DocumentStore:
    """Return the current document store, building it from settings on first use."""
    global _current_store
    if _current_store is None:
        settings = get_settings()
        if settings.store_backend == "mongodb":
            from shared.storage.mongo_adapter import MongoDocumentStore

            _current_store = MongoDocumentStore.from_settings(settings)
        else:
            _current_store = MemoryDocumentStore()
    return _current_store


def set_store(store: DocumentStore) -> None:
    """Override the active document store (useful for tests)."""
    global _current_store
    _current_store = store


def reset_store() -> None:
    """Reset to the settings-selected store."""
    global _current_store
    _current_store = None


__all__ = [
    "Document",
    "DocumentKey",
    "DocumentStore",
    "MemoryDocumentStore",
    "StoreError",
    "WriteBatch",
    "get_store",
    "reset_store",
    "set_store",
]
