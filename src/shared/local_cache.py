"""Device-local durable cache for the anonymous cart.

A plain get/set of serialized blobs keyed by name, with no identity and no
expiry. The file adapter keeps one JSON file per key under a directory.
"""

import re
from abc import ABC, abstractmethod
from pathlib import Path

from shared.settings import get_settings


class LocalCache(ABC):
    """Abstract local cache interface."""

    @abstractmethod
    def get(self, key: str) -> str | None: ...

    @abstractmethod
    def set(self, key: str, blob: str) -> None: ...

    @abstractmethod
    def delete(self, key: str) -> None: ...


class MemoryLocalCache(LocalCache):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._blobs: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._blobs.get(key)

    def set(self, key: str, blob: str) -> None:
        self._blobs[key] = blob

    def delete(self, key: str) -> None:
        self._blobs.pop(key, None)


class FileLocalCache(LocalCache):
    """Stores each key as `<directory>/<key>.json`."""

    _SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not self._SAFE_KEY.match(key):
            raise ValueError(f"Invalid cache key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, blob: str) -> None:
        path = self._path(key)
        self.directory.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(blob, encoding="utf-8")
        tmp.replace(path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


def default_local_cache() -> LocalCache:
    """File-backed cache under the configured `cart_cache_dir`."""
    return FileLocalCache(get_settings().cart_cache_dir)
