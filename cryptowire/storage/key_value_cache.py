"""
TTL-aware key-value cache.

Entries are stored as JSON documents ``{data, timestamp, expiry[, etag,
lastModified]}`` under ``{namespace_prefix}{key}`` in any backend that offers
get/set/remove by string key. The cache is a best-effort layer: storage
failures are logged and never propagated.
"""

import hashlib
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from cryptowire.utils.clock import now_ms
from cryptowire.utils.constants import CacheConstants
from cryptowire.utils.logger import logger
from cryptowire.utils.models import CacheEntry


class Storage(ABC):
    """String key/value persistence backend"""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        pass


class MemoryStorage(Storage):
    """In-process dict backend"""

    def __init__(self):
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()


class JsonFileStorage(Storage):
    """One JSON file per key inside a directory"""

    def __init__(self, directory: str):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        digest = hashlib.sha1(key.encode('utf-8')).hexdigest()
        return self.directory / f"{digest}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding='utf-8')

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix('.tmp')
        tmp_path.write_text(value, encoding='utf-8')
        tmp_path.replace(path)

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class KeyValueCache:
    """Timestamped entries with absolute expiry"""

    def __init__(
        self,
        storage: Optional[Storage] = None,
        namespace_prefix: str = CacheConstants.NAMESPACE_PREFIX,
        clock: Callable[[], int] = now_ms,
    ):
        self.storage = storage or MemoryStorage()
        self.namespace_prefix = namespace_prefix
        self._clock = clock

    def _full_key(self, key: str) -> str:
        return f"{self.namespace_prefix}{key}"

    def set(
        self,
        key: str,
        data: Any,
        duration_ms: int,
        etag: Optional[str] = None,
        last_modified: Optional[str] = None,
    ) -> None:
        """
        Store data with expiry = now + duration_ms.

        Args:
            key: Logical cache key
            data: JSON-serializable payload
            duration_ms: Lifetime of the entry
            etag: Optional ETag validator
            last_modified: Optional Last-Modified validator
        """
        now = self._clock()
        entry = CacheEntry(
            data=data,
            timestamp=now,
            expiry=now + duration_ms,
            etag=etag,
            last_modified=last_modified,
        )
        try:
            self.storage.set_item(
                self._full_key(key),
                json.dumps(entry.model_dump(by_alias=True, exclude_none=True)),
            )
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Error setting cache for key '{key}': {e}")

    def get(self, key: str, allow_expired: bool = False) -> Optional[CacheEntry]:
        """
        Read an entry.

        Args:
            key: Logical cache key
            allow_expired: Return entries past their expiry without evicting

        Returns:
            CacheEntry, or None when absent, expired or unreadable
        """
        full_key = self._full_key(key)
        try:
            raw = self.storage.get_item(full_key)
            if raw is None:
                return None
            entry = CacheEntry.model_validate(json.loads(raw))
        except (OSError, ValueError, PydanticValidationError) as e:
            logger.error(f"Error getting cache for key '{key}': {e}")
            self.remove(key)
            return None

        if not allow_expired and self._clock() >= entry.expiry:
            self.remove(key)
            return None
        return entry

    def age_ms(self, entry: CacheEntry) -> int:
        """Milliseconds since the entry was written"""
        return self._clock() - entry.timestamp

    def remove(self, key: str) -> None:
        """Delete an entry unconditionally"""
        try:
            self.storage.remove_item(self._full_key(key))
        except OSError as e:
            logger.error(f"Error removing cache for key '{key}': {e}")


def create_cache(cache_config) -> KeyValueCache:
    """Build a cache for a CacheConfig (backend: memory or file)"""
    if cache_config.backend == "file":
        storage = JsonFileStorage(cache_config.directory)
    else:
        storage = MemoryStorage()
    return KeyValueCache(storage, namespace_prefix=cache_config.namespace_prefix)


# Global cache instance
_cache = None

def get_cache() -> KeyValueCache:
    """Get or create the global cache"""
    global _cache
    if _cache is None:
        from cryptowire.utils.config import get_config

        _cache = create_cache(get_config().cache)
    return _cache
