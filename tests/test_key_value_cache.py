"""
Test suite for the TTL key-value cache
"""
import json

import pytest

from cryptowire.storage.key_value_cache import JsonFileStorage, KeyValueCache, MemoryStorage, create_cache
from cryptowire.utils.config import CacheConfig
from cryptowire.utils.constants import CacheConstants
from helpers import FakeClock


class TestKeyValueCache:
    """Test cache expiry and stale reads"""

    @pytest.mark.parametrize("duration_ms", [1, 500, 60_000])
    def test_value_readable_until_duration_elapses(self, memory_cache, clock, duration_ms):
        memory_cache.set("key", {"value": 1}, duration_ms)

        clock.advance(duration_ms - 1)
        entry = memory_cache.get("key")
        assert entry is not None
        assert entry.data == {"value": 1}

        clock.advance(1)
        assert memory_cache.get("key") is None

    def test_expired_read_evicts_entry(self, memory_cache, clock):
        memory_cache.set("key", [1, 2, 3], 1000)
        clock.advance(5000)

        assert memory_cache.get("key") is None
        assert memory_cache.get("key", allow_expired=True) is None

    def test_allow_expired_returns_without_evicting(self, memory_cache, clock):
        memory_cache.set("key", [1, 2, 3], 1000)
        clock.advance(5000)

        entry = memory_cache.get("key", allow_expired=True)
        assert entry.data == [1, 2, 3]
        assert memory_cache.age_ms(entry) == 5000
        assert memory_cache.get("key", allow_expired=True) is not None

    def test_entry_layout_and_namespace(self, clock):
        storage = MemoryStorage()
        cache = KeyValueCache(storage, clock=clock)
        cache.set("rss-feed-abc", {"items": []}, 1000, etag='"v1"', last_modified="Mon, 20 Oct 2025 10:00:00 GMT")

        raw = json.loads(storage.get_item(f"{CacheConstants.NAMESPACE_PREFIX}rss-feed-abc"))
        assert raw == {
            "data": {"items": []},
            "timestamp": clock.now,
            "expiry": clock.now + 1000,
            "etag": '"v1"',
            "lastModified": "Mon, 20 Oct 2025 10:00:00 GMT",
        }

    def test_validators_round_trip(self, memory_cache):
        memory_cache.set("key", "data", 1000, etag='"abc"', last_modified="yesterday")
        entry = memory_cache.get("key")
        assert entry.etag == '"abc"'
        assert entry.last_modified == "yesterday"

    def test_remove(self, memory_cache):
        memory_cache.set("key", "data", 1000)
        memory_cache.remove("key")
        assert memory_cache.get("key") is None

    def test_corrupt_entry_is_dropped(self, clock):
        storage = MemoryStorage()
        cache = KeyValueCache(storage, clock=clock)
        storage.set_item(f"{CacheConstants.NAMESPACE_PREFIX}broken", "{not json")

        assert cache.get("broken") is None
        assert storage.get_item(f"{CacheConstants.NAMESPACE_PREFIX}broken") is None

    def test_write_failure_is_swallowed(self, clock):
        class FullStorage(MemoryStorage):
            def set_item(self, key, value):
                raise OSError("quota exceeded")

        cache = KeyValueCache(FullStorage(), clock=clock)
        cache.set("key", "data", 1000)
        assert cache.get("key") is None

    def test_unserializable_data_is_swallowed(self, memory_cache):
        memory_cache.set("key", object(), 1000)
        assert memory_cache.get("key") is None


class TestJsonFileStorage:
    """Test the file-backed storage"""

    def test_persists_across_instances(self, tmp_path):
        clock = FakeClock()
        KeyValueCache(JsonFileStorage(str(tmp_path)), clock=clock).set("news", ["a", "b"], 10_000)

        reopened = KeyValueCache(JsonFileStorage(str(tmp_path)), clock=clock)
        assert reopened.get("news").data == ["a", "b"]

    def test_remove_missing_key(self, tmp_path):
        storage = JsonFileStorage(str(tmp_path))
        storage.remove_item("missing")
        assert storage.get_item("missing") is None

    def test_create_cache_selects_backend(self, tmp_path):
        file_cache = create_cache(CacheConfig(backend="file", directory=str(tmp_path / "cache")))
        memory_cache = create_cache(CacheConfig(backend="memory"))

        assert isinstance(file_cache.storage, JsonFileStorage)
        assert isinstance(memory_cache.storage, MemoryStorage)
