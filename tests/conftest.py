"""
Shared fixtures for cryptowire tests
"""
import pytest
from loguru import logger

from cryptowire.storage.key_value_cache import KeyValueCache, MemoryStorage
from helpers import FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_cache(clock):
    return KeyValueCache(MemoryStorage(), clock=clock)


@pytest.fixture
def log_records():
    """Capture loguru records emitted during a test"""
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)
