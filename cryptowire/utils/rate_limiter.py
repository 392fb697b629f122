"""
Per-host throttling for outbound requests.

Each upstream host gets its own queue: at most ``concurrency`` requests in
flight and at least ``min_interval_ms`` between consecutive request starts.
Different hosts never block each other.
"""

import asyncio
import time
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from cryptowire.utils.constants import RateLimitConstants
from cryptowire.utils.logger import logger


class HostThrottle:
    """Concurrency cap plus start-spacing per host"""

    def __init__(
        self,
        concurrency: int = RateLimitConstants.HOST_CONCURRENCY,
        min_interval_ms: int = RateLimitConstants.HOST_MIN_INTERVAL_MS,
    ):
        """
        Initialize host throttle.

        Args:
            concurrency: Maximum in-flight requests per host
            min_interval_ms: Minimum spacing between request starts per host
        """
        self.concurrency = concurrency
        self.min_interval = min_interval_ms / 1000.0
        self._slots: Dict[str, asyncio.Semaphore] = {}
        self._spacing_locks: Dict[str, asyncio.Lock] = {}
        self._last_start: Dict[str, float] = {}
        self._in_flight: Dict[str, int] = defaultdict(int)

    def _slot_for(self, host: str) -> asyncio.Semaphore:
        if host not in self._slots:
            self._slots[host] = asyncio.Semaphore(self.concurrency)
            self._spacing_locks[host] = asyncio.Lock()
        return self._slots[host]

    @asynccontextmanager
    async def slot(self, host: str) -> AsyncIterator[None]:
        """
        Hold a request slot for ``host`` for the duration of the block.

        Example:
            async with throttle.slot("decrypt.co"):
                response = await client.get(url)
        """
        semaphore = self._slot_for(host)
        async with semaphore:
            async with self._spacing_locks[host]:
                last_start = self._last_start.get(host)
                if last_start is not None:
                    sleep_time = self.min_interval - (time.monotonic() - last_start)
                    if sleep_time > 0:
                        logger.debug(f"Throttling {host}: waiting {sleep_time:.2f}s")
                        await asyncio.sleep(sleep_time)
                self._last_start[host] = time.monotonic()

            self._in_flight[host] += 1
            try:
                yield
            finally:
                self._in_flight[host] -= 1

    def get_status(self, host: str) -> Dict[str, float]:
        """
        Get current throttle status for a host

        Returns:
            Dictionary with in-flight count and seconds since last start
        """
        last_start = self._last_start.get(host)
        return {
            "in_flight": self._in_flight.get(host, 0),
            "limit": self.concurrency,
            "seconds_since_last_start": (time.monotonic() - last_start) if last_start is not None else -1.0,
        }

    def reset(self, host: str) -> None:
        """Forget spacing history for a host"""
        self._last_start.pop(host, None)
