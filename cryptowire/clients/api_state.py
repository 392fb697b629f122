"""
Shared provider state for the API request scheduler.

ApiClientState is the single mutation point for cooldown, counters and the
adaptive batch size; every read-modify-write happens under one asyncio.Lock.
PendingRequestRegistry tracks in-flight requests for deduplication.
"""

import asyncio
import math
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, Iterable, Mapping, Optional

from cryptowire.utils.constants import BatchConstants
from cryptowire.utils.logger import logger


class ApiClientState:
    """Mutable per-provider state, owned by one RequestScheduler"""

    def __init__(
        self,
        initial_batch_size: int = BatchConstants.DEFAULT_BATCH_SIZE,
        min_batch_size: int = BatchConstants.MIN_BATCH_SIZE,
        max_batch_size: int = BatchConstants.MAX_BATCH_SIZE,
        adaptive_batching: bool = True,
        outcome_window: int = BatchConstants.OUTCOME_WINDOW,
    ):
        self.min_batch_size = min_batch_size
        self.max_batch_size = max_batch_size
        self.adaptive_batching = adaptive_batching

        self.rate_limit_cooldown_until = 0
        self.consecutive_errors = 0
        self.successful_requests = 0
        self.total_requests = 0
        self.current_batch_size = max(min_batch_size, min(initial_batch_size, max_batch_size))
        self.last_request_time = 0
        self.last_provider_request_completion_time = 0
        self.average_response_time_ms = 0.0
        self.last_rate_limit_headers: Dict[str, Optional[int]] = {}

        self._outcomes: Deque[bool] = deque(maxlen=outcome_window)
        self._lock = asyncio.Lock()

    # =========================================================
    # READS
    # =========================================================

    def success_ratio(self) -> float:
        """Success ratio over the rolling outcome window"""
        if not self._outcomes:
            return 1.0
        return sum(self._outcomes) / len(self._outcomes)

    def cooldown_remaining_ms(self, now: int) -> int:
        return max(0, self.rate_limit_cooldown_until - now)

    def is_rate_limited(self, now: int) -> bool:
        return self.rate_limit_cooldown_until > now

    # =========================================================
    # MUTATIONS
    # =========================================================

    async def begin_request(self) -> None:
        async with self._lock:
            self.total_requests += 1

    async def record_success(self, now: int, response_time_ms: float) -> None:
        async with self._lock:
            self.last_request_time = now
            self.last_provider_request_completion_time = now
            self.consecutive_errors = 0
            self.successful_requests += 1
            self.average_response_time_ms += (
                (response_time_ms - self.average_response_time_ms) / self.successful_requests
            )
            self._outcomes.append(True)
            self._adapt_batch_size()

    async def record_failure(self, now: int) -> None:
        async with self._lock:
            self.last_request_time = now
            self.last_provider_request_completion_time = now
            self.consecutive_errors += 1
            self._outcomes.append(False)
            self._adapt_batch_size()

    async def record_rate_limit(self, now: int, cooldown_ms: int) -> int:
        """
        Register a 429: extend the cooldown and shrink the batch size by 20%.

        Returns:
            The cooldown-until timestamp in effect afterwards
        """
        async with self._lock:
            self.last_request_time = now
            self.last_provider_request_completion_time = now
            self.consecutive_errors += 1
            self._outcomes.append(False)
            # Cooldown only ever moves forward
            self.rate_limit_cooldown_until = max(self.rate_limit_cooldown_until, now + cooldown_ms)
            if self.adaptive_batching:
                self.current_batch_size = max(
                    math.floor(self.current_batch_size * BatchConstants.RATE_LIMIT_SHRINK_FACTOR),
                    self.min_batch_size,
                )
            return self.rate_limit_cooldown_until

    def record_rate_limit_headers(self, headers: Mapping[str, str]) -> None:
        """Keep X-RateLimit-* / Retry-After values for diagnostics"""
        parsed = {}
        for name, header in (
            ('remaining', 'x-ratelimit-remaining'),
            ('reset', 'x-ratelimit-reset'),
            ('retry_after', 'retry-after'),
        ):
            value = headers.get(header)
            try:
                parsed[name] = int(value) if value is not None else None
            except ValueError:
                parsed[name] = None
        self.last_rate_limit_headers = parsed
        logger.debug(
            f"Rate limit headers: remaining={parsed['remaining']} reset={parsed['reset']} "
            f"retry_after={parsed['retry_after']}"
        )

    def _adapt_batch_size(self) -> None:
        if not self.adaptive_batching:
            return
        ratio = self.success_ratio()
        if ratio > BatchConstants.GROW_THRESHOLD:
            self.current_batch_size = min(self.current_batch_size + BatchConstants.STEP, self.max_batch_size)
        elif ratio < BatchConstants.SHRINK_THRESHOLD:
            self.current_batch_size = max(self.current_batch_size - BatchConstants.STEP, self.min_batch_size)


@dataclass
class PendingRequest:
    future: "asyncio.Future[Any]"
    timestamp: int
    request_hash: str


class PendingRequestRegistry:
    """In-flight requests keyed by request hash, with a bounded lifetime"""

    def __init__(self, window_ms: int):
        self.window_ms = window_ms
        self._entries: Dict[str, PendingRequest] = {}

    @staticmethod
    def request_hash(endpoint: str, ids: Iterable[str] = (), params: Optional[Mapping[str, Any]] = None) -> str:
        """Hash of endpoint, sorted id set and the remaining query parameters"""
        key = f"{endpoint}:{','.join(sorted(set(ids)))}"
        extra = {k: v for k, v in (params or {}).items() if k != 'ids'}
        if extra:
            key += '?' + '&'.join(f"{k}={extra[k]}" for k in sorted(extra))
        return key

    def sweep(self, now: int) -> None:
        """Drop entries older than the deduplication window"""
        expired = [h for h, entry in self._entries.items() if now - entry.timestamp > self.window_ms]
        for request_hash in expired:
            del self._entries[request_hash]

    def get(self, request_hash: str) -> Optional[PendingRequest]:
        return self._entries.get(request_hash)

    def register(self, request_hash: str, future: "asyncio.Future[Any]", now: int) -> None:
        self._entries[request_hash] = PendingRequest(future=future, timestamp=now, request_hash=request_hash)

        def _remove(settled):
            # Mark the outcome as retrieved; callers may have stopped waiting
            if not settled.cancelled():
                settled.exception()
            entry = self._entries.get(request_hash)
            if entry is not None and entry.future is settled:
                del self._entries[request_hash]

        future.add_done_callback(_remove)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, request_hash: str) -> bool:
        return request_hash in self._entries
