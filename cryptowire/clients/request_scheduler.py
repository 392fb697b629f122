"""
Request scheduler for a single rate-limited JSON API provider.

============================================================
RESPONSIBILITY
============================================================
- Priority pacing (HIGH / NORMAL / LOW minimum spacing)
- Global provider throttle measured from the previous completion
- Pre-emptive cooldown check after a 429
- Deduplication of identical in-flight requests
- Retry with jittered exponential backoff for non-429 failures
- Adaptive batch sizing driven by ApiClientState

============================================================
"""

import asyncio
import random
import time
from typing import Any, Dict, Mapping, Optional

from cryptowire.clients.api_state import ApiClientState, PendingRequestRegistry
from cryptowire.utils.clock import now_ms
from cryptowire.utils.config import ApiClientConfig
from cryptowire.utils.constants import HTTPConstants, RateLimitConstants
from cryptowire.utils.exceptions import RateLimitError, TransportError, ValidationError
from cryptowire.utils.http_client import HTTPClient, HTTPResponse, get_http_client
from cryptowire.utils.logger import logger
from cryptowire.utils.models import RequestPriority

# Sentinel for a non-2xx, non-429 response
_FAILED = object()


async def _sleep_ms(delay_ms: float) -> None:
    await asyncio.sleep(delay_ms / 1000.0)


def add_jitter(delay_ms: float, jitter_percent: float = RateLimitConstants.BACKOFF_JITTER) -> float:
    """Spread a delay by +/- jitter_percent, never below the backoff floor"""
    jitter_range = delay_ms * jitter_percent
    jitter = (random.random() - 0.5) * 2 * jitter_range
    return max(RateLimitConstants.BACKOFF_FLOOR_MS, delay_ms + jitter)


def parse_retry_after_ms(value: Optional[str]) -> Optional[int]:
    """Retry-After in delta-seconds form, as milliseconds"""
    if not value:
        return None
    try:
        seconds = int(value.strip())
    except ValueError:
        return None
    return seconds * 1000 if seconds >= 0 else None


class RequestScheduler:
    """Mediates every call to one JSON API provider"""

    def __init__(
        self,
        config: Optional[ApiClientConfig] = None,
        http_client: Optional[HTTPClient] = None,
        state: Optional[ApiClientState] = None,
        clock=now_ms,
    ):
        self.config = config or ApiClientConfig()
        self.http_client = http_client or get_http_client()
        self.state = state or ApiClientState(
            initial_batch_size=self.config.batch_size,
            min_batch_size=self.config.min_batch_size,
            max_batch_size=self.config.max_batch_size,
            adaptive_batching=self.config.adaptive_batching,
        )
        self.pending = PendingRequestRegistry(self.config.dedup_window_ms)
        self._clock = clock
        # One dispatch at a time per provider
        self._dispatch_lock = asyncio.Lock()

    @property
    def current_batch_size(self) -> int:
        return self.state.current_batch_size

    def priority_delay_ms(self, priority: RequestPriority) -> int:
        if priority == RequestPriority.HIGH:
            return self.config.high_priority_delay_ms
        if priority == RequestPriority.LOW:
            return self.config.low_priority_delay_ms
        return self.config.normal_priority_delay_ms

    def retry_after_seconds(self) -> int:
        remaining = self.state.cooldown_remaining_ms(self._clock())
        return -(-remaining // 1000)

    def is_rate_limited(self) -> bool:
        return self.state.is_rate_limited(self._clock())

    async def request(
        self,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        priority: RequestPriority = RequestPriority.NORMAL,
        timeout_seconds: Optional[float] = None,
    ) -> Any:
        """
        GET a JSON document from the provider.

        Args:
            url: Endpoint URL
            params: Query parameters; ``ids`` is a comma-separated id list
            priority: Pacing class of the request
            timeout_seconds: Per-attempt timeout (defaults to the configured API timeout)

        Returns:
            Decoded JSON payload

        Raises:
            RateLimitError: Cooldown active or 429 received
            TransportError: Network failure or non-2xx after all attempts
            ValidationError: Response body is not JSON
        """
        params = dict(params or {})
        now = self._clock()
        self.pending.sweep(now)

        ids = [i for i in str(params.get('ids', '')).split(',') if i]
        request_hash = PendingRequestRegistry.request_hash(url, ids, params)

        existing = self.pending.get(request_hash)
        if existing is not None:
            logger.debug(f"Reusing pending request: {request_hash}")
            return await asyncio.shield(existing.future)

        # Pre-emptive cooldown check, no network call while rate limited
        if self.state.is_rate_limited(now):
            retry_seconds = self.retry_after_seconds()
            logger.warning(f"Rate limit pre-check failed ({priority.value}). Retry after {retry_seconds}s. URL: {url}")
            raise RateLimitError(f"API rate limit active. Please wait {retry_seconds}s.", retry_seconds)

        timeout = timeout_seconds or self.config.timeout_seconds
        task = asyncio.ensure_future(self._execute(url, params, priority, timeout))
        self.pending.register(request_hash, task, now)
        return await asyncio.shield(task)

    async def _execute(
        self,
        url: str,
        params: Dict[str, Any],
        priority: RequestPriority,
        timeout_seconds: float,
    ) -> Any:
        await self.state.begin_request()
        started = time.monotonic()
        max_attempts = self.config.max_attempts
        last_error: Optional[Exception] = None

        for attempt in range(max_attempts):
            async with self._dispatch_lock:
                # Another request may have hit a 429 while this one waited
                if self.state.is_rate_limited(self._clock()):
                    retry_seconds = self.retry_after_seconds()
                    logger.warning(f"Attempt {attempt + 1} blocked, rate limited for {retry_seconds}s. URL: {url}")
                    raise RateLimitError(
                        f"API rate limit active during retry. Wait {retry_seconds}s.", retry_seconds
                    ) from last_error

                await self._wait_for_turn(priority)

                logger.debug(f"{priority.value} priority attempt {attempt + 1}/{max_attempts}: GET {url}")
                try:
                    response = await self.http_client.get(
                        url,
                        params=params,
                        headers={'Accept': HTTPConstants.JSON_ACCEPT},
                        timeout_seconds=timeout_seconds,
                    )
                except TransportError as e:
                    await self.state.record_failure(self._clock())
                    last_error = e
                else:
                    payload = await self._handle_response(url, response, priority, started)
                    if payload is not _FAILED:
                        return payload
                    last_error = TransportError(f"HTTP {response.status} from {url}", response.status)

            logger.error(
                f"{priority.value} priority attempt {attempt + 1}/{max_attempts} for {url} failed: {last_error}"
            )
            if attempt < max_attempts - 1:
                base_backoff = min(
                    self.config.request_spacing_ms * (2 ** attempt),
                    RateLimitConstants.BACKOFF_CAP_MS,
                )
                backoff = add_jitter(base_backoff)
                logger.info(f"Retrying {url} in {round(backoff)}ms (attempt {attempt + 2}/{max_attempts})")
                await _sleep_ms(backoff)

        logger.error(f"All {max_attempts} attempts for {url} failed. Last error: {last_error}")
        raise last_error or TransportError(f"All API attempts failed for {url}")

    async def _wait_for_turn(self, priority: RequestPriority) -> None:
        """Honor provider spacing (from last completion) and priority spacing"""
        now = self._clock()
        throttle_wait = self.config.request_spacing_ms - (now - self.state.last_provider_request_completion_time)
        priority_wait = self.priority_delay_ms(priority) - (now - self.state.last_request_time)
        wait_ms = max(throttle_wait, priority_wait)
        if wait_ms > 0:
            logger.debug(f"{priority.value} priority request waiting {wait_ms}ms")
            await _sleep_ms(wait_ms)

    async def _handle_response(
        self,
        url: str,
        response: HTTPResponse,
        priority: RequestPriority,
        started: float,
    ) -> Any:
        self.state.record_rate_limit_headers(response.headers)

        if response.status == 429:
            cooldown_ms = parse_retry_after_ms(response.headers.get('retry-after'))
            if cooldown_ms is None:
                cooldown_ms = self.config.rate_limit_cooldown_ms
            await self.state.record_rate_limit(self._clock(), cooldown_ms)
            logger.warning(
                f"{priority.value} priority 429 from provider. Cooldown: {cooldown_ms / 1000}s. "
                f"Reduced batch size to {self.state.current_batch_size}. URL: {url}"
            )
            raise RateLimitError(
                f"API rate limit hit (429). Cooldown active for {cooldown_ms // 1000}s.",
                -(-cooldown_ms // 1000),
            )

        if not response.ok:
            await self.state.record_failure(self._clock())
            return _FAILED

        try:
            payload = response.json()
        except ValueError as e:
            await self.state.record_failure(self._clock())
            raise ValidationError(f"Invalid JSON from {url}: {e}")

        elapsed_ms = (time.monotonic() - started) * 1000
        await self.state.record_success(self._clock(), elapsed_ms)
        logger.info(
            f"{priority.value} priority: {url} ({round(elapsed_ms)}ms, batch size: {self.state.current_batch_size})"
        )
        return payload

    def get_performance_metrics(self) -> Dict[str, Any]:
        """Snapshot of provider health for monitoring"""
        state = self.state
        success_rate = (
            f"{state.successful_requests / state.total_requests * 100:.1f}%"
            if state.total_requests else "N/A"
        )
        return {
            "total_requests": state.total_requests,
            "successful_requests": state.successful_requests,
            "success_rate": success_rate,
            "average_response_time": f"{round(state.average_response_time_ms)}ms",
            "current_batch_size": state.current_batch_size,
            "consecutive_errors": state.consecutive_errors,
            "pending_requests": len(self.pending),
            "rate_limit_active": self.is_rate_limited(),
            "last_rate_limit_headers": dict(state.last_rate_limit_headers),
        }
