"""
Tests for ApiClientState and PendingRequestRegistry
"""
import asyncio

import pytest

from cryptowire.clients.api_state import ApiClientState, PendingRequestRegistry


class TestApiClientState:
    """Batch adaptation and cooldown bookkeeping"""

    def test_initial_batch_size_clamped(self):
        assert ApiClientState(initial_batch_size=500).current_batch_size == 100
        assert ApiClientState(initial_batch_size=1).current_batch_size == 10

    @pytest.mark.asyncio
    async def test_batch_size_capped_at_max(self):
        state = ApiClientState(initial_batch_size=90)
        for _ in range(5):
            await state.record_success(1000, 50)
        assert state.current_batch_size == 100

    @pytest.mark.asyncio
    async def test_low_success_ratio_shrinks(self):
        state = ApiClientState(initial_batch_size=50)
        await state.record_failure(1000)
        assert state.success_ratio() == 0.0
        assert state.current_batch_size == 45

    @pytest.mark.asyncio
    async def test_middling_ratio_holds(self):
        state = ApiClientState(initial_batch_size=50, outcome_window=10)
        for _ in range(8):
            await state.record_success(1000, 10)
        size_before = state.current_batch_size
        await state.record_failure(1000)
        await state.record_failure(1000)
        # 8 of 10 sits between the shrink and grow thresholds
        assert state.success_ratio() == 0.8
        assert state.current_batch_size == size_before

    @pytest.mark.asyncio
    async def test_rate_limit_shrinks_and_floors(self):
        state = ApiClientState(initial_batch_size=12)
        await state.record_rate_limit(1000, 5000)
        assert state.current_batch_size == 10
        await state.record_rate_limit(1000, 5000)
        assert state.current_batch_size == 10

    @pytest.mark.asyncio
    async def test_cooldown_is_monotonic(self):
        state = ApiClientState()
        await state.record_rate_limit(1000, 30_000)
        await state.record_rate_limit(2000, 5_000)

        assert state.rate_limit_cooldown_until == 31_000
        assert state.is_rate_limited(30_999)
        assert not state.is_rate_limited(31_000)
        assert state.cooldown_remaining_ms(21_000) == 10_000

    @pytest.mark.asyncio
    async def test_fixed_batch_when_adaptive_disabled(self):
        state = ApiClientState(initial_batch_size=50, adaptive_batching=False)
        await state.record_success(1000, 10)
        await state.record_rate_limit(1000, 1000)
        assert state.current_batch_size == 50

    @pytest.mark.asyncio
    async def test_concurrent_rate_limits_shrink_once_each(self):
        state = ApiClientState(initial_batch_size=100)
        await asyncio.gather(state.record_rate_limit(1000, 1000), state.record_rate_limit(1000, 1000))
        assert state.current_batch_size == 64

    @pytest.mark.asyncio
    async def test_average_response_time(self):
        state = ApiClientState()
        await state.record_success(1000, 100)
        await state.record_success(1000, 300)
        assert state.average_response_time_ms == 200

    def test_unparseable_headers(self):
        state = ApiClientState()
        state.record_rate_limit_headers({'x-ratelimit-remaining': 'lots', 'retry-after': '12'})
        assert state.last_rate_limit_headers == {'remaining': None, 'reset': None, 'retry_after': 12}


class TestPendingRequestRegistry:
    """Registry lifetime and hashing"""

    def test_request_hash_ignores_id_order(self):
        first = PendingRequestRegistry.request_hash("/coins/markets", ["ethereum", "bitcoin"], {'vs_currency': 'usd'})
        second = PendingRequestRegistry.request_hash("/coins/markets", ["bitcoin", "ethereum"], {'vs_currency': 'usd'})
        assert first == second == "/coins/markets:bitcoin,ethereum?vs_currency=usd"

    def test_request_hash_includes_other_params(self):
        assert PendingRequestRegistry.request_hash("/search", [], {'query': 'a'}) != \
            PendingRequestRegistry.request_hash("/search", [], {'query': 'b'})

    @pytest.mark.asyncio
    async def test_removed_on_settle(self):
        registry = PendingRequestRegistry(window_ms=2000)
        future = asyncio.get_running_loop().create_future()
        registry.register("key", future, 1000)
        assert "key" in registry

        future.set_result(1)
        await asyncio.sleep(0)
        assert "key" not in registry

    @pytest.mark.asyncio
    async def test_failed_future_removed_without_warning(self):
        registry = PendingRequestRegistry(window_ms=2000)
        future = asyncio.get_running_loop().create_future()
        registry.register("key", future, 1000)

        future.set_exception(RuntimeError("boom"))
        await asyncio.sleep(0)
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_sweep_drops_old_entries(self):
        registry = PendingRequestRegistry(window_ms=2000)
        loop = asyncio.get_running_loop()
        registry.register("old", loop.create_future(), 1000)
        registry.register("new", loop.create_future(), 2500)

        registry.sweep(3500)
        assert "old" not in registry
        assert "new" in registry
