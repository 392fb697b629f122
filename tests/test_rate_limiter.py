"""
Test suite for per-host throttling
"""
import asyncio
import time

import pytest

from cryptowire.utils.rate_limiter import HostThrottle


class TestHostThrottle:
    """Test concurrency cap and start spacing per host"""

    @pytest.mark.asyncio
    async def test_one_in_flight_per_host(self):
        throttle = HostThrottle(concurrency=1, min_interval_ms=0)
        active = 0
        peak = 0

        async def worker():
            nonlocal active, peak
            async with throttle.slot("example.com"):
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.01)
                active -= 1

        await asyncio.gather(*(worker() for _ in range(5)))
        assert peak == 1

    @pytest.mark.asyncio
    async def test_spacing_between_starts(self):
        throttle = HostThrottle(concurrency=1, min_interval_ms=50)
        starts = []

        async def worker():
            async with throttle.slot("example.com"):
                starts.append(time.monotonic())

        await asyncio.gather(worker(), worker(), worker())

        gaps = [later - earlier for earlier, later in zip(starts, starts[1:])]
        assert all(gap >= 0.045 for gap in gaps)

    @pytest.mark.asyncio
    async def test_hosts_do_not_block_each_other(self):
        throttle = HostThrottle(concurrency=1, min_interval_ms=500)

        async def worker(host):
            async with throttle.slot(host):
                await asyncio.sleep(0.01)

        started = time.monotonic()
        await asyncio.gather(worker("a.example"), worker("b.example"), worker("c.example"))
        assert time.monotonic() - started < 0.4

    @pytest.mark.asyncio
    async def test_status_and_reset(self):
        throttle = HostThrottle(concurrency=2, min_interval_ms=1000)

        async with throttle.slot("example.com"):
            status = throttle.get_status("example.com")
            assert status["in_flight"] == 1
            assert status["limit"] == 2

        assert throttle.get_status("example.com")["in_flight"] == 0

        throttle.reset("example.com")
        assert throttle.get_status("example.com")["seconds_since_last_start"] == -1.0

    @pytest.mark.asyncio
    async def test_slot_released_on_error(self):
        throttle = HostThrottle(concurrency=1, min_interval_ms=0)

        with pytest.raises(RuntimeError):
            async with throttle.slot("example.com"):
                raise RuntimeError("boom")

        assert throttle.get_status("example.com")["in_flight"] == 0
        async with throttle.slot("example.com"):
            pass
