"""
Tests for the command-line wiring
"""
from unittest.mock import AsyncMock, patch

import pytest

from cryptowire.utils.exceptions import RateLimitError
from cryptowire.utils.models import FetchResult, NormalizedArticle
from helpers import make_response
from main import CryptoWire, main


def article():
    return NormalizedArticle(
        id="abc", url="https://example.com/a", source="Decrypt", title="Title",
        summary="Summary", published_at=1, fetched_at=1,
    )


class TestCryptoWire:
    """Command dispatch"""

    @pytest.mark.asyncio
    async def test_news_command(self):
        app = CryptoWire()
        with patch.object(app.news, 'fetch', new_callable=AsyncMock) as mock_fetch:
            mock_fetch.return_value = FetchResult[NormalizedArticle](data=[article()])
            output = await app.run("news", force=True)

        mock_fetch.assert_awaited_once_with(force=True)
        assert output["data"][0]["id"] == "abc"
        assert output["from_cache"] is False

    @pytest.mark.asyncio
    async def test_fundraising_passes_chains(self):
        app = CryptoWire()
        with patch.object(app.fundraising, 'fetch', new_callable=AsyncMock) as mock_fetch:
            mock_fetch.return_value = FetchResult[NormalizedArticle](data=[])
            await app.run("fundraising", chains=["SOL"])

        mock_fetch.assert_awaited_once_with(force=False, chains=["SOL"])

    @pytest.mark.asyncio
    async def test_metrics_track_requests_of_the_same_instance(self):
        app = CryptoWire()
        assert app.metrics()["total_requests"] == 0

        with patch.object(app.scheduler.http_client, 'get', new_callable=AsyncMock) as mock_get:
            mock_get.return_value = make_response(200, '{"coins": []}')
            await app.run("trending", force=True)

        assert app.metrics()["total_requests"] == 1
        assert app.metrics()["successful_requests"] == 1

    @pytest.mark.asyncio
    async def test_metrics_is_not_a_fetch_command(self):
        with pytest.raises(ValueError):
            await CryptoWire().run("metrics")

    @pytest.mark.asyncio
    async def test_unknown_command(self):
        with pytest.raises(ValueError):
            await CryptoWire().run("prices")

    @pytest.mark.asyncio
    async def test_main_returns_error_code_on_rate_limit(self, capsys):
        with patch.object(CryptoWire, 'run', new_callable=AsyncMock) as mock_run:
            mock_run.side_effect = RateLimitError("API rate limit active", 20)
            assert await main("trending") == 2

        assert capsys.readouterr().out == ""

    @pytest.mark.asyncio
    async def test_main_prints_json(self, capsys):
        with patch.object(CryptoWire, 'run', new_callable=AsyncMock) as mock_run:
            mock_run.return_value = {"data": [], "from_cache": False, "cache_age": None}
            assert await main("news") == 0

        assert '"from_cache": false' in capsys.readouterr().out
