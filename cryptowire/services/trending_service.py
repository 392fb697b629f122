"""
Trending tokens: CoinGecko trending ids enriched with market data
"""
from typing import List, Optional

from cryptowire.clients.coingecko import CoinGeckoClient, get_coingecko_client
from cryptowire.services.base import CachedFetchService
from cryptowire.storage.key_value_cache import KeyValueCache
from cryptowire.utils.config import Config, get_config
from cryptowire.utils.logger import logger
from cryptowire.utils.models import FetchResult, RequestPriority, TrendingToken

TRENDING_CACHE_KEY = "trending-tokens"


class TrendingService(CachedFetchService[TrendingToken]):
    """Trending coins in trending order, with price and volume"""

    model = TrendingToken
    raise_on_failure = True

    def __init__(
        self,
        config: Optional[Config] = None,
        client: Optional[CoinGeckoClient] = None,
        cache: Optional[KeyValueCache] = None,
        **kwargs,
    ):
        self.config = config or get_config()
        super().__init__(
            self.config.services.trending_fresh_ms,
            self.config.services.trending_stale_ms,
            cache=cache,
            **kwargs,
        )
        self.client = client or get_coingecko_client()

    async def fetch(self, force: bool = False) -> FetchResult[TrendingToken]:
        """
        Fetch trending tokens.

        Raises:
            IngestionError: When the live fetch fails and no stale data is cached
        """
        return await self._fetch_with_cache(TRENDING_CACHE_KEY, self._fetch_live, force)

    async def _fetch_live(self) -> List[TrendingToken]:
        trending = await self.client.fetch_trending(RequestPriority.HIGH)
        ids = [coin.item.id for coin in trending.coins]
        if not ids:
            return []

        markets = await self.client.fetch_coin_markets(ids, 'usd', RequestPriority.HIGH)
        by_id = {token.id: token for token in markets}
        tokens = [by_id[coin_id] for coin_id in ids if coin_id in by_id]
        logger.info(f"Trending: {len(tokens)} of {len(ids)} trending coins enriched")
        return tokens


# Global service instance
_trending_service = None

def get_trending_service() -> TrendingService:
    """Get or create the global trending service"""
    global _trending_service
    if _trending_service is None:
        _trending_service = TrendingService()
    return _trending_service
