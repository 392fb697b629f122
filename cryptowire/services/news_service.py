"""
Crypto news from the configured RSS sources
"""
from typing import List, Optional

from cryptowire.aggregators.rss_engine import RSSEngine, get_rss_engine
from cryptowire.services.base import CachedFetchService
from cryptowire.storage.key_value_cache import KeyValueCache
from cryptowire.utils.config import Config, get_config
from cryptowire.utils.logger import logger
from cryptowire.utils.models import FetchResult, NormalizedArticle

NEWS_CACHE_KEY = "crypto-news"


class NewsService(CachedFetchService[NormalizedArticle]):
    """Top N newest articles across the news feeds"""

    model = NormalizedArticle

    def __init__(
        self,
        config: Optional[Config] = None,
        engine: Optional[RSSEngine] = None,
        cache: Optional[KeyValueCache] = None,
        **kwargs,
    ):
        self.config = config or get_config()
        super().__init__(
            self.config.services.news_fresh_ms,
            self.config.services.news_stale_ms,
            cache=cache,
            **kwargs,
        )
        self.engine = engine or get_rss_engine()

    async def fetch(self, force: bool = False) -> FetchResult[NormalizedArticle]:
        return await self._fetch_with_cache(NEWS_CACHE_KEY, lambda: self._fetch_live(force), force)

    async def _fetch_live(self, force: bool) -> List[NormalizedArticle]:
        urls = self.config.feed_urls('news')
        articles = await self.engine.fetch_all(urls, force=force)
        top = articles[:self.config.services.max_news_articles]
        logger.info(f"News: {len(top)} of {len(articles)} articles from {len(urls)} feeds")
        return top


# Global service instance
_news_service = None

def get_news_service() -> NewsService:
    """Get or create the global news service"""
    global _news_service
    if _news_service is None:
        _news_service = NewsService()
    return _news_service
