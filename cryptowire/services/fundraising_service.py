"""
Fundraising announcements filtered out of the curated fundraising feeds
"""
from typing import List, Optional

from cryptowire.aggregators.rss_engine import RSSEngine, get_rss_engine
from cryptowire.services import fundraising_rules
from cryptowire.services.base import CachedFetchService
from cryptowire.storage.key_value_cache import KeyValueCache
from cryptowire.utils.config import Config, get_config
from cryptowire.utils.logger import logger
from cryptowire.utils.models import FetchResult, FundraisingArticle, NormalizedArticle

FUNDRAISING_CACHE_KEY = "fundraising-news"


def normalize_chain_filter(chains: Optional[List[str]]) -> List[str]:
    """Known chain tags from ``chains``, deduplicated and in canonical order"""
    if not chains:
        return []
    requested = {chain.strip() for chain in chains if chain and chain.strip()}
    unknown = requested - set(fundraising_rules.CHAIN_TAGS)
    if unknown:
        logger.warning(f"Ignoring unknown chain filters: {sorted(unknown)}")
    return [chain for chain in fundraising_rules.CHAIN_TAGS if chain in requested]


class FundraisingService(CachedFetchService[FundraisingArticle]):
    """Fundraising articles tagged with chains, stage, amount and investors"""

    model = FundraisingArticle

    def __init__(
        self,
        config: Optional[Config] = None,
        engine: Optional[RSSEngine] = None,
        cache: Optional[KeyValueCache] = None,
        **kwargs,
    ):
        self.config = config or get_config()
        super().__init__(
            self.config.services.fundraising_fresh_ms,
            self.config.services.fundraising_stale_ms,
            cache=cache,
            **kwargs,
        )
        self.engine = engine or get_rss_engine()

    async def fetch(self, force: bool = False, chains: Optional[List[str]] = None) -> FetchResult[FundraisingArticle]:
        """
        Fetch fundraising articles.

        Args:
            force: Skip the fresh-cache check
            chains: Keep only articles tagged with one of these chains (SOL, ETH, SUI, ETH_L2s)
        """
        chain_filter = normalize_chain_filter(chains)
        cache_key = FUNDRAISING_CACHE_KEY
        if chain_filter:
            cache_key = f"{FUNDRAISING_CACHE_KEY}-{','.join(chain_filter)}"

        return await self._fetch_with_cache(cache_key, lambda: self._fetch_live(force, chain_filter), force)

    async def _fetch_live(self, force: bool, chain_filter: List[str]) -> List[FundraisingArticle]:
        urls = self.config.feed_urls('fundraising')
        articles = await self.engine.fetch_all(urls, force=force)

        results = []
        for article in articles:
            enriched = self.classify(article)
            if enriched is None:
                continue
            if chain_filter and not set(enriched.chains) & set(chain_filter):
                continue
            results.append(enriched)

        logger.info(f"Fundraising: {len(results)} of {len(articles)} articles matched")
        return results

    @staticmethod
    def classify(article: NormalizedArticle) -> Optional[FundraisingArticle]:
        """FundraisingArticle for a fundraising announcement, None otherwise"""
        text = f"{article.title} {article.summary}"
        if not fundraising_rules.is_fundraising(text):
            return None

        chains, tokenless = fundraising_rules.tag_chains(text)
        return FundraisingArticle(
            **article.model_dump(),
            chains=chains,
            tokenless=tokenless,
            funding_stage=fundraising_rules.detect_funding_stage(text),
            funding_amount=fundraising_rules.extract_funding_amount(text),
            investors=fundraising_rules.find_investors(text),
        )


# Global service instance
_fundraising_service = None

def get_fundraising_service() -> FundraisingService:
    """Get or create the global fundraising service"""
    global _fundraising_service
    if _fundraising_service is None:
        _fundraising_service = FundraisingService()
    return _fundraising_service
