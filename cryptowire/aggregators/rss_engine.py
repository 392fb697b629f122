"""
RSS feed ingestion engine.

Fetches many feeds concurrently under a global concurrency cap and per-host
throttling, serves cached feeds while fresh, revalidates with conditional
GETs, and falls back to stale cache when a live fetch fails.
"""
import asyncio
import hashlib
import secrets
from typing import Callable, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from cryptowire.aggregators.base import BaseAggregator
from cryptowire.aggregators.feed_parser import FeedParser
from cryptowire.processors.duplicate_detector import DuplicateDetector
from cryptowire.processors.normalizer import FeedNormalizer
from cryptowire.storage.key_value_cache import KeyValueCache, get_cache
from cryptowire.utils.clock import now_ms
from cryptowire.utils.config import FeedEngineConfig
from cryptowire.utils.constants import HTTPConstants
from cryptowire.utils.exceptions import IngestionError, TransportError
from cryptowire.utils.http_client import HTTPClient, HTTPResponse, get_http_client
from cryptowire.utils.logger import logger, traced
from cryptowire.utils.models import (
    CacheEntry,
    FeedMeta,
    FeedResult,
    NormalizedArticle,
    ParsedFeed,
    ParsedFeedItem,
)
from cryptowire.utils.rate_limiter import HostThrottle
from cryptowire.utils.security import URLValidator


def feed_cache_key(url: str) -> str:
    return f"rss-feed-{hashlib.md5(url.encode('utf-8')).hexdigest()}"


class RSSEngine(BaseAggregator):
    """Concurrent, cache-aware RSS/Atom ingestion"""

    def __init__(
        self,
        config: Optional[FeedEngineConfig] = None,
        http_client: Optional[HTTPClient] = None,
        cache: Optional[KeyValueCache] = None,
        throttle: Optional[HostThrottle] = None,
        clock: Callable[[], int] = now_ms,
    ):
        super().__init__(config or FeedEngineConfig())
        self.http_client = http_client or get_http_client()
        self.cache = cache if cache is not None else get_cache()
        self.throttle = throttle or HostThrottle(min_interval_ms=self.config.host_min_interval_ms)
        self._clock = clock
        self._semaphore = asyncio.Semaphore(self.config.concurrency)

        self.parser = FeedParser()
        self.normalizer = FeedNormalizer(self.config.summary_target_length, clock=clock)
        self.duplicate_detector = DuplicateDetector()

    async def fetch_all(self, urls: List[str], force: bool = False) -> List[NormalizedArticle]:
        """
        Fetch all feeds, tolerating individual failures.

        Args:
            urls: Feed URLs
            force: Bypass the fresh-cache check

        Returns:
            Deduplicated articles from every feed that produced items, newest first
        """
        trace_id = secrets.token_hex(4)
        log = traced(trace_id)
        log.info(f"Fetching {len(urls)} feeds")

        tasks = [self._fetch_bounded(url, force, trace_id) for url in urls]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        articles: List[NormalizedArticle] = []
        for url, result in zip(urls, results):
            if isinstance(result, BaseException):
                log.warning(f"Failed: {url} ({result})")
            elif not result.items:
                reason = result.error or "no items"
                log.warning(f"Failed: {url} ({reason})")
            else:
                articles.extend(result.items)
                log.debug(f"Collected {len(result.items)} articles from {url}")

        unique_articles = self.dedupe(articles)
        log.info(f"Fetched {len(unique_articles)} unique articles from {len(urls)} feeds")
        return unique_articles

    async def _fetch_bounded(self, url: str, force: bool, trace_id: str) -> FeedResult:
        async with self._semaphore:
            return await self.fetch_one(url, force=force, trace_id=trace_id)

    async def fetch_one(self, url: str, force: bool = False, trace_id: Optional[str] = None) -> FeedResult:
        """
        Fetch one feed: fresh cache, then conditional GET, then stale cache.

        Args:
            url: Feed URL
            force: Skip the fresh-cache check
            trace_id: Correlation id for log lines

        Returns:
            FeedResult; empty items with ``error`` set when nothing is available
        """
        trace_id = trace_id or secrets.token_hex(4)
        log = traced(trace_id)
        cache_key = feed_cache_key(url)
        cached = self.cache.get(cache_key, allow_expired=True)

        if cached and not force and self.cache.age_ms(cached) <= self.config.cache_fresh_ms:
            log.debug(f"Cache hit for {url}")
            return self._from_cache(cached)

        try:
            response = await self._conditional_get(url, cached)

            if response.status == 304:
                if cached is None:
                    raise TransportError(f"304 without cached copy for {url}", status_code=304)
                log.debug(f"Not modified: {url}")
                self.cache.set(
                    cache_key,
                    cached.data,
                    self.config.cache_stale_ms,
                    etag=response.headers.get('etag') or cached.etag,
                    last_modified=response.headers.get('last-modified') or cached.last_modified,
                )
                return self._from_cache(cached)

            if not response.ok:
                raise TransportError(f"HTTP {response.status} for {url}", status_code=response.status)

            parsed = self.parse(response.content)
            meta = parsed.meta.model_copy(update={
                'etag': response.headers.get('etag'),
                'last_modified': response.headers.get('last-modified'),
            })
            items = [self.normalize(item, meta, url) for item in parsed.items]

            self.cache.set(
                cache_key,
                {
                    'meta': meta.model_dump(),
                    'items': [item.model_dump() for item in items],
                },
                self.config.cache_stale_ms,
                etag=meta.etag,
                last_modified=meta.last_modified,
            )
            log.debug(f"Parsed {len(items)} items from {url}")
            return FeedResult(meta=meta, items=items)

        except IngestionError as e:
            log.debug(f"Error fetching {url}: {e}")
            if cached and self.cache.age_ms(cached) <= self.config.cache_stale_ms:
                log.info(f"Serving stale cache for {url}")
                return self._from_cache(cached)
            return FeedResult(error=str(e))

    async def _conditional_get(self, url: str, cached: Optional[CacheEntry]) -> HTTPResponse:
        headers: Dict[str, str] = {
            'Accept': HTTPConstants.FEED_ACCEPT,
            'User-Agent': self.config.user_agent,
        }
        if cached is not None:
            if cached.etag:
                headers['If-None-Match'] = cached.etag
            if cached.last_modified:
                headers['If-Modified-Since'] = cached.last_modified

        timeout_seconds = self.config.request_timeout_ms / 1000.0
        async with self.throttle.slot(URLValidator.hostname(url)):
            try:
                return await asyncio.wait_for(
                    self.http_client.get(url, headers=headers, timeout_seconds=timeout_seconds),
                    timeout=timeout_seconds,
                )
            except asyncio.TimeoutError:
                raise TransportError(f"Request timeout after {timeout_seconds}s for {url}")

    def _from_cache(self, entry: CacheEntry) -> FeedResult:
        try:
            meta = FeedMeta.model_validate(entry.data.get('meta') or {})
            items = [
                NormalizedArticle.model_validate({**raw, 'from_cache': True})
                for raw in entry.data.get('items', [])
            ]
        except (AttributeError, PydanticValidationError) as e:
            logger.error(f"Unreadable cached feed: {e}")
            return FeedResult(error="unreadable cache entry")
        return FeedResult(meta=meta, items=items)

    def parse(self, content: Union[bytes, str]) -> ParsedFeed:
        return self.parser.parse(content)

    def normalize(self, item: ParsedFeedItem, feed_meta: FeedMeta, feed_url: str) -> NormalizedArticle:
        return self.normalizer.normalize(item, feed_meta, feed_url)

    def ensure_summary(self, item: ParsedFeedItem, title: str, source: str) -> str:
        return self.normalizer.ensure_summary(item, title, source)

    def dedupe(self, articles: List[NormalizedArticle]) -> List[NormalizedArticle]:
        return self.duplicate_detector.deduplicate(articles)


# Global engine instance
_rss_engine = None

def get_rss_engine() -> RSSEngine:
    """Get or create the global RSS engine"""
    global _rss_engine
    if _rss_engine is None:
        from cryptowire.utils.config import get_config

        _rss_engine = RSSEngine(get_config().feeds)
    return _rss_engine
