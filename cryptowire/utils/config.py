"""
Configuration management for cryptowire using environment variables
"""
import os
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional
from pydantic import BaseModel, Field, field_validator
from dotenv import load_dotenv

from cryptowire.utils.constants import (
    BatchConstants,
    CacheConstants,
    HTTPConstants,
    LoggingConstants,
    ProcessingConstants,
    RateLimitConstants,
)


# Load environment variables from .env file
load_dotenv()


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


class FeedSource(BaseModel):
    name: str
    url: str


class FeedEngineConfig(BaseModel):
    request_timeout_ms: int = Field(default_factory=lambda: _env_int("FEED_REQUEST_TIMEOUT_MS", HTTPConstants.FEED_TIMEOUT_SECONDS * 1000))
    concurrency: int = Field(default_factory=lambda: _env_int("FEED_CONCURRENCY", RateLimitConstants.FEED_CONCURRENCY))
    host_min_interval_ms: int = Field(default_factory=lambda: _env_int("FEED_HOST_INTERVAL_MS", RateLimitConstants.HOST_MIN_INTERVAL_MS))
    cache_fresh_ms: int = Field(default_factory=lambda: _env_int("FEED_CACHE_FRESH_MS", CacheConstants.FEED_FRESH_MS))
    cache_stale_ms: int = Field(default_factory=lambda: _env_int("FEED_CACHE_STALE_MS", CacheConstants.FEED_STALE_MS))
    summary_target_length: int = Field(default_factory=lambda: _env_int("SUMMARY_TARGET_LENGTH", ProcessingConstants.SUMMARY_TARGET_LENGTH))
    user_agent: str = Field(default_factory=lambda: os.getenv("FEED_USER_AGENT", HTTPConstants.USER_AGENT))

    @field_validator('request_timeout_ms', 'concurrency', 'cache_fresh_ms', 'cache_stale_ms', 'summary_target_length')
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("must be positive")
        return v


class ApiClientConfig(BaseModel):
    base_url: str = Field(default_factory=lambda: os.getenv("COINGECKO_BASE_URL", HTTPConstants.COINGECKO_BASE_URL))
    api_key: Optional[str] = Field(default_factory=lambda: os.getenv("COINGECKO_API_KEY"))
    max_attempts: int = Field(default_factory=lambda: _env_int("API_MAX_ATTEMPTS", HTTPConstants.MAX_API_ATTEMPTS))
    request_spacing_ms: int = Field(default_factory=lambda: _env_int("API_REQUEST_SPACING_MS", RateLimitConstants.PROVIDER_REQUEST_SPACING_MS))
    high_priority_delay_ms: int = Field(default_factory=lambda: _env_int("API_HIGH_PRIORITY_DELAY_MS", RateLimitConstants.PRIORITY_HIGH_DELAY_MS))
    normal_priority_delay_ms: int = Field(default_factory=lambda: _env_int("API_NORMAL_PRIORITY_DELAY_MS", RateLimitConstants.PRIORITY_NORMAL_DELAY_MS))
    low_priority_delay_ms: int = Field(default_factory=lambda: _env_int("API_LOW_PRIORITY_DELAY_MS", RateLimitConstants.PRIORITY_LOW_DELAY_MS))
    rate_limit_cooldown_ms: int = Field(default_factory=lambda: _env_int("API_RATE_LIMIT_COOLDOWN_MS", RateLimitConstants.RATE_LIMIT_COOLDOWN_MS))
    dedup_window_ms: int = Field(default_factory=lambda: _env_int("API_DEDUP_WINDOW_MS", RateLimitConstants.DEDUPLICATION_WINDOW_MS))
    adaptive_batching: bool = Field(default_factory=lambda: os.getenv("API_ADAPTIVE_BATCHING", "true").lower() == "true")
    batch_size: int = Field(default_factory=lambda: _env_int("API_BATCH_SIZE", BatchConstants.DEFAULT_BATCH_SIZE))
    min_batch_size: int = BatchConstants.MIN_BATCH_SIZE
    max_batch_size: int = BatchConstants.MAX_BATCH_SIZE
    timeout_seconds: int = Field(default_factory=lambda: _env_int("API_TIMEOUT_SECONDS", HTTPConstants.API_TIMEOUT_SECONDS))

    @field_validator('max_attempts')
    @classmethod
    def validate_attempts(cls, v):
        if v < 1:
            raise ValueError("max_attempts must be at least 1")
        return v


class CacheConfig(BaseModel):
    backend: str = Field(default_factory=lambda: os.getenv("CACHE_BACKEND", "memory"))  # memory, file
    directory: str = Field(default_factory=lambda: os.getenv("CACHE_DIRECTORY", ".cache/cryptowire"))
    namespace_prefix: str = Field(default_factory=lambda: os.getenv("CACHE_NAMESPACE", CacheConstants.NAMESPACE_PREFIX))


class ServiceConfig(BaseModel):
    news_fresh_ms: int = CacheConstants.NEWS_FRESH_MS
    news_stale_ms: int = CacheConstants.NEWS_STALE_MS
    fundraising_fresh_ms: int = CacheConstants.FUNDRAISING_FRESH_MS
    fundraising_stale_ms: int = CacheConstants.FUNDRAISING_STALE_MS
    trending_fresh_ms: int = CacheConstants.TRENDING_FRESH_MS
    trending_stale_ms: int = CacheConstants.TRENDING_STALE_MS
    max_news_articles: int = Field(default_factory=lambda: _env_int("MAX_NEWS_ARTICLES", ProcessingConstants.MAX_NEWS_ARTICLES))


class LoggingConfig(BaseModel):
    level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", LoggingConstants.DEFAULT_LEVEL))
    file: str = Field(default_factory=lambda: os.getenv("LOG_FILE", LoggingConstants.DEFAULT_FILE))


class Config(BaseModel):
    sources: Dict[str, List[FeedSource]] = Field(default_factory=dict)
    feeds: FeedEngineConfig = Field(default_factory=FeedEngineConfig)
    api: ApiClientConfig = Field(default_factory=ApiClientConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    services: ServiceConfig = Field(default_factory=ServiceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def __init__(self, config_path: Optional[str] = None, **data):
        super().__init__(**data)

        if not self.sources:
            self._setup_default_sources()

        # Optionally load source lists from YAML if provided
        if config_path and Path(config_path).exists():
            config_data = self._load_config(config_path) or {}
            for name, entries in (config_data.get('sources') or {}).items():
                self.sources[name] = [FeedSource(**entry) for entry in entries]

    def _load_config(self, config_path: str) -> Dict[str, Any]:
        """Load configuration from YAML file"""
        with open(config_path, 'r') as f:
            return yaml.safe_load(f)

    def _setup_default_sources(self):
        """Setup default feed sources"""
        self.sources = {
            'news': [
                FeedSource(name='CoinDesk', url='https://www.coindesk.com/arc/outboundfeeds/rss/'),
                FeedSource(name='Bitcoin.com', url='https://news.bitcoin.com/feed/'),
                FeedSource(name='CryptoSlate', url='https://cryptoslate.com/feed/'),
                FeedSource(name='Decrypt', url='https://decrypt.co/feed'),
            ],
            'fundraising': [
                FeedSource(name='CoinDesk', url='https://www.coindesk.com/arc/outboundfeeds/rss/'),
                FeedSource(name='Decrypt', url='https://decrypt.co/feed'),
                FeedSource(name='CryptoSlate', url='https://cryptoslate.com/feed/'),
                FeedSource(name='Bitcoin.com', url='https://news.bitcoin.com/feed/'),
                FeedSource(name='The Defiant', url='https://thedefiant.io/feed'),
                FeedSource(name='Airdrops.io', url='https://airdrops.io/feed/'),
                FeedSource(name='a16z crypto (X)', url='https://nitter.net/a16zcrypto/rss'),
                FeedSource(name='Paradigm (X)', url='https://nitter.net/paradigm/rss'),
                FeedSource(name='Binance Labs (X)', url='https://nitter.net/BinanceLabs/rss'),
                FeedSource(name='Electric Capital (X)', url='https://nitter.net/electriccapital/rss'),
                FeedSource(name='CoinFund (X)', url='https://nitter.net/coinfund_io/rss'),
                FeedSource(name='Multicoin (X)', url='https://nitter.net/multicoincap/rss'),
            ],
        }

    def feed_urls(self, name: str) -> List[str]:
        """URLs of the named source list"""
        return [source.url for source in self.sources.get(name, [])]


# Global configuration instance
_config = None

def get_config() -> Config:
    """Get or create the global configuration"""
    global _config
    if _config is None:
        _config = Config(os.getenv("CRYPTOWIRE_CONFIG"))
    return _config
