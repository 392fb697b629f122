"""
Constants and configuration values for cryptowire
"""
import re

# Feed Processing Constants
class ProcessingConstants:
    MAX_ARTICLES_PER_FEED = 50
    MAX_TITLE_LENGTH = 200
    SUMMARY_TARGET_LENGTH = 150
    MIN_SUMMARY_LENGTH = 50
    MAX_NEWS_ARTICLES = 50
    STABLE_ID_LENGTH = 16

# Cache Constants (milliseconds)
class CacheConstants:
    NAMESPACE_PREFIX = "cryptowire-cache-"
    FEED_FRESH_MS = 10 * 60 * 1000
    FEED_STALE_MS = 60 * 60 * 1000
    NEWS_FRESH_MS = 10 * 60 * 1000
    NEWS_STALE_MS = 60 * 60 * 1000
    FUNDRAISING_FRESH_MS = 10 * 60 * 1000
    FUNDRAISING_STALE_MS = 60 * 60 * 1000
    TRENDING_FRESH_MS = 5 * 60 * 1000
    TRENDING_STALE_MS = 30 * 60 * 1000

# Rate Limiting Constants
class RateLimitConstants:
    FEED_CONCURRENCY = 3
    HOST_CONCURRENCY = 1
    HOST_MIN_INTERVAL_MS = 1000

    # CoinGecko free tier allows roughly 10 calls/minute
    PRIORITY_HIGH_DELAY_MS = 1000
    PRIORITY_NORMAL_DELAY_MS = 6000
    PRIORITY_LOW_DELAY_MS = 8000
    PROVIDER_REQUEST_SPACING_MS = 600
    RATE_LIMIT_COOLDOWN_MS = 20 * 1000
    DEDUPLICATION_WINDOW_MS = 2000

    BACKOFF_CAP_MS = 10000
    BACKOFF_FLOOR_MS = 100
    BACKOFF_JITTER = 0.2

# Adaptive Batching Constants
class BatchConstants:
    DEFAULT_BATCH_SIZE = 50
    MIN_BATCH_SIZE = 10
    MAX_BATCH_SIZE = 100
    STEP = 5
    GROW_THRESHOLD = 0.9
    SHRINK_THRESHOLD = 0.7
    RATE_LIMIT_SHRINK_FACTOR = 0.8
    OUTCOME_WINDOW = 20

# HTTP Request Constants
class HTTPConstants:
    FEED_TIMEOUT_SECONDS = 10
    API_TIMEOUT_SECONDS = 10
    SEARCH_TIMEOUT_SECONDS = 5
    MAX_API_ATTEMPTS = 2

    USER_AGENT = "CryptoWire-RSS/1.0 (+https://github.com/cryptowire/cryptowire)"
    FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml, text/xml, */*"
    JSON_ACCEPT = "application/json"

    COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"

# URL Constants
class URLConstants:
    TRACKING_PARAMS = {
        'utm_source', 'utm_medium', 'utm_campaign', 'utm_term', 'utm_content',
        'ref', 'source'
    }

    IMAGE_EXTENSION_PATTERN = re.compile(r'\.(jpg|jpeg|png|gif|webp|svg)$', re.IGNORECASE)

# Content Processing Constants
class ContentConstants:
    HTML_TAG_PATTERN = re.compile(r'<[^>]*>')
    EXCESSIVE_WHITESPACE_PATTERN = re.compile(r'\s+')
    IMG_SRC_PATTERN = re.compile(r'<img[^>]+src=["\']([^"\']+)["\'][^>]*>', re.IGNORECASE)
    ELLIPSIS = '...'

# Logging Constants
class LoggingConstants:
    DEFAULT_LEVEL = "INFO"
    DEFAULT_FILE = "logs/cryptowire.log"
    ROTATION = "10 MB"
    RETENTION = "30 days"
    # Records logged outside a feed fetch carry this trace id
    NO_TRACE = "-"
    CONSOLE_FORMAT = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
        "<magenta>{extra[trace_id]: <8}</magenta> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    )
    FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[trace_id]: <8} | {name}:{function}:{line} - {message}"

# Export commonly used constants
__all__ = [
    'ProcessingConstants',
    'CacheConstants',
    'RateLimitConstants',
    'BatchConstants',
    'HTTPConstants',
    'URLConstants',
    'ContentConstants',
    'LoggingConstants',
]
