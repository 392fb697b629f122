"""
Error taxonomy for cryptowire.

Callers branch on RateLimitError (retry after a known delay) versus the other
ingestion errors (retry with backoff, or treat as "no data").
"""

from typing import Optional


class IngestionError(Exception):
    """Base exception for ingestion errors."""

    pass


class RateLimitError(IngestionError):
    """Raised when a provider cooldown is active or a 429 was received."""

    def __init__(self, message: str, retry_after_seconds: int = 0):
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


class TransportError(IngestionError):
    """Raised on timeouts, network failures and unexpected HTTP statuses."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(IngestionError):
    """Raised when feed markup cannot be parsed."""

    pass


class ValidationError(IngestionError):
    """Raised when a provider response does not match the expected schema."""

    pass
