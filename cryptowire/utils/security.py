"""
URL validation and canonicalization utilities
"""
from typing import Optional
from urllib.parse import urlparse, urlunparse, parse_qsl, urlencode

from cryptowire.utils.constants import URLConstants
from cryptowire.utils.logger import logger


class URLValidator:
    """Validates and canonicalizes URLs"""

    @staticmethod
    def is_valid_url(url: str) -> bool:
        """
        Check that a URL is an absolute http(s) URL with a host

        Args:
            url: URL to validate

        Returns:
            True if URL is valid, False otherwise
        """
        if not url or not isinstance(url, str):
            return False

        try:
            parsed = urlparse(url.strip())
        except ValueError:
            return False

        return parsed.scheme in ('http', 'https') and bool(parsed.netloc)

    @staticmethod
    def hostname(url: str) -> str:
        """Lowercased hostname of a URL, or empty string"""
        try:
            return (urlparse(url).hostname or '').lower()
        except ValueError:
            return ''

    @staticmethod
    def canonicalize_url(url: str) -> str:
        """
        Strip tracking query parameters from a URL

        Args:
            url: URL to canonicalize

        Returns:
            Canonical URL, or the input unchanged if it cannot be parsed
        """
        if not url:
            return ''

        url = url.strip()
        if not URLValidator.is_valid_url(url):
            return url

        try:
            parsed = urlparse(url)
            query_params = [
                (key, value)
                for key, value in parse_qsl(parsed.query, keep_blank_values=True)
                if key not in URLConstants.TRACKING_PARAMS
            ]
            return urlunparse(parsed._replace(query=urlencode(query_params)))
        except ValueError as e:
            logger.debug(f"URL canonicalization failed for '{url}': {e}")
            return url

    @staticmethod
    def is_valid_image_url(url: Optional[str]) -> bool:
        """
        Check whether a URL plausibly points at an image

        Accepts image file extensions, '/image' path segments and an
        'image' query parameter.
        """
        if not URLValidator.is_valid_url(url):
            return False

        try:
            parsed = urlparse(url.strip())
        except ValueError:
            return False

        query_keys = {key for key, _ in parse_qsl(parsed.query, keep_blank_values=True)}
        return bool(
            URLConstants.IMAGE_EXTENSION_PATTERN.search(parsed.path)
            or '/image' in parsed.path
            or 'image' in query_keys
        )
