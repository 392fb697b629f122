"""
Async HTTP client used by the feed engine and the API scheduler
"""
import asyncio
from dataclasses import dataclass, field
import json
from typing import Any, Dict, Mapping, Optional

import aiohttp

from cryptowire.utils.constants import HTTPConstants
from cryptowire.utils.exceptions import TransportError
from cryptowire.utils.logger import logger


@dataclass
class HTTPResponse:
    """Fully-read response; header names are lowercased"""
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    text: str = ""
    url: str = ""
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def content(self) -> bytes:
        """Raw body, falling back to the UTF-8 encoded text"""
        return self.body or self.text.encode("utf-8")

    def json(self) -> Any:
        return json.loads(self.text)


def _encode_params(params: Optional[Mapping[str, Any]]) -> Optional[Dict[str, str]]:
    if params is None:
        return None
    encoded = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            encoded[key] = "true" if value else "false"
        else:
            encoded[key] = str(value)
    return encoded


class HTTPClient:
    """Thin wrapper over an aiohttp session that never raises aiohttp errors"""

    def __init__(self, user_agent: str = HTTPConstants.USER_AGENT):
        self.user_agent = user_agent
        self._session: Optional[aiohttp.ClientSession] = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers={'User-Agent': self.user_agent})
        return self._session

    async def get(
        self,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout_seconds: float = HTTPConstants.FEED_TIMEOUT_SECONDS,
    ) -> HTTPResponse:
        """
        Make an HTTP GET request and read the whole body

        Args:
            url: URL to request
            params: Query parameters (booleans sent as true/false)
            headers: Extra request headers
            timeout_seconds: Total timeout for connect + read

        Returns:
            HTTPResponse for any status code

        Raises:
            TransportError: On timeout or network failure
        """
        session = self._get_session()
        timeout = aiohttp.ClientTimeout(total=timeout_seconds)

        try:
            logger.debug(f"GET {url} params={params}")
            async with session.get(url, params=_encode_params(params), headers=headers, timeout=timeout) as response:
                body = await response.read()
                text = await response.text(errors='replace')
                return HTTPResponse(
                    status=response.status,
                    headers={name.lower(): value for name, value in response.headers.items()},
                    text=text,
                    url=str(response.url),
                    body=body,
                )
        except asyncio.TimeoutError:
            raise TransportError(f"Request timeout after {timeout_seconds}s for {url}")
        except aiohttp.ClientError as e:
            raise TransportError(f"Network error for {url}: {e}")

    async def close(self):
        """Close the HTTP session"""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


# Global HTTP client instance
_http_client = None

def get_http_client() -> HTTPClient:
    """Get or create the global HTTP client"""
    global _http_client
    if _http_client is None:
        _http_client = HTTPClient()
    return _http_client

async def close_http_client():
    """Close the global HTTP client"""
    global _http_client
    if _http_client is not None:
        await _http_client.close()
        _http_client = None
