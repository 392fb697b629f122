"""
CoinGecko market-data calls routed through the RequestScheduler
"""
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from cryptowire.clients.request_scheduler import RequestScheduler
from cryptowire.utils.config import ApiClientConfig, get_config
from cryptowire.utils.constants import HTTPConstants
from cryptowire.utils.exceptions import ValidationError
from cryptowire.utils.logger import logger
from cryptowire.utils.models import CoinDetails, RequestPriority, TrendingResponse, TrendingToken


_MARKETS_ADAPTER = TypeAdapter(List[TrendingToken])


class CoinGeckoClient:
    """Typed wrappers for the CoinGecko endpoints the services use"""

    def __init__(self, scheduler: Optional[RequestScheduler] = None, config: Optional[ApiClientConfig] = None):
        self.config = config or (scheduler.config if scheduler else get_config().api)
        self.scheduler = scheduler or RequestScheduler(self.config)

    def _url(self, path: str) -> str:
        return f"{self.config.base_url.rstrip('/')}{path}"

    def _with_key(self, params: Dict[str, Any]) -> Dict[str, Any]:
        if self.config.api_key:
            params['x_cg_demo_api_key'] = self.config.api_key
        return params

    async def fetch_coin_markets(
        self,
        ids: List[str],
        vs_currency: str = 'usd',
        priority: RequestPriority = RequestPriority.NORMAL,
    ) -> List[TrendingToken]:
        """Market rows for ``ids``; per_page follows the adaptive batch size"""
        if not ids:
            logger.warning("fetch_coin_markets called without ids, returning empty list")
            return []

        batch_size = self.scheduler.current_batch_size if self.config.adaptive_batching else self.config.batch_size
        params = self._with_key({
            'vs_currency': vs_currency,
            'ids': ','.join(ids),
            'per_page': min(len(ids), batch_size),
            'page': 1,
            'sparkline': False,
            'price_change_percentage': '24h',
        })

        logger.debug(f"{priority.value} priority requesting {len(ids)} coins (batch size: {batch_size})")
        payload = await self.scheduler.request(self._url('/coins/markets'), params, priority)
        try:
            tokens = _MARKETS_ADAPTER.validate_python(payload)
        except PydanticValidationError as e:
            raise ValidationError(f"Unexpected /coins/markets payload: {e}")

        logger.info(f"Retrieved {len(tokens)} market records ({priority.value} priority)")
        return tokens

    async def fetch_simple_price(
        self,
        ids: List[str],
        vs_currencies: str = 'usd,eur,cad',
        priority: RequestPriority = RequestPriority.NORMAL,
    ) -> Dict[str, Dict[str, float]]:
        if not ids:
            logger.warning("fetch_simple_price called without ids, returning empty result")
            return {}

        params = self._with_key({
            'ids': ','.join(ids),
            'vs_currencies': vs_currencies,
            'include_24hr_change': True,
            'precision': 'full',
        })
        payload = await self.scheduler.request(self._url('/simple/price'), params, priority)
        if not isinstance(payload, dict):
            raise ValidationError(f"Unexpected /simple/price payload type: {type(payload).__name__}")
        return payload

    async def search(self, query: str, priority: RequestPriority = RequestPriority.HIGH) -> Dict[str, Any]:
        if not query.strip():
            return {'coins': []}

        payload = await self.scheduler.request(
            self._url('/search'),
            self._with_key({'query': query}),
            priority,
            timeout_seconds=HTTPConstants.SEARCH_TIMEOUT_SECONDS,
        )
        if not isinstance(payload, dict):
            raise ValidationError("Unexpected /search payload")
        return payload

    async def fetch_trending(self, priority: RequestPriority = RequestPriority.HIGH) -> TrendingResponse:
        payload = await self.scheduler.request(self._url('/search/trending'), self._with_key({}), priority)
        try:
            return TrendingResponse.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(f"Unexpected /search/trending payload: {e}")

    async def fetch_coin_details(self, coin_id: str, priority: RequestPriority = RequestPriority.NORMAL) -> CoinDetails:
        params = self._with_key({
            'localization': False,
            'tickers': False,
            'market_data': False,
            'community_data': False,
            'developer_data': False,
            'sparkline': False,
        })
        payload = await self.scheduler.request(self._url(f'/coins/{coin_id}'), params, priority)
        if not isinstance(payload, dict):
            raise ValidationError(f"Unexpected coin details payload for {coin_id}")

        image = payload.get('image') or {}
        try:
            return CoinDetails(
                id=payload['id'],
                symbol=payload['symbol'],
                name=payload['name'],
                categories=[c for c in (payload.get('categories') or []) if c],
                image=image.get('large') or image.get('small') or image.get('thumb'),
                description=(payload.get('description') or {}).get('en'),
                links=payload.get('links') or {},
                market_cap_rank=payload.get('market_cap_rank'),
                asset_platform_id=payload.get('asset_platform_id'),
            )
        except (KeyError, PydanticValidationError) as e:
            raise ValidationError(f"Incomplete coin details for {coin_id}: {e}")


# Global client instance
_client = None

def get_coingecko_client() -> CoinGeckoClient:
    """Get or create the global CoinGecko client"""
    global _client
    if _client is None:
        _client = CoinGeckoClient()
    return _client
