"""
Fresh / live / stale cache policy shared by the data services.

A service first serves its cache while the entry is younger than the fresh
TTL, then tries a live fetch, and when that fails or comes back empty serves
any entry still inside the stale window, flagged ``from_cache``.
"""

from typing import Awaitable, Callable, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from cryptowire.storage.key_value_cache import KeyValueCache, get_cache
from cryptowire.utils.clock import now_ms
from cryptowire.utils.exceptions import IngestionError
from cryptowire.utils.logger import logger
from cryptowire.utils.models import CacheEntry, FetchResult

T = TypeVar("T", bound=BaseModel)


class CachedFetchService(Generic[T]):
    """Wraps a live loader with the fresh -> live -> stale fallback chain"""

    model: Type[T]
    # Trending surfaces errors once no stale data remains; feeds degrade to empty
    raise_on_failure: bool = False

    def __init__(
        self,
        fresh_ttl_ms: int,
        stale_ttl_ms: int,
        cache: Optional[KeyValueCache] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.fresh_ttl_ms = fresh_ttl_ms
        self.stale_ttl_ms = stale_ttl_ms
        self.cache = cache if cache is not None else get_cache()
        self._clock = clock

    async def _fetch_with_cache(
        self,
        cache_key: str,
        loader: Callable[[], Awaitable[List[T]]],
        force: bool = False,
    ) -> FetchResult[T]:
        """
        Run the fallback chain for one cache key.

        Args:
            cache_key: Logical cache key
            loader: Coroutine factory performing the live fetch
            force: Skip the fresh-cache check

        Returns:
            FetchResult with ``from_cache`` and ``cache_age`` set for cached data

        Raises:
            IngestionError: Only when ``raise_on_failure`` is set and no stale entry exists
        """
        if not force:
            fresh = self._read_cache(cache_key, self.fresh_ttl_ms)
            if fresh is not None:
                logger.debug(f"Serving fresh cache for '{cache_key}'")
                return fresh

        error: Optional[IngestionError] = None
        try:
            items = await loader()
            if items:
                self.cache.set(
                    cache_key,
                    [item.model_dump() for item in items],
                    self.stale_ttl_ms,
                )
                return FetchResult[self.model](data=items, from_cache=False)
            logger.warning(f"Live fetch for '{cache_key}' returned no data")
        except IngestionError as e:
            logger.error(f"Live fetch for '{cache_key}' failed: {e}")
            error = e

        stale = self._read_cache(cache_key, self.stale_ttl_ms)
        if stale is not None:
            logger.info(f"Serving stale cache for '{cache_key}' (age {stale.cache_age}ms)")
            return stale

        if error is not None and self.raise_on_failure:
            raise error
        return FetchResult[self.model](data=[], from_cache=False)

    def _read_cache(self, cache_key: str, max_age_ms: int) -> Optional[FetchResult[T]]:
        entry: Optional[CacheEntry] = self.cache.get(cache_key, allow_expired=True)
        if entry is None:
            return None

        age = self.cache.age_ms(entry)
        if age > max_age_ms:
            return None

        flag_items = 'from_cache' in self.model.model_fields
        try:
            items = [
                self.model.model_validate({**raw, 'from_cache': True} if flag_items else raw)
                for raw in entry.data
            ]
        except (TypeError, PydanticValidationError) as e:
            logger.error(f"Discarding unreadable cache entry '{cache_key}': {e}")
            self.cache.remove(cache_key)
            return None

        if not items:
            return None
        return FetchResult[self.model](data=items, from_cache=True, cache_age=age)
