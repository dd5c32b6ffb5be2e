"""JSON cache on top of a CacheClientInterface store with hit/miss accounting.

Store outages never surface: reads degrade to misses, writes and deletes to
no-ops, and each is logged.
"""

import json
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from shared.clients.cache.CacheClientInterface import CacheClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.errors import CacheUnavailable

DEFAULT_TTL = 300


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return value


class CacheService:
    def __init__(self, helper_config: HelperConfig, cache_client: CacheClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._store = cache_client
        self.default_ttl = helper_config.get_number_val("CACHE_DEFAULT_TTL", default=DEFAULT_TTL)
        self._hits = 0
        self._misses = 0

    ##########################################
    ############### READ/WRITE ###############
    ##########################################

    async def get(self, key: str) -> Any | None:
        """Return the decoded value for key, or None on a miss or store failure."""
        try:
            raw = await self._store.do_get(key)
        except CacheUnavailable as e:
            self.logging.warning("Cache get failed for %s: %s", key, e)
            self._misses += 1
            return None

        if raw is None:
            self._misses += 1
            return None
        self._hits += 1
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: float | None = None) -> bool:
        """Store value as JSON. Pydantic models are dumped in JSON mode.

        Args:
            key (str): Cache key.
            value (Any): JSON-serialisable value or pydantic model.
            ttl (float | None): Expiry in seconds; defaults to the configured TTL.

        Returns:
            bool: False if the store failed.
        """
        try:
            await self._store.do_set(key, json.dumps(_to_jsonable(value)), ttl if ttl is not None else self.default_ttl)
            return True
        except CacheUnavailable as e:
            self.logging.warning("Cache set failed for %s: %s", key, e)
            return False

    async def delete(self, key: str) -> bool:
        try:
            return await self._store.do_delete(key)
        except CacheUnavailable as e:
            self.logging.warning("Cache delete failed for %s: %s", key, e)
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching a glob pattern. Returns the number removed, 0 on failure."""
        try:
            deleted = await self._store.do_delete_pattern(pattern)
        except CacheUnavailable as e:
            self.logging.warning("Cache delete_pattern failed for %s: %s", pattern, e)
            return 0
        if deleted:
            self.logging.debug("Invalidated %d cache key(s) matching %s", deleted, pattern)
        return deleted

    async def exists(self, key: str) -> bool:
        try:
            return await self._store.do_exists(key)
        except CacheUnavailable as e:
            self.logging.warning("Cache exists failed for %s: %s", key, e)
            return False

    async def flush(self) -> bool:
        try:
            await self._store.do_flush()
            return True
        except CacheUnavailable as e:
            self.logging.warning("Cache flush failed: %s", e)
            return False

    async def get_or_set(self, key: str, fetcher: Callable[[], Awaitable[Any]], ttl: float | None = None) -> Any:
        """Return the cached value for key, computing and storing it with fetcher on a miss.

        The value is returned in its JSON-decoded form on both paths.
        """
        cached = await self.get(key)
        if cached is not None:
            return cached
        value = _to_jsonable(await fetcher())
        await self.set(key, value, ttl)
        return value

    ##########################################
    ################# STATS ##################
    ##########################################

    def get_stats(self) -> dict:
        """Return hits, misses and the hit rate in percent, rounded to two decimals."""
        total = self._hits + self._misses
        hit_rate = round(self._hits / total * 100, 2) if total else 0.0
        return {"hits": self._hits, "misses": self._misses, "hit_rate": hit_rate}

    def reset_stats(self) -> None:
        self._hits = 0
        self._misses = 0
