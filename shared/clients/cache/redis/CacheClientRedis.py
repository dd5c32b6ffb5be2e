from typing import Any, Awaitable, Callable, TypeVar

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.clients.cache.CacheClientInterface import CacheClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.errors import CacheUnavailable

T = TypeVar("T")


class CacheClientRedis(CacheClientInterface):
    """Cache store on Redis. Expiry is delegated to Redis (PX), patterns are resolved with SCAN.

    Connection and command errors surface as CacheUnavailable so the cache
    layer can degrade to misses.
    """

    def __init__(self, helper_config: HelperConfig, client: redis.Redis | None = None):
        super().__init__(helper_config=helper_config)
        self._url = self.get_config_val("URL", default="redis://localhost:6379", val_type="string")
        self._scan_count = int(self.get_config_val("SCAN_COUNT", default=100, val_type="number"))
        self._client = client

    def _get_engine_name(self) -> str:
        return "Redis"

    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="URL", val_type="string", default="redis://localhost:6379"),
            EnvConfig(env_key="SCAN_COUNT", val_type="number", default=100),
        ]

    ##########################################
    ############## LIFECYCLE #################
    ##########################################

    async def boot(self) -> None:
        if self._client is None:
            self._client = redis.from_url(self._url, decode_responses=True, health_check_interval=30)
        try:
            await self._client.ping()
            self.logging.info("Redis cache connected at %s", self._url)
        except (RedisError, OSError) as e:
            # commands raise CacheUnavailable until Redis is reachable
            self.logging.warning("Redis cache not reachable at %s: %s", self._url, e)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _run(self, operation: str, command: Callable[[redis.Redis], Awaitable[T]]) -> T:
        if self._client is None:
            raise CacheUnavailable("Redis client not initialised. Call boot() before using the cache.")
        try:
            return await command(self._client)
        except (RedisError, OSError) as e:
            raise CacheUnavailable(f"Redis {operation} failed: {e}") from e

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_get(self, key: str) -> str | None:
        return await self._run("GET", lambda client: client.get(key))

    async def do_set(self, key: str, value: str, ttl: float | None = None) -> None:
        if ttl is not None and ttl <= 0:
            await self.do_delete(key)
            return
        expiry: dict[str, Any] = {"px": int(ttl * 1000)} if ttl is not None else {}
        await self._run("SET", lambda client: client.set(key, value, **expiry))

    async def do_delete(self, key: str) -> bool:
        return bool(await self._run("DEL", lambda client: client.delete(key)))

    async def do_delete_pattern(self, pattern: str) -> int:
        async def scan_and_delete(client: redis.Redis) -> int:
            deleted = 0
            batch: list[str] = []
            async for key in client.scan_iter(match=pattern, count=self._scan_count):
                batch.append(key)
                if len(batch) >= self._scan_count:
                    deleted += await client.delete(*batch)
                    batch = []
            if batch:
                deleted += await client.delete(*batch)
            return deleted

        return await self._run("SCAN/DEL", scan_and_delete)

    async def do_exists(self, key: str) -> bool:
        return bool(await self._run("EXISTS", lambda client: client.exists(key)))

    async def do_flush(self) -> None:
        await self._run("FLUSHDB", lambda client: client.flushdb())
