import fnmatch
import time
from typing import Callable

from shared.clients.cache.CacheClientInterface import CacheClientInterface
from shared.helper.HelperConfig import HelperConfig


class CacheClientMemory(CacheClientInterface):
    """In-process cache store. Entries are (value, expires_at) with a monotonic deadline.

    Expired entries are dropped lazily on access and when patterns are scanned.
    """

    def __init__(self, helper_config: HelperConfig, clock: Callable[[], float] = time.monotonic):
        super().__init__(helper_config=helper_config)
        self._clock = clock
        self._entries: dict[str, tuple[str, float | None]] = {}

    def _get_engine_name(self) -> str:
        return "Memory"

    def _is_expired(self, expires_at: float | None) -> bool:
        return expires_at is not None and self._clock() >= expires_at

    def _live_entry(self, key: str) -> tuple[str, float | None] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._is_expired(entry[1]):
            del self._entries[key]
            return None
        return entry

    async def do_get(self, key: str) -> str | None:
        entry = self._live_entry(key)
        return entry[0] if entry else None

    async def do_set(self, key: str, value: str, ttl: float | None = None) -> None:
        expires_at = self._clock() + ttl if ttl is not None else None
        self._entries[key] = (value, expires_at)

    async def do_delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def do_delete_pattern(self, pattern: str) -> int:
        matching = [key for key in self._entries if fnmatch.fnmatchcase(key, pattern)]
        deleted = 0
        for key in matching:
            _, expires_at = self._entries.pop(key)
            if not self._is_expired(expires_at):
                deleted += 1
        return deleted

    async def do_exists(self, key: str) -> bool:
        return self._live_entry(key) is not None

    async def do_flush(self) -> None:
        self._entries.clear()
