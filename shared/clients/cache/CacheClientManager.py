from shared.clients.ClientManager import ClientManager
from shared.clients.cache.CacheClientInterface import CacheClientInterface


class CacheClientManager(ClientManager):
    """Cache store from CACHE_ENGINE, default "memory"."""

    kind = "cache"
    class_prefix = "CacheClient"
    default_engine = "memory"

    def get_client(self) -> CacheClientInterface:
        return self.client
