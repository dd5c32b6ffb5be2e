from shared.clients.ClientManager import ClientManager
from shared.clients.storage.StorageClientInterface import StorageClientInterface


class StorageClientManager(ClientManager):
    """Object storage client from STORAGE_ENGINE, default "local"."""

    kind = "storage"
    class_prefix = "StorageClient"
    default_engine = "local"

    def get_client(self) -> StorageClientInterface:
        return self.client
