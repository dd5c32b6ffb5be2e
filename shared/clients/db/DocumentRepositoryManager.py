from shared.clients.ClientManager import ClientManager
from shared.clients.db.DocumentRepositoryInterface import DocumentRepositoryInterface


class DocumentRepositoryManager(ClientManager):
    """Document repository from DB_ENGINE, default "postgres"."""

    kind = "db"
    class_prefix = "DocumentRepository"
    default_engine = "postgres"

    def get_client(self) -> DocumentRepositoryInterface:
        return self.client
