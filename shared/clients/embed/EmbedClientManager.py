from shared.clients.ClientManager import ClientManager
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface


class EmbedClientManager(ClientManager):
    """Remote embedding client from EMBED_ENGINE.

    The remote endpoint is optional: without EMBED_ENGINE the embedding
    service runs on its lexical fallback only.
    """

    kind = "embed"
    class_prefix = "EmbedClient"

    def _without_engine(self) -> None:
        self.logging.warning("No EMBED_ENGINE configured, embeddings are generated by the lexical fallback only.")
        return None

    def get_client(self) -> EmbedClientInterface | None:
        return self.client
