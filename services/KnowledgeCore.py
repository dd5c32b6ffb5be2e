"""Facade wiring the ingestion pipeline and search orchestration together.

All collaborators are passed in explicitly; from_config() builds them from
the environment through the client managers. boot() must be awaited before
use and close() releases every client.
"""

from services.cache.CacheService import CacheService
from services.embedding.EmbeddingService import EmbeddingService
from services.ingestion.DocumentIndexer import DocumentIndexer
from services.ingestion.DocumentProcessingQueue import DocumentProcessingQueue
from services.ingestion.TextChunker import TextChunker
from services.ingestion.TextExtractionService import TextExtractionService
from services.search.SearchService import SearchService
from shared.clients.cache.CacheClientInterface import CacheClientInterface
from shared.clients.cache.CacheClientManager import CacheClientManager
from shared.clients.db.DocumentRepositoryInterface import DocumentRepositoryInterface
from shared.clients.db.DocumentRepositoryManager import DocumentRepositoryManager
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.clients.rag.models.SearchHit import CollectionStats
from shared.clients.storage.StorageClientInterface import StorageClientInterface
from shared.clients.storage.StorageClientManager import StorageClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import DocumentStatus
from shared.models.errors import VectorIndexError
from shared.models.queue import QueueStatus
from shared.models.search import SearchMode, SearchOptions, SearchResponse

PENDING_STATUSES = [DocumentStatus.UPLOADING, DocumentStatus.PROCESSING]


class KnowledgeCore:
    def __init__(
        self,
        helper_config: HelperConfig,
        repository: DocumentRepositoryInterface,
        storage_client: StorageClientInterface,
        rag_client: RAGClientInterface,
        cache_client: CacheClientInterface,
        embed_client: EmbedClientInterface | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._repository = repository
        self._storage_client = storage_client
        self._rag_client = rag_client
        self._cache_client = cache_client
        self._embed_client = embed_client

        # wire up services
        self.cache_service = CacheService(helper_config=helper_config, cache_client=cache_client)
        self.embedding_service = EmbeddingService(helper_config=helper_config, embed_client=embed_client)
        self.indexer = DocumentIndexer(
            helper_config=helper_config, rag_client=rag_client, embedding_service=self.embedding_service
        )
        self.queue = DocumentProcessingQueue(
            helper_config=helper_config,
            repository=repository,
            extraction_service=TextExtractionService(helper_config=helper_config, storage_client=storage_client),
            chunker=TextChunker(helper_config=helper_config),
            indexer=self.indexer,
            cache_service=self.cache_service,
        )
        self.search_service = SearchService(
            helper_config=helper_config,
            repository=repository,
            indexer=self.indexer,
            cache_service=self.cache_service,
        )

    @classmethod
    def from_config(cls, helper_config: HelperConfig) -> "KnowledgeCore":
        """Build every collaborator from the environment.

        Raises:
            ValueError: If an engine is unsupported or required configuration is missing.
        """
        return cls(
            helper_config=helper_config,
            repository=DocumentRepositoryManager(helper_config=helper_config).get_client(),
            storage_client=StorageClientManager(helper_config=helper_config).get_client(),
            rag_client=RAGClientManager(helper_config=helper_config).get_client(),
            cache_client=CacheClientManager(helper_config=helper_config).get_client(),
            embed_client=EmbedClientManager(helper_config=helper_config).get_client(),
        )

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def boot(self) -> None:
        """Boot all clients, ensure the vector collection and start the workers.

        An unreachable vector index or embedding endpoint only degrades the
        core: documents are still extracted and full-text search keeps working.
        """
        await self._repository.boot()
        await self._storage_client.boot()
        await self._cache_client.boot()

        # embed client is optional, the breaker routes around an unavailable endpoint
        if self._embed_client is not None:
            await self._embed_client.boot()

        await self._rag_client.boot()
        try:
            await self.indexer.ensure_collection()
        except VectorIndexError as e:
            self.logging.warning("Vector index unavailable at boot, semantic search is degraded: %s", e)

        await self.queue.start()
        self.logging.info("Knowledge core ready.")

    async def close(self) -> None:
        await self.queue.stop()
        if self._embed_client is not None:
            await self._embed_client.close()
        await self._rag_client.close()
        await self._cache_client.close()
        await self._storage_client.close()
        await self._repository.close()
        self.logging.info("Knowledge core shut down.")

    ##########################################
    ############### INGESTION ################
    ##########################################

    def enqueue_document(self, document_id: str, owner_id: str) -> None:
        self.queue.enqueue(document_id, owner_id)

    def queue_status(self) -> QueueStatus:
        return self.queue.status()

    async def requeue_pending_documents(self) -> int:
        """Enqueue every document still in "uploading" or "processing", e.g. after a restart.

        Returns:
            int: The number of documents enqueued.
        """
        documents = await self._repository.do_list_documents_by_status(PENDING_STATUSES)
        for document in documents:
            self.enqueue_document(document.id, document.owner_id)
        return len(documents)

    async def delete_document_embeddings(self, document_id: str) -> bool:
        """Remove a document's vectors and drop cached searches. Returns False if the vector index failed."""
        try:
            await self.indexer.delete_document_embeddings(document_id)
        except VectorIndexError as e:
            self.logging.error("Could not delete embeddings of document %s: %s", document_id, e)
            return False
        await self.cache_service.delete_pattern("search:*")
        return True

    async def index_stats(self) -> CollectionStats:
        return await self.indexer.get_collection_stats()

    ##########################################
    ################ SEARCH ##################
    ##########################################

    async def full_text_search(self, query: str, options: SearchOptions | None = None) -> SearchResponse:
        options = options or SearchOptions()
        response = await self.search_service.do_full_text_search(query, options)
        await self._log_search(query, SearchMode.FULLTEXT, options, response)
        return response

    async def semantic_search(self, query: str, options: SearchOptions | None = None) -> SearchResponse:
        options = options or SearchOptions()
        response = await self.search_service.do_semantic_search(query, options)
        await self._log_search(query, SearchMode.SEMANTIC, options, response)
        return response

    async def hybrid_search(self, query: str, options: SearchOptions | None = None) -> SearchResponse:
        options = options or SearchOptions()
        response = await self.search_service.do_hybrid_search(query, options)
        await self._log_search(query, SearchMode.HYBRID, options, response)
        return response

    async def search_suggestions(self, prefix: str, limit: int = 5) -> list[str]:
        return await self.search_service.do_search_suggestions(prefix, limit)

    async def _log_search(self, query: str, mode: SearchMode, options: SearchOptions, response: SearchResponse) -> None:
        # history rows belong to a user, anonymous searches are not recorded
        if options.owner_id is None or not query.strip():
            return
        await self.search_service.do_log_search(options.owner_id, query.strip(), mode, response.total)
