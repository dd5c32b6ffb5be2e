"""Bridges chunks and the vector index: embeds chunks, replaces a document's points, runs similarity queries."""

from services.embedding.EmbeddingService import EmbeddingService
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.SearchHit import CollectionStats, SearchHit
from shared.clients.rag.models.VectorPoint import VectorPoint
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Chunk, IndexingResult
from shared.models.errors import VectorIndexError

UPSERT_BATCH_SIZE = 100 # max points per upsert call


class DocumentIndexer:
    def __init__(
        self,
        helper_config: HelperConfig,
        rag_client: RAGClientInterface,
        embedding_service: EmbeddingService,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._rag_client = rag_client
        self._embedding_service = embedding_service

    ##########################################
    ############### INDEXING #################
    ##########################################

    async def ensure_collection(self) -> None:
        """Create the vector collection if it does not exist yet.

        Raises:
            VectorIndexError: If the vector database cannot be reached.
        """
        if await self._rag_client.do_existence_check():
            return
        self.logging.info(
            "Creating vector collection in %s (dimension %d).",
            self._rag_client.get_engine_name(), self._embedding_service.dimension,
        )
        await self._rag_client.do_create_collection(vector_size=self._embedding_service.dimension, distance="Cosine")

    async def index_chunks(self, chunks: list[Chunk]) -> IndexingResult:
        """Embed all chunks of one document and replace its points in the vector index.

        Args:
            chunks (list[Chunk]): The chunks of a single document.

        Returns:
            IndexingResult: Number of chunks indexed and total estimated tokens.

        Raises:
            VectorIndexError: If deleting stale points or upserting fails.
        """
        if not chunks:
            return IndexingResult()

        document_id = chunks[0].document_id
        embeddings = await self._embedding_service.generate_batch_embeddings([chunk.content for chunk in chunks])

        points = [
            self._rag_client.get_point(
                point_id=chunk.id,
                vector=embedding.embedding,
                payload=VectorPoint(
                    document_id=chunk.document_id,
                    owner_id=chunk.owner_id,
                    chunk_index=chunk.chunk_index,
                    start_offset=chunk.start_offset,
                    end_offset=chunk.end_offset,
                    file_type=chunk.file_type,
                    title=chunk.title,
                    content=chunk.content,
                ),
            )
            for chunk, embedding in zip(chunks, embeddings)
        ]

        # delete stale chunks so a shorter re-extraction leaves no orphaned points
        await self._rag_client.do_delete_by_document(document_id)

        # upsert in batches to avoid oversized requests
        for batch_start in range(0, len(points), UPSERT_BATCH_SIZE):
            await self._rag_client.do_upsert_points(points[batch_start: batch_start + UPSERT_BATCH_SIZE])

        total_tokens = sum(embedding.tokens for embedding in embeddings)
        self.logging.info("Indexed document %s: %d chunks, ~%d tokens.", document_id, len(points), total_tokens)
        return IndexingResult(chunks_processed=len(points), total_tokens=total_tokens)

    async def delete_document_embeddings(self, document_id: str) -> None:
        """Remove every point of a document from the vector index.

        Raises:
            VectorIndexError: If the delete request fails.
        """
        await self._rag_client.do_delete_by_document(document_id)
        self.logging.info("Deleted embeddings of document %s.", document_id)

    ##########################################
    ################ QUERIES #################
    ##########################################

    async def search_similar(self, query: str, owner_id: str | None = None, limit: int = 10) -> list[SearchHit]:
        """Embed query and return the most similar chunks.

        Raises:
            VectorIndexError: If the search request fails.
        """
        embedding = await self._embedding_service.generate_embedding(query)
        return await self._rag_client.do_search(embedding.embedding, owner_id=owner_id, limit=limit)

    async def get_collection_stats(self) -> CollectionStats:
        """Return point count and readiness; an unreachable index reports (0, not ready)."""
        try:
            return await self._rag_client.do_fetch_collection_stats()
        except VectorIndexError as e:
            self.logging.warning("Could not fetch vector collection stats: %s", e)
            return CollectionStats(vector_count=0, is_ready=False)
