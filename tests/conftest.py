"""Shared pytest configuration, fixtures and in-memory collaborators."""

import logging

import pytest

from services.cache.CacheService import CacheService
from shared.clients.cache.memory.CacheClientMemory import CacheClientMemory
from shared.clients.db.memory.DocumentRepositoryMemory import DocumentRepositoryMemory
from shared.clients.rag.models.SearchHit import CollectionStats, SearchHit
from shared.clients.rag.models.VectorPoint import VectorPoint
from shared.clients.storage.StorageClientInterface import StorageClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.document import Chunk, Document, DocumentStatus, FileType, IndexingResult
from shared.models.errors import VectorIndexError


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


##########################################
################ FAKES ###################
##########################################

class FakeStorage(StorageClientInterface):
    """Object storage holding bytes in a dict. Keys listed in failing raise OSError."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.objects: dict[str, bytes] = {}
        self.failing: set[str] = set()
        self.calls = 0

    def _get_engine_name(self) -> str:
        return "Fake"

    def _get_required_config(self) -> list[EnvConfig]:
        return []

    async def do_get_object(self, bucket: str, key: str) -> bytes:
        self.calls += 1
        if key in self.failing:
            raise OSError(f"storage unavailable for {key}")
        if key not in self.objects:
            raise FileNotFoundError(key)
        return self.objects[key]


class FakeIndexer:
    """Stands in for DocumentIndexer: records indexed chunks and serves canned hits."""

    def __init__(self, hits: list[SearchHit] | None = None, fail_indexing: bool = False, fail_search: bool = False):
        self.hits = hits or []
        self.fail_indexing = fail_indexing
        self.fail_search = fail_search
        self.indexed: dict[str, list[Chunk]] = {}
        self.search_calls: list[dict] = []

    async def index_chunks(self, chunks: list[Chunk]) -> IndexingResult:
        if self.fail_indexing:
            raise VectorIndexError("vector database unreachable")
        if chunks:
            self.indexed[chunks[0].document_id] = chunks
        return IndexingResult(chunks_processed=len(chunks), total_tokens=sum(len(c.content) for c in chunks) // 4)

    async def search_similar(self, query: str, owner_id: str | None = None, limit: int = 10) -> list[SearchHit]:
        self.search_calls.append({"query": query, "owner_id": owner_id, "limit": limit})
        if self.fail_search:
            raise VectorIndexError("vector database unreachable")
        return self.hits[:limit]

    async def delete_document_embeddings(self, document_id: str) -> None:
        self.indexed.pop(document_id, None)

    async def get_collection_stats(self) -> CollectionStats:
        return CollectionStats(vector_count=sum(len(c) for c in self.indexed.values()), is_ready=True)


def make_hit(document_id: str, score: float, content: str = "chunk text", chunk_index: int = 0) -> SearchHit:
    return SearchHit(
        id=f"{document_id}-{chunk_index}",
        score=score,
        payload=VectorPoint(
            document_id=document_id,
            owner_id="owner-1",
            chunk_index=chunk_index,
            start_offset=0,
            end_offset=len(content),
            content=content,
        ),
    )


def make_document(document_id: str, **overrides) -> Document:
    values = {
        "id": document_id,
        "owner_id": "owner-1",
        "title": f"Document {document_id}",
        "status": DocumentStatus.UPLOADING,
        "file_path": f"{document_id}.txt",
        "file_name": f"{document_id}.txt",
        "file_type": FileType.TXT,
    }
    values.update(overrides)
    return Document(**values)


##########################################
############### FIXTURES #################
##########################################

@pytest.fixture
def helper_config() -> HelperConfig:
    return HelperConfig(logger=logging.getLogger("knowledge_core.tests"))


@pytest.fixture
def repository(helper_config: HelperConfig) -> DocumentRepositoryMemory:
    return DocumentRepositoryMemory(helper_config=helper_config)


@pytest.fixture
def storage(helper_config: HelperConfig) -> FakeStorage:
    return FakeStorage(helper_config=helper_config)


@pytest.fixture
def cache_client(helper_config: HelperConfig) -> CacheClientMemory:
    return CacheClientMemory(helper_config=helper_config)


@pytest.fixture
def cache_service(helper_config: HelperConfig, cache_client: CacheClientMemory) -> CacheService:
    return CacheService(helper_config=helper_config, cache_client=cache_client)
