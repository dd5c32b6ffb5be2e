"""Search orchestration over the relational full-text index and the vector index.

Three modes answer the same query shape:
  fulltext - native text ranking of the relational store, paginated there
  semantic - chunk similarity collapsed to the best chunk per document
  hybrid   - both modes concurrently, merged by weighted score per document

Every mode reads through the cache first. A failing sub-system yields an
empty contribution, and such degraded responses are not cached.
"""

import asyncio
import re
from typing import Awaitable, Callable

from services.cache.CacheService import CacheService
from services.ingestion.DocumentIndexer import DocumentIndexer
from shared.clients.db.DocumentRepositoryInterface import DocumentRepositoryInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.errors import RepositoryError, SearchSubsystemError, VectorIndexError
from shared.models.search import SearchMode, SearchOptions, SearchResponse, SearchResult

DEFAULT_FULLTEXT_WEIGHT = 0.6
DEFAULT_SEMANTIC_WEIGHT = 0.4
DEFAULT_HYBRID_CANDIDATES = 50
DEFAULT_CACHE_TTL = 300

MAX_HIGHLIGHTS = 3
HIGHLIGHT_MAX_LENGTH = 150
CHUNK_HIGHLIGHT_LENGTH = 200
SNIPPET_LENGTH = 200
UNTITLED = "Untitled"


##########################################
############## PURE HELPERS ##############
##########################################

def normalize_query(query: str) -> str:
    return re.sub(r"\s+", " ", query or "").strip().lower()


def build_cache_key(mode: SearchMode, query: str, options: SearchOptions) -> str:
    """search:{mode}:{normalized query}:{limit}:{offset}:{owner id or "all"}"""
    owner = options.owner_id or "all"
    return f"search:{mode.value}:{normalize_query(query)}:{options.limit}:{options.offset}:{owner}"


def extract_highlights(content: str | None, query: str, max_snippets: int = MAX_HIGHLIGHTS) -> list[str]:
    """Return up to max_snippets lines of content containing any query term.

    Lines longer than 150 characters are cut and suffixed with "...".
    """
    if not content:
        return []
    terms = query.lower().split()
    if not terms:
        return []

    highlights: list[str] = []
    for line in content.split("\n"):
        lower_line = line.lower()
        if any(term in lower_line for term in terms):
            highlights.append(line[:HIGHLIGHT_MAX_LENGTH] + "..." if len(line) > HIGHLIGHT_MAX_LENGTH else line)
            if len(highlights) >= max_snippets:
                break
    return highlights


def make_snippet(content: str | None) -> str:
    return re.sub(r"\s+", " ", content or "").strip()[:SNIPPET_LENGTH]


def merge_hybrid_results(
    fulltext: list[SearchResult],
    semantic: list[SearchResult],
    fulltext_weight: float = DEFAULT_FULLTEXT_WEIGHT,
    semantic_weight: float = DEFAULT_SEMANTIC_WEIGHT,
) -> list[SearchResult]:
    """Merge two ranked result lists by document id.

    A document found by one mode keeps its score times that mode's weight; a
    document found by both gets the sum of both weighted scores. Full-text
    metadata and highlights win when a document appears in both lists.

    Returns:
        list[SearchResult]: The merged set sorted by combined score, descending.
    """
    merged: dict[str, SearchResult] = {}
    for result in fulltext:
        merged[result.id] = result.model_copy(update={"score": result.score * fulltext_weight})
    for result in semantic:
        existing = merged.get(result.id)
        if existing is not None:
            merged[result.id] = existing.model_copy(update={"score": existing.score + result.score * semantic_weight})
        else:
            merged[result.id] = result.model_copy(update={"score": result.score * semantic_weight})
    return sorted(merged.values(), key=lambda result: result.score, reverse=True)


class SearchService:
    def __init__(
        self,
        helper_config: HelperConfig,
        repository: DocumentRepositoryInterface,
        indexer: DocumentIndexer,
        cache_service: CacheService,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._repository = repository
        self._indexer = indexer
        self._cache = cache_service
        self.fulltext_weight = float(helper_config.get_number_val("SEARCH_FULLTEXT_WEIGHT", default=DEFAULT_FULLTEXT_WEIGHT))
        self.semantic_weight = float(helper_config.get_number_val("SEARCH_SEMANTIC_WEIGHT", default=DEFAULT_SEMANTIC_WEIGHT))
        self.hybrid_candidates = int(helper_config.get_number_val("SEARCH_HYBRID_CANDIDATES", default=DEFAULT_HYBRID_CANDIDATES))
        self.cache_ttl = helper_config.get_number_val("SEARCH_CACHE_TTL", default=DEFAULT_CACHE_TTL)

    ##########################################
    ################ MODES ###################
    ##########################################

    async def do_full_text_search(self, query: str, options: SearchOptions | None = None) -> SearchResponse:
        """Rank documents with the relational full-text index.

        Returns:
            SearchResponse: The requested page and the total number of matching documents.
                Empty if the full-text index fails.
        """
        options = options or SearchOptions()

        async def compute() -> tuple[SearchResponse, bool]:
            try:
                return await self._full_text(query, options.owner_id, options.limit, options.offset), True
            except SearchSubsystemError as e:
                self.logging.error("%s", e)
                return SearchResponse(), False

        return await self._cached(SearchMode.FULLTEXT, query, options, compute)

    async def do_semantic_search(self, query: str, options: SearchOptions | None = None) -> SearchResponse:
        """Rank documents by their most similar chunk.

        Returns:
            SearchResponse: One result per document; empty if embedding or the vector index fails.
        """
        options = options or SearchOptions()

        async def compute() -> tuple[SearchResponse, bool]:
            try:
                return await self._semantic(query, options.owner_id, options.limit, options.offset), True
            except SearchSubsystemError as e:
                self.logging.error("%s", e)
                return SearchResponse(), False

        return await self._cached(SearchMode.SEMANTIC, query, options, compute)

    async def do_hybrid_search(self, query: str, options: SearchOptions | None = None) -> SearchResponse:
        """Run both modes concurrently and merge them by weighted score.

        Each mode contributes its top hybrid_candidates documents. A failing
        mode contributes nothing.

        Returns:
            SearchResponse: The merged page and the size of the merged set.
        """
        options = options or SearchOptions()

        async def compute() -> tuple[SearchResponse, bool]:
            fulltext, semantic = await asyncio.gather(
                self._full_text(query, options.owner_id, self.hybrid_candidates, 0),
                self._semantic(query, options.owner_id, self.hybrid_candidates, 0),
                return_exceptions=True,
            )
            complete = True
            for outcome in (fulltext, semantic):
                if isinstance(outcome, BaseException):
                    if not isinstance(outcome, SearchSubsystemError):
                        raise outcome
                    self.logging.error("Hybrid search degraded: %s", outcome)
                    complete = False

            merged = merge_hybrid_results(
                fulltext.results if isinstance(fulltext, SearchResponse) else [],
                semantic.results if isinstance(semantic, SearchResponse) else [],
                self.fulltext_weight,
                self.semantic_weight,
            )
            page = merged[options.offset: options.offset + options.limit]
            return SearchResponse(results=page, total=len(merged)), complete

        return await self._cached(SearchMode.HYBRID, query, options, compute)

    ##########################################
    ############## SUGGESTIONS ###############
    ##########################################

    async def do_search_suggestions(self, partial_query: str, limit: int = 5) -> list[str]:
        """Return past queries containing partial_query, most frequent first. Empty on failure."""
        if not partial_query or not partial_query.strip():
            return []
        try:
            return await self._repository.do_get_search_suggestions(partial_query.strip(), limit)
        except RepositoryError as e:
            self.logging.error("Error getting search suggestions: %s", e)
            return []

    async def do_log_search(self, owner_id: str, query: str, mode: SearchMode, results_count: int) -> None:
        """Record a search in the history used for suggestions. Failures are logged only."""
        try:
            await self._repository.do_log_search(owner_id, query, mode.value, results_count)
        except RepositoryError as e:
            self.logging.warning("Could not log %s search: %s", mode.value, e)

    ##########################################
    ############### INTERNALS ################
    ##########################################

    async def _cached(
        self,
        mode: SearchMode,
        query: str,
        options: SearchOptions,
        compute: Callable[[], Awaitable[tuple[SearchResponse, bool]]],
    ) -> SearchResponse:
        cache_key = build_cache_key(mode, query, options)
        cached = await self._cache.get(cache_key)
        if cached is not None:
            self.logging.debug("Cache hit for %s", cache_key)
            return SearchResponse.model_validate(cached)

        response, complete = await compute()
        if complete:
            await self._cache.set(cache_key, response, ttl=self.cache_ttl)
        return response

    async def _full_text(self, query: str, owner_id: str | None, limit: int, offset: int) -> SearchResponse:
        """Raises SearchSubsystemError if the relational store fails."""
        if not normalize_query(query):
            return SearchResponse()
        try:
            page = await self._repository.do_full_text_search(query, owner_id, limit, offset)
        except RepositoryError as e:
            raise SearchSubsystemError(SearchMode.FULLTEXT.value, str(e)) from e

        results = [
            SearchResult(
                id=row.id,
                title=row.title or UNTITLED,
                content_snippet=make_snippet(row.content),
                score=row.rank,
                highlights=extract_highlights(row.content, query),
                file_name=row.file_name,
                file_type=row.file_type,
            )
            for row in page.rows
        ]
        return SearchResponse(results=results, total=page.total)

    async def _semantic(self, query: str, owner_id: str | None, limit: int, offset: int) -> SearchResponse:
        """Raises SearchSubsystemError if the vector index or the relational store fails."""
        if not normalize_query(query):
            return SearchResponse()
        try:
            # over-fetch so that several chunks of one document still leave enough documents
            hits = await self._indexer.search_similar(query, owner_id=owner_id, limit=2 * (offset + limit))
        except VectorIndexError as e:
            raise SearchSubsystemError(SearchMode.SEMANTIC.value, str(e)) from e
        if not hits:
            return SearchResponse()

        best_hits = {}
        for hit in hits:
            current = best_hits.get(hit.payload.document_id)
            if current is None or hit.score > current.score:
                best_hits[hit.payload.document_id] = hit

        try:
            documents = await self._repository.do_get_documents_by_ids(list(best_hits))
        except RepositoryError as e:
            raise SearchSubsystemError(SearchMode.SEMANTIC.value, str(e)) from e

        results = []
        for document in documents:
            hit = best_hits[document.id]
            results.append(
                SearchResult(
                    id=document.id,
                    title=document.title or UNTITLED,
                    content_snippet=make_snippet(document.content),
                    score=hit.score,
                    highlights=[hit.payload.content[:CHUNK_HIGHLIGHT_LENGTH]] if hit.payload.content else [],
                    file_name=document.file_name,
                    file_type=document.file_type.value if document.file_type else None,
                )
            )
        results.sort(key=lambda result: result.score, reverse=True)
        return SearchResponse(results=results[offset: offset + limit], total=len(results))
