"""Unit tests for full-text, semantic and hybrid search orchestration."""

import pytest

from conftest import FakeIndexer, make_document, make_hit
from services.search.SearchService import (
    SearchService,
    build_cache_key,
    extract_highlights,
    make_snippet,
    merge_hybrid_results,
    normalize_query,
)
from shared.models.document import DocumentStatus
from shared.models.errors import RepositoryError
from shared.models.search import SearchMode, SearchOptions, SearchResult


def _result(document_id: str, score: float, **overrides) -> SearchResult:
    values = {"id": document_id, "title": f"Document {document_id}", "score": score}
    values.update(overrides)
    return SearchResult(**values)


def _seed_library(repository) -> None:
    repository.add_document(
        make_document(
            "doc-1",
            title="Neural networks primer",
            content="Neural networks learn weights.\nBackpropagation computes gradients.\nNeural nets generalize.",
            status=DocumentStatus.COMPLETED,
        )
    )
    repository.add_document(
        make_document(
            "doc-2",
            title="Gardening",
            content="Tomatoes need sun and neural care is optional.",
            status=DocumentStatus.COMPLETED,
            owner_id="owner-2",
        )
    )
    repository.add_document(
        make_document("doc-3", title="", content="Unrelated   text\nabout   cooking.", status=DocumentStatus.COMPLETED)
    )


@pytest.fixture
def search_service(helper_config, repository, cache_service):
    def build(indexer: FakeIndexer | None = None) -> SearchService:
        return SearchService(
            helper_config=helper_config,
            repository=repository,
            indexer=indexer or FakeIndexer(),
            cache_service=cache_service,
        )

    return build


class TestHelpers:
    def test_hybrid_merge_weights_and_sums_scores(self) -> None:
        merged = merge_hybrid_results(
            [_result("a", 1.0, highlights=["from full-text"])],
            [_result("a", 0.8, highlights=["from chunk"]), _result("b", 0.5)],
        )

        assert [r.id for r in merged] == ["a", "b"]
        assert merged[0].score == pytest.approx(0.92)
        assert merged[0].highlights == ["from full-text"]
        assert merged[1].score == pytest.approx(0.2)

    def test_cache_key_uses_normalized_query_and_owner(self) -> None:
        options = SearchOptions(limit=10, offset=20, owner_id="owner-1")

        assert build_cache_key(SearchMode.HYBRID, "  Neural   Networks ", options) == "search:hybrid:neural networks:10:20:owner-1"
        assert build_cache_key(SearchMode.FULLTEXT, "x", SearchOptions()) == "search:fulltext:x:20:0:all"
        assert normalize_query("\tA\nB ") == "a b"

    def test_highlights_are_capped_and_truncated(self) -> None:
        long_line = "neural " * 40
        content = "\n".join(["intro", long_line, "Neural one", "nothing here", "neural two", "neural three"])

        highlights = extract_highlights(content, "NEURAL")

        assert len(highlights) == 3
        assert highlights[0] == long_line[:150] + "..."
        assert highlights[1:] == ["Neural one", "neural two"]

    def test_highlights_for_empty_content(self) -> None:
        assert extract_highlights(None, "neural") == []
        assert extract_highlights("neural", "   ") == []

    def test_snippet_collapses_whitespace(self) -> None:
        assert make_snippet("  a \n\n b\tc ") == "a b c"
        assert len(make_snippet("word " * 100)) == 200


class TestFullTextSearch:
    @pytest.mark.asyncio
    async def test_ranks_matching_documents_with_highlights(self, repository, search_service) -> None:
        _seed_library(repository)

        response = await search_service().do_full_text_search("neural")

        assert response.total == 2
        assert [r.id for r in response.results] == ["doc-1", "doc-2"]
        assert response.results[0].highlights == ["Neural networks learn weights.", "Neural nets generalize."]
        assert response.results[0].file_type == "txt"

    @pytest.mark.asyncio
    async def test_owner_scope_and_pagination(self, repository, search_service) -> None:
        _seed_library(repository)

        scoped = await search_service().do_full_text_search("neural", SearchOptions(owner_id="owner-2"))
        paged = await search_service().do_full_text_search("neural", SearchOptions(limit=1, offset=1))

        assert [r.id for r in scoped.results] == ["doc-2"]
        assert paged.total == 2
        assert [r.id for r in paged.results] == ["doc-2"]

    @pytest.mark.asyncio
    async def test_untitled_document(self, repository, search_service) -> None:
        _seed_library(repository)

        response = await search_service().do_full_text_search("cooking")

        assert response.results[0].title == "Untitled"
        assert response.results[0].content_snippet == "Unrelated text about cooking."

    @pytest.mark.asyncio
    async def test_blank_query_returns_empty_response(self, repository, search_service) -> None:
        _seed_library(repository)

        response = await search_service().do_full_text_search("   ")

        assert response.results == []
        assert response.total == 0

    @pytest.mark.asyncio
    async def test_cache_hit_skips_repository(self, repository, search_service, cache_service, monkeypatch) -> None:
        _seed_library(repository)
        service = search_service()
        first = await service.do_full_text_search("Neural", SearchOptions(limit=5))

        async def unreachable(*args, **kwargs):
            raise AssertionError("repository must not be queried on a cache hit")

        monkeypatch.setattr(repository, "do_full_text_search", unreachable)
        second = await service.do_full_text_search("  neural ", SearchOptions(limit=5))

        assert second.model_dump_json() == first.model_dump_json()
        assert cache_service.get_stats()["hits"] == 1

    @pytest.mark.asyncio
    async def test_repository_failure_degrades_and_is_not_cached(self, repository, search_service, cache_service, monkeypatch) -> None:
        async def broken(*args, **kwargs):
            raise RepositoryError("database down")

        monkeypatch.setattr(repository, "do_full_text_search", broken)

        response = await search_service().do_full_text_search("neural")

        assert response.results == []
        assert not await cache_service.exists(build_cache_key(SearchMode.FULLTEXT, "neural", SearchOptions()))


class TestSemanticSearch:
    @pytest.mark.asyncio
    async def test_keeps_best_chunk_per_document_and_honours_offset(self, repository, search_service) -> None:
        _seed_library(repository)
        indexer = FakeIndexer(
            hits=[
                make_hit("doc-deleted", 0.95),
                make_hit("doc-1", 0.9, content="best chunk of doc-1", chunk_index=0),
                make_hit("doc-2", 0.8),
                make_hit("doc-1", 0.7, content="weaker chunk of doc-1", chunk_index=1),
                make_hit("doc-3", 0.6),
            ]
        )
        repository.add_document(make_document("doc-other", status=DocumentStatus.COMPLETED))
        service = search_service(indexer)

        first_page = await service.do_semantic_search("learning", SearchOptions(limit=1))
        second_page = await service.do_semantic_search("learning", SearchOptions(limit=2, offset=1))

        assert [r.id for r in first_page.results] == ["doc-1"]
        assert first_page.results[0].highlights == ["best chunk of doc-1"]
        assert first_page.results[0].score == pytest.approx(0.9)
        assert [r.id for r in second_page.results] == ["doc-2", "doc-3"]
        assert second_page.total == 3
        assert indexer.search_calls[-1]["limit"] == 6

    @pytest.mark.asyncio
    async def test_no_vectors_yields_empty_response(self, repository, search_service) -> None:
        _seed_library(repository)

        response = await search_service(FakeIndexer(hits=[])).do_semantic_search("anything")

        assert response.model_dump() == {"results": [], "total": 0}

    @pytest.mark.asyncio
    async def test_owner_is_passed_to_vector_search(self, search_service) -> None:
        indexer = FakeIndexer()

        await search_service(indexer).do_semantic_search("query", SearchOptions(owner_id="owner-9"))

        assert indexer.search_calls == [{"query": "query", "owner_id": "owner-9", "limit": 40}]

    @pytest.mark.asyncio
    async def test_vector_index_failure_degrades_and_is_not_cached(self, search_service, cache_service) -> None:
        response = await search_service(FakeIndexer(fail_search=True)).do_semantic_search("query")

        assert response.results == []
        assert not await cache_service.exists(build_cache_key(SearchMode.SEMANTIC, "query", SearchOptions()))


    @pytest.mark.asyncio
    async def test_cache_hit_skips_vector_search(self, repository, search_service, cache_service) -> None:
        _seed_library(repository)
        indexer = FakeIndexer(hits=[make_hit("doc-1", 0.9), make_hit("doc-2", 0.8)])
        service = search_service(indexer)

        first = await service.do_semantic_search("Learning", SearchOptions(limit=5))
        calls_after_first = len(indexer.search_calls)
        second = await service.do_semantic_search(" learning  ", SearchOptions(limit=5))

        assert calls_after_first == 1
        assert len(indexer.search_calls) == calls_after_first
        assert second.model_dump_json() == first.model_dump_json()
        assert cache_service.get_stats()["hits"] == 1


class TestHybridSearch:
    @pytest.mark.asyncio
    async def test_merges_both_modes(self, repository, search_service) -> None:
        _seed_library(repository)
        indexer = FakeIndexer(hits=[make_hit("doc-3", 0.9), make_hit("doc-1", 0.5)])

        response = await search_service(indexer).do_hybrid_search("neural")

        assert response.total == 3
        assert {r.id for r in response.results} == {"doc-1", "doc-2", "doc-3"}
        doc_3 = next(r for r in response.results if r.id == "doc-3")
        assert doc_3.score == pytest.approx(0.9 * 0.4)
        assert indexer.search_calls[0]["limit"] == 2 * 50

    @pytest.mark.asyncio
    async def test_failed_semantic_mode_contributes_nothing(self, repository, search_service, cache_service) -> None:
        _seed_library(repository)

        response = await search_service(FakeIndexer(fail_search=True)).do_hybrid_search("neural")

        assert [r.id for r in response.results] == ["doc-1", "doc-2"]
        assert not await cache_service.exists(build_cache_key(SearchMode.HYBRID, "neural", SearchOptions()))

    @pytest.mark.asyncio
    async def test_complete_response_is_cached(self, repository, search_service, cache_service) -> None:
        _seed_library(repository)

        await search_service().do_hybrid_search("neural", SearchOptions(limit=1))

        assert await cache_service.exists(build_cache_key(SearchMode.HYBRID, "neural", SearchOptions(limit=1)))


    @pytest.mark.asyncio
    async def test_cache_hit_skips_both_modes(self, repository, search_service, cache_service, monkeypatch) -> None:
        _seed_library(repository)
        indexer = FakeIndexer(hits=[make_hit("doc-3", 0.9), make_hit("doc-1", 0.5)])
        service = search_service(indexer)
        first = await service.do_hybrid_search("neural", SearchOptions(limit=2))

        async def unreachable(*args, **kwargs):
            raise AssertionError("full-text index must not be queried on a cache hit")

        monkeypatch.setattr(repository, "do_full_text_search", unreachable)
        monkeypatch.setattr(repository, "do_get_documents_by_ids", unreachable)
        second = await service.do_hybrid_search("NEURAL", SearchOptions(limit=2))

        assert len(indexer.search_calls) == 1
        assert second.model_dump_json() == first.model_dump_json()
        assert len(second.results) == 2


class TestSuggestions:
    @pytest.mark.asyncio
    async def test_most_frequent_past_queries_first(self, search_service) -> None:
        service = search_service()
        for query in ["neural nets", "neural search", "neural search", "cooking"]:
            await service.do_log_search("owner-1", query, SearchMode.HYBRID, 1)

        assert await service.do_search_suggestions("neural") == ["neural search", "neural nets"]
        assert await service.do_search_suggestions("neural", limit=1) == ["neural search"]
        assert await service.do_search_suggestions("  ") == []

    @pytest.mark.asyncio
    async def test_repository_failure_yields_no_suggestions(self, repository, search_service, monkeypatch) -> None:
        async def broken(*args, **kwargs):
            raise RepositoryError("database down")

        monkeypatch.setattr(repository, "do_get_search_suggestions", broken)

        assert await search_service().do_search_suggestions("neural") == []
