"""Unit tests for the in-memory document repository."""

from datetime import datetime, timezone

import pytest

from conftest import make_document
from shared.models.document import DocumentStatus, DocumentUpdate


@pytest.mark.asyncio
async def test_update_writes_only_set_fields(repository) -> None:
    repository.add_document(make_document("doc-1", content="old", summary="keep me", processing_error="boom"))

    await repository.do_update_document("doc-1", DocumentUpdate(status=DocumentStatus.COMPLETED, processing_error=None))

    document = await repository.do_get_document("doc-1")
    assert document.status is DocumentStatus.COMPLETED
    assert document.processing_error is None
    assert document.summary == "keep me"
    assert document.content == "old"
    assert document.updated_at is not None


@pytest.mark.asyncio
async def test_deleted_documents_are_hidden(repository) -> None:
    repository.add_document(make_document("doc-1"))
    repository.add_document(make_document("doc-2", deleted_at=datetime.now(timezone.utc)))

    assert await repository.do_get_document("doc-2") is None
    assert [doc.id for doc in await repository.do_get_documents_by_ids(["doc-2", "doc-1", "doc-1"])] == ["doc-1"]


@pytest.mark.asyncio
async def test_list_by_status(repository) -> None:
    repository.add_document(make_document("doc-1"))
    repository.add_document(make_document("doc-2", status=DocumentStatus.PROCESSING))
    repository.add_document(make_document("doc-3", status=DocumentStatus.COMPLETED))

    pending = await repository.do_list_documents_by_status([DocumentStatus.UPLOADING, DocumentStatus.PROCESSING])

    assert sorted(doc.id for doc in pending) == ["doc-1", "doc-2"]


@pytest.mark.asyncio
async def test_full_text_requires_every_term(repository) -> None:
    repository.add_document(make_document("doc-1", title="Budget", content="annual budget review"))
    repository.add_document(make_document("doc-2", title="Review", content="code review notes"))

    page = await repository.do_full_text_search("budget review", owner_id=None, limit=10, offset=0)

    assert page.total == 1
    assert page.rows[0].id == "doc-1"
    assert page.rows[0].rank == pytest.approx(3 / 4)


@pytest.mark.asyncio
async def test_full_text_without_terms(repository) -> None:
    repository.add_document(make_document("doc-1", content="anything"))

    page = await repository.do_full_text_search("?!", owner_id=None, limit=10, offset=0)

    assert page.rows == []
    assert page.total == 0
