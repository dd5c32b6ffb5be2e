"""Unit tests for the directory-backed object storage."""

import pytest

from shared.clients.storage.local.StorageClientLocal import StorageClientLocal


@pytest.fixture
def local_storage(helper_config, monkeypatch, tmp_path) -> StorageClientLocal:
    monkeypatch.setenv("STORAGE_LOCAL_ROOT", str(tmp_path))
    (tmp_path / "documents" / "owner-1").mkdir(parents=True)
    (tmp_path / "documents" / "owner-1" / "report.txt").write_bytes(b"stored bytes")
    (tmp_path / "secret.txt").write_bytes(b"outside the bucket")
    return StorageClientLocal(helper_config=helper_config)


@pytest.mark.asyncio
async def test_reads_object_from_bucket(local_storage) -> None:
    assert await local_storage.do_get_object("documents", "owner-1/report.txt") == b"stored bytes"
    assert await local_storage.do_get_object("documents", "/owner-1/report.txt") == b"stored bytes"


@pytest.mark.asyncio
async def test_missing_object(local_storage) -> None:
    with pytest.raises(FileNotFoundError):
        await local_storage.do_get_object("documents", "owner-1/missing.txt")


@pytest.mark.asyncio
async def test_keys_cannot_escape_the_bucket(local_storage) -> None:
    with pytest.raises(FileNotFoundError, match="escapes bucket"):
        await local_storage.do_get_object("documents", "../secret.txt")
