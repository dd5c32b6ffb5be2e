"""Unit tests for the text chunker."""

import pytest

from services.ingestion.TextChunker import TextChunker, make_chunk_id
from shared.models.errors import ChunkingError


@pytest.fixture
def chunker(helper_config) -> TextChunker:
    return TextChunker(helper_config=helper_config, chunk_size=1000, chunk_overlap=200)


def test_text_without_break_characters_is_split_into_overlapping_windows(chunker) -> None:
    """2,600 characters with no sentence breaks should yield three fixed windows."""
    text = "x" * 2600
    chunks = chunker.split(text, document_id="doc-1", owner_id="owner-1")

    assert len(chunks) == 3
    assert [(c.start_offset, c.end_offset) for c in chunks] == [(0, 1000), (800, 1800), (1600, 2600)]


def test_chunk_indices_are_contiguous_and_overlap_is_constant(chunker) -> None:
    sentence = "Machine learning models need a lot of training data. "
    text = sentence * 120
    chunks = chunker.split(text, document_id="doc-1", owner_id="owner-1")

    assert [c.chunk_index for c in chunks] == list(range(len(chunks)))
    for current, following in zip(chunks, chunks[1:]):
        assert current.end_offset - following.start_offset == 200


def test_windows_end_after_last_sentence_break(chunker) -> None:
    """A terminator beyond the middle of the window becomes the chunk end."""
    text = "a" * 700 + "." + "b" * 1500
    chunks = chunker.split(text, document_id="doc-1", owner_id="owner-1")

    assert chunks[0].end_offset == 701
    assert chunks[0].content.endswith(".")
    assert chunks[1].start_offset == 501


def test_break_in_first_half_of_window_is_ignored(chunker) -> None:
    text = "a" * 300 + "\n" + "b" * 1500
    chunks = chunker.split(text, document_id="doc-1", owner_id="owner-1")

    assert chunks[0].end_offset == 1000


def test_blank_text_yields_no_chunks(chunker) -> None:
    assert chunker.split("", document_id="doc-1", owner_id="owner-1") == []
    assert chunker.split("   \n\t  ", document_id="doc-1", owner_id="owner-1") == []


def test_short_text_yields_single_stripped_chunk(chunker) -> None:
    chunks = chunker.split("  Hello world.  ", document_id="doc-1", owner_id="owner-1", file_type="txt", title="Greeting")

    assert len(chunks) == 1
    assert chunks[0].content == "Hello world."
    assert chunks[0].file_type == "txt"
    assert chunks[0].title == "Greeting"


def test_chunk_ids_are_deterministic(chunker) -> None:
    first = chunker.split("x" * 2600, document_id="doc-1", owner_id="owner-1")
    second = chunker.split("y" * 2600, document_id="doc-1", owner_id="owner-1")

    assert [c.id for c in first] == [c.id for c in second]
    assert first[0].id == make_chunk_id("doc-1", 0)
    assert make_chunk_id("doc-1", 0) != make_chunk_id("doc-2", 0)


@pytest.mark.parametrize("size, overlap", [(0, 0), (100, 100), (100, 150), (100, -1)])
def test_invalid_configuration_raises(helper_config, size, overlap) -> None:
    chunker = TextChunker(helper_config=helper_config, chunk_size=size, chunk_overlap=overlap)
    with pytest.raises(ChunkingError):
        chunker.split("some text", document_id="doc-1", owner_id="owner-1")


def test_configuration_is_read_from_environment(helper_config, monkeypatch) -> None:
    monkeypatch.setenv("CHUNK_SIZE", "500")
    monkeypatch.setenv("CHUNK_OVERLAP", "50")
    chunker = TextChunker(helper_config=helper_config)

    assert chunker.chunk_size == 500
    assert chunker.chunk_overlap == 50
