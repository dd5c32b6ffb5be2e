"""Overlapping, sentence-aware text chunking."""

import uuid

from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Chunk
from shared.models.errors import ChunkingError

DEFAULT_CHUNK_SIZE = 1000     # characters per chunk window
DEFAULT_CHUNK_OVERLAP = 200   # characters shared by consecutive windows
BREAK_CHARACTERS = (".", "!", "?", "\n")

CHUNK_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "knowledge-core/chunks")


def make_chunk_id(document_id: str, chunk_index: int) -> str:
    """Build a deterministic UUID5 chunk id.

    The chunk id doubles as the vector point id, so re-indexing a document
    overwrites its points rather than duplicating them.

    Args:
        document_id (str): Id of the source document.
        chunk_index (int): Zero-based chunk index within the document.

    Returns:
        str: UUID string usable as a vector point id.
    """
    return str(uuid.uuid5(CHUNK_NAMESPACE, f"{document_id}:{chunk_index}"))


class TextChunker:
    """Splits extracted document text into overlapping windows.

    A window of chunk_size characters is shortened to end just after the last
    sentence terminator or newline it contains, provided that terminator lies
    beyond the middle of the window. The next window starts chunk_overlap
    characters before the previous one ended.
    """

    def __init__(self, helper_config: HelperConfig, chunk_size: int | None = None, chunk_overlap: int | None = None) -> None:
        self.logging = helper_config.get_logger()
        self.chunk_size = int(chunk_size if chunk_size is not None else helper_config.get_number_val("CHUNK_SIZE", default=DEFAULT_CHUNK_SIZE))
        self.chunk_overlap = int(chunk_overlap if chunk_overlap is not None else helper_config.get_number_val("CHUNK_OVERLAP", default=DEFAULT_CHUNK_OVERLAP))

    def _validate(self) -> None:
        if self.chunk_size <= 0:
            raise ChunkingError(f"Chunk size must be positive, got {self.chunk_size}.")
        if self.chunk_overlap < 0 or self.chunk_overlap >= self.chunk_size:
            raise ChunkingError(
                f"Chunk overlap must be in [0, {self.chunk_size}), got {self.chunk_overlap}."
            )

    def _find_break(self, text: str, start: int, end: int) -> int:
        """Return the end offset of the window [start, end) after snapping to a sentence break."""
        break_point = max(text.rfind(char, start, end) for char in BREAK_CHARACTERS)
        if break_point > start + self.chunk_size // 2:
            return break_point + 1
        return end

    def split(
        self,
        text: str,
        document_id: str,
        owner_id: str,
        file_type: str | None = None,
        title: str | None = None,
    ) -> list[Chunk]:
        """Split text into chunks.

        Args:
            text (str): The extracted document text.
            document_id (str): Id of the source document.
            owner_id (str): Owner of the source document.
            file_type (str | None): File type stored with every chunk.
            title (str | None): Document title stored with every chunk.

        Returns:
            list[Chunk]: Chunks with contiguous indices starting at 0. Empty for blank text.

        Raises:
            ChunkingError: If the chunk size or overlap is invalid.
        """
        self._validate()
        if not text or not text.strip():
            return []

        chunks: list[Chunk] = []
        length = len(text)
        start = 0
        while start < length:
            end = min(start + self.chunk_size, length)
            if end < length:
                end = self._find_break(text, start, end)

            content = text[start:end].strip()
            if content:
                chunk_index = len(chunks)
                chunks.append(
                    Chunk(
                        id=make_chunk_id(document_id, chunk_index),
                        document_id=document_id,
                        owner_id=owner_id,
                        chunk_index=chunk_index,
                        start_offset=start,
                        end_offset=end,
                        content=content,
                        file_type=file_type,
                        title=title,
                    )
                )

            if end >= length:
                break
            # always move forward, even when a break point sits inside the overlap
            next_start = max(end - self.chunk_overlap, start + 1)
            if next_start >= length - self.chunk_overlap:
                break
            start = next_start

        self.logging.debug("Split document %s into %d chunk(s).", document_id, len(chunks))
        return chunks
