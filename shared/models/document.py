"""Pydantic models for documents and the artefacts derived from them.

Hierarchy:
  Document: relational record of an uploaded file.
  DocumentUpdate: the subset of fields the ingestion queue writes back.
  ExtractionResult: plain text plus coarse metadata pulled from a stored file.
  Chunk: transient overlapping window of a document's text.
  EmbeddingResult: vector produced for one chunk or query.
  IndexingResult: counters reported after a document's chunks are indexed.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class DocumentStatus(str, Enum):
    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    def is_terminal(self) -> bool:
        return self in (DocumentStatus.COMPLETED, DocumentStatus.FAILED)


class FileType(str, Enum):
    PDF = "pdf"
    DOCX = "docx"
    TXT = "txt"
    MD = "md"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    OTHER = "other"


class Document(BaseModel):
    """A stored document as seen by the ingestion and search core.

    Created by the CRUD layer on upload. The core only mutates status, content,
    summary and processing_error.
    """

    id: str
    owner_id: str
    title: str = ""
    status: DocumentStatus = DocumentStatus.UPLOADING
    content: str | None = None
    summary: str | None = None

    # file metadata
    file_path: str | None = None
    file_name: str | None = None
    file_size_bytes: int | None = None
    file_type: FileType | None = None
    mime_type: str | None = None

    processing_error: str | None = None

    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None


class DocumentUpdate(BaseModel):
    """Partial update written by the ingestion queue. Unset fields are left untouched."""

    status: DocumentStatus | None = None
    content: str | None = None
    summary: str | None = None
    processing_error: str | None = None

    def changed_fields(self) -> dict:
        """Return only the fields that were explicitly set, including explicit None values."""
        return self.model_dump(exclude_unset=True)


class ExtractionMetadata(BaseModel):
    page_count: int | None = None
    word_count: int = 0


class ExtractionResult(BaseModel):
    content: str
    metadata: ExtractionMetadata = ExtractionMetadata()


class Chunk(BaseModel):
    """One overlapping window of a document's extracted text.

    Attributes:
        id:           Deterministic UUIDv5 of "document_id:chunk_index", reused as vector point id.
        chunk_index:  Zero-based, contiguous position within the document.
        start_offset: Inclusive character offset of the window in the extracted text.
        end_offset:   Exclusive character offset of the window in the extracted text.
        content:      The stripped window text.
    """

    id: str
    document_id: str
    owner_id: str
    chunk_index: int
    start_offset: int
    end_offset: int
    content: str
    file_type: str | None = None
    title: str | None = None


class EmbeddingSource(str, Enum):
    REMOTE = "remote"
    FALLBACK = "fallback"


class EmbeddingResult(BaseModel):
    embedding: list[float]
    tokens: int
    source: EmbeddingSource


class IndexingResult(BaseModel):
    chunks_processed: int = 0
    total_tokens: int = 0
