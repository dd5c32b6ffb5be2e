"""VectorPoint model: metadata stored alongside each chunk vector in the vector index."""

from pydantic import BaseModel


class VectorPoint(BaseModel):
    """Payload stored alongside each chunk vector.

    The search side only needs document_id and content to group hits per
    document and to build highlights; the remaining fields allow filtering
    and debugging directly in the vector database.

    Attributes:
        document_id:  Id of the source document in the relational store.
        owner_id:     Owner of the document, used by the optional owner filter.
        chunk_index:  Zero-based position of this chunk within the document.
        start_offset: Inclusive character offset of the chunk in the extracted text.
        end_offset:   Exclusive character offset of the chunk in the extracted text.
        file_type:    File type of the source document.
        title:        Document title at indexing time.
        content:      Raw text of this chunk.
    """

    document_id: str
    owner_id: str
    chunk_index: int
    start_offset: int
    end_offset: int
    file_type: str | None = None
    title: str | None = None
    content: str
