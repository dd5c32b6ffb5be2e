"""Exception taxonomy of the ingestion and search core.

Recoverable ingestion failures derive from ProcessingError and drive the
queue's retry logic. The remaining errors are absorbed at well-defined seams:
EmbeddingUnavailable by the lexical fallback, VectorIndexError by ingestion and
semantic search, SearchSubsystemError per search mode, CacheUnavailable by the
cache layer.
"""


class ProcessingError(Exception):
    """Base class for recoverable document processing failures."""


class ExtractionError(ProcessingError):
    """The stored file could not be fetched or converted to text."""


class ChunkingError(ProcessingError):
    """The extracted text could not be split into chunks."""


class TerminalProcessingError(Exception):
    """A document exhausted its retries.

    Attributes:
        document_id: The document that failed.
        attempts:    Number of attempts made, including the first one.
        last_error:  Message of the final failure, persisted on the document.
    """

    def __init__(self, document_id: str, attempts: int, last_error: str) -> None:
        super().__init__(last_error)
        self.document_id = document_id
        self.attempts = attempts
        self.last_error = last_error


class EmbeddingUnavailable(Exception):
    """The remote embedding endpoint could not produce a usable vector.

    Attributes:
        status_code:   HTTP status of the failed call, None for transport errors or bad payloads.
        trips_breaker: True for auth, quota, rate-limit, timeout and transport failures.
    """

    def __init__(self, message: str, status_code: int | None = None, trips_breaker: bool = False) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.trips_breaker = trips_breaker


class VectorIndexError(Exception):
    """A call to the vector database failed."""


class RepositoryError(Exception):
    """A call to the relational document store failed."""


class SearchSubsystemError(Exception):
    """A full-text or semantic sub-query failed.

    Attributes:
        mode: The search mode whose sub-system failed.
    """

    def __init__(self, mode: str, message: str) -> None:
        super().__init__(f"{mode} search failed: {message}")
        self.mode = mode


class CacheUnavailable(Exception):
    """The cache store could not be reached. Treated as a miss, never surfaced."""
