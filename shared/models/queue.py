"""Models for the in-memory document processing queue.

A job never changes in place: a retry produces a new ProcessingJob with an
incremented retry_count, and every attempt ends in exactly one JobOutcome.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from shared.models.errors import TerminalProcessingError


class ProcessingJob(BaseModel):
    model_config = ConfigDict(frozen=True)

    document_id: str
    owner_id: str
    retry_count: int = 0
    enqueued_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def next_attempt(self) -> "ProcessingJob":
        """Return a copy of this job for the next retry, re-stamped for the back of the queue."""
        return self.model_copy(
            update={"retry_count": self.retry_count + 1, "enqueued_at": datetime.now(timezone.utc)}
        )


class JobSucceeded(BaseModel):
    model_config = ConfigDict(frozen=True)

    job: ProcessingJob
    chunks_indexed: int = 0
    indexing_failed: bool = False


class JobRetry(BaseModel):
    model_config = ConfigDict(frozen=True)

    job: ProcessingJob
    last_error: str


class JobFailedTerminal(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    job: ProcessingJob
    error: TerminalProcessingError


class JobDiscarded(BaseModel):
    model_config = ConfigDict(frozen=True)

    job: ProcessingJob
    reason: str


JobOutcome = JobSucceeded | JobRetry | JobFailedTerminal | JobDiscarded


class QueueStatus(BaseModel):
    queue_size: int
    active_jobs: int
    is_processing: bool
