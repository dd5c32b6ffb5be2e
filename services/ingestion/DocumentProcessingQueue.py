"""In-memory document processing queue.

Uploaded documents are turned into searchable content by a fixed pool of
asyncio workers sharing one queue. Each attempt runs

    lookup -> extract -> summarize -> chunk -> mark completed -> embed + index

and ends in exactly one JobOutcome. Recoverable failures are re-queued at the
back of the queue until the retry budget is spent; the document is then
marked failed with the last error message. Embedding and indexing happen
after the document is completed, so their failures never fail the document.
In-flight and queued jobs are lost on restart.
"""

import asyncio

from services.cache.CacheService import CacheService
from services.ingestion.DocumentIndexer import DocumentIndexer
from services.ingestion.TextChunker import TextChunker
from services.ingestion.TextExtractionService import TextExtractionService
from shared.clients.db.DocumentRepositoryInterface import DocumentRepositoryInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import DocumentStatus, DocumentUpdate
from shared.models.errors import ProcessingError, RepositoryError, TerminalProcessingError, VectorIndexError
from shared.models.queue import (
    JobDiscarded,
    JobFailedTerminal,
    JobOutcome,
    JobRetry,
    JobSucceeded,
    ProcessingJob,
    QueueStatus,
)

DEFAULT_CONCURRENCY = 2
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BACKOFF_SECONDS = 0.5
MISSING_FILE_ERROR = "Missing file path or type"
SEARCH_CACHE_PATTERN = "search:*"


def decide_retry(job: ProcessingJob, error: str, max_retries: int) -> JobRetry | JobFailedTerminal:
    """Decide what happens to a job after a recoverable failure.

    Args:
        job (ProcessingJob): The job whose attempt failed.
        error (str): Message of the failure.
        max_retries (int): Number of retries allowed after the first attempt.

    Returns:
        JobRetry | JobFailedTerminal: A retry carrying the next attempt while
            retry_count < max_retries, otherwise a terminal failure.
    """
    if job.retry_count < max_retries:
        return JobRetry(job=job.next_attempt(), last_error=error)
    return JobFailedTerminal(
        job=job,
        error=TerminalProcessingError(document_id=job.document_id, attempts=job.retry_count + 1, last_error=error),
    )


def retry_delay(job: ProcessingJob, backoff_seconds: float) -> float:
    """Exponential backoff before re-queueing a retried job: base, 2 x base, 4 x base, ..."""
    if backoff_seconds <= 0 or job.retry_count <= 0:
        return 0.0
    return backoff_seconds * 2 ** (job.retry_count - 1)


class DocumentProcessingQueue:
    def __init__(
        self,
        helper_config: HelperConfig,
        repository: DocumentRepositoryInterface,
        extraction_service: TextExtractionService,
        chunker: TextChunker,
        indexer: DocumentIndexer,
        cache_service: CacheService | None = None,
        concurrency: int | None = None,
        max_retries: int | None = None,
        retry_backoff_seconds: float | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._repository = repository
        self._extraction = extraction_service
        self._chunker = chunker
        self._indexer = indexer
        self._cache = cache_service

        self.concurrency = int(concurrency if concurrency is not None else helper_config.get_number_val("QUEUE_CONCURRENCY", default=DEFAULT_CONCURRENCY))
        self.max_retries = int(max_retries if max_retries is not None else helper_config.get_number_val("QUEUE_MAX_RETRIES", default=DEFAULT_MAX_RETRIES))
        self.retry_backoff_seconds = float(
            retry_backoff_seconds if retry_backoff_seconds is not None
            else helper_config.get_number_val("QUEUE_RETRY_BACKOFF_SECONDS", default=DEFAULT_RETRY_BACKOFF_SECONDS)
        )

        self._queue: asyncio.Queue[ProcessingJob] = asyncio.Queue()
        self._workers: list[asyncio.Task] = []
        self._retry_tasks: set[asyncio.Task] = set()
        self._active_jobs = 0
        self._loop: asyncio.AbstractEventLoop | None = None

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def start(self) -> None:
        """Start the worker pool on the running event loop."""
        if self._workers:
            return
        self._loop = asyncio.get_running_loop()
        self._workers = [
            asyncio.create_task(self._worker(worker_id), name=f"document-worker-{worker_id}")
            for worker_id in range(self.concurrency)
        ]
        self.logging.info("Document processing queue started with %d worker(s).", self.concurrency)

    async def stop(self) -> None:
        """Cancel the workers and pending retries. Queued jobs are dropped."""
        tasks = self._workers + list(self._retry_tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._workers = []
        self._retry_tasks.clear()
        self.logging.info("Document processing queue stopped (%d job(s) left unprocessed).", self._queue.qsize())

    ##########################################
    ################# API ####################
    ##########################################

    def enqueue(self, document_id: str, owner_id: str) -> None:
        """Add a document to the queue without blocking. Safe to call from any thread.

        Args:
            document_id (str): The uploaded document.
            owner_id (str): Owner of the document.
        """
        job = ProcessingJob(document_id=document_id, owner_id=owner_id)
        try:
            running_loop = asyncio.get_running_loop()
        except RuntimeError:
            running_loop = None

        if self._loop is not None and running_loop is not self._loop:
            try:
                self._loop.call_soon_threadsafe(self._queue.put_nowait, job)
            except RuntimeError as e:
                self.logging.error("Could not enqueue document %s, event loop is closed: %s", document_id, e)
                return
        else:
            self._queue.put_nowait(job)

        self.logging.info("Document %s added to processing queue. Queue size: %d", document_id, self._queue.qsize())

    def status(self) -> QueueStatus:
        queue_size = self._queue.qsize()
        return QueueStatus(
            queue_size=queue_size,
            active_jobs=self._active_jobs,
            is_processing=self._active_jobs > 0 or queue_size > 0 or bool(self._retry_tasks),
        )

    async def wait_until_idle(self) -> None:
        """Wait until the queue is drained, including retries still waiting for their backoff."""
        while True:
            await self._queue.join()
            if not self._retry_tasks:
                return
            await asyncio.gather(*list(self._retry_tasks), return_exceptions=True)

    ##########################################
    ################ WORKER ##################
    ##########################################

    async def _worker(self, worker_id: int) -> None:
        while True:
            job = await self._queue.get()
            self._active_jobs += 1
            try:
                outcome = await self.process_job(job)
                await self._handle_outcome(outcome)
            except Exception as exc:
                self.logging.error(
                    "Worker %d crashed on document %s: %s", worker_id, job.document_id, exc, exc_info=True
                )
            finally:
                self._active_jobs -= 1
                self._queue.task_done()

    async def process_job(self, job: ProcessingJob) -> JobOutcome:
        """Run a single attempt for a job.

        Args:
            job (ProcessingJob): The job to process.

        Returns:
            JobOutcome: What happened; side effects other than retry scheduling
                and terminal failure marking have already been applied.
        """
        self.logging.info("Processing document %s (attempt %d)...", job.document_id, job.retry_count + 1)
        try:
            document = await self._repository.do_get_document(job.document_id)
            if document is None:
                self.logging.error("Document %s not found, discarding job.", job.document_id)
                return JobDiscarded(job=job, reason="not found")

            if document.status.is_terminal():
                self.logging.info(
                    "Document %s is already %s, discarding job.", job.document_id, document.status.value
                )
                return JobDiscarded(job=job, reason=f"already {document.status.value}")

            if not document.file_path or not document.file_type:
                return JobFailedTerminal(
                    job=job,
                    error=TerminalProcessingError(job.document_id, job.retry_count + 1, MISSING_FILE_ERROR),
                )

            if document.status is not DocumentStatus.PROCESSING:
                await self._repository.do_update_document(job.document_id, DocumentUpdate(status=DocumentStatus.PROCESSING))

            extraction = await self._extraction.extract_text(document.file_path, document.file_type)
            summary = self._extraction.generate_summary(extraction.content)
            chunks = self._chunker.split(
                extraction.content,
                document_id=job.document_id,
                owner_id=job.owner_id,
                file_type=document.file_type.value,
                title=document.title,
            )

            await self._repository.do_update_document(
                job.document_id,
                DocumentUpdate(
                    content=extraction.content,
                    summary=summary,
                    status=DocumentStatus.COMPLETED,
                    processing_error=None,
                ),
            )
        except (ProcessingError, RepositoryError) as exc:
            self.logging.error("Failed to process document %s: %s", job.document_id, exc)
            return decide_retry(job, str(exc), self.max_retries)
        except Exception as exc:
            self.logging.error("Unexpected error while processing document %s: %s", job.document_id, exc, exc_info=True)
            return decide_retry(job, str(exc) or type(exc).__name__, self.max_retries)

        self.logging.info(
            "Document %s processed: %d chars, %d words, %d chunk(s).",
            job.document_id, len(extraction.content), extraction.metadata.word_count, len(chunks),
        )

        indexing_failed = False
        chunks_indexed = 0
        try:
            result = await self._indexer.index_chunks(chunks)
            chunks_indexed = result.chunks_processed
        except VectorIndexError as exc:
            # the document stays completed and remains searchable through full-text search
            indexing_failed = True
            self.logging.warning("Embedding generation failed for document %s: %s", job.document_id, exc)

        if self._cache is not None:
            await self._cache.delete_pattern(SEARCH_CACHE_PATTERN)

        return JobSucceeded(job=job, chunks_indexed=chunks_indexed, indexing_failed=indexing_failed)

    async def _handle_outcome(self, outcome: JobOutcome) -> None:
        if isinstance(outcome, JobRetry):
            self._schedule_retry(outcome)
        elif isinstance(outcome, JobFailedTerminal):
            await self._mark_failed(outcome)

    def _schedule_retry(self, outcome: JobRetry) -> None:
        job = outcome.job
        delay = retry_delay(job, self.retry_backoff_seconds)
        self.logging.info(
            "Retrying document %s (attempt %d/%d) in %.2fs.",
            job.document_id, job.retry_count, self.max_retries, delay,
        )
        if delay <= 0:
            self._queue.put_nowait(job)
            return

        task = asyncio.create_task(self._requeue_later(job, delay))
        self._retry_tasks.add(task)
        task.add_done_callback(self._retry_tasks.discard)

    async def _requeue_later(self, job: ProcessingJob, delay: float) -> None:
        await asyncio.sleep(delay)
        self._queue.put_nowait(job)

    async def _mark_failed(self, outcome: JobFailedTerminal) -> None:
        error = outcome.error
        self.logging.error(
            "Document %s failed after %d attempt(s): %s", error.document_id, error.attempts, error.last_error
        )
        try:
            await self._repository.do_update_document(
                error.document_id,
                DocumentUpdate(status=DocumentStatus.FAILED, processing_error=error.last_error),
            )
        except RepositoryError as exc:
            self.logging.error("Could not mark document %s as failed: %s", error.document_id, exc)
