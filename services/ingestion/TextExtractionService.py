"""Plain-text extraction from stored files.

Fetches the raw bytes from object storage and converts them to text:
  pdf      - pypdf, one line block per page
  docx     - python-docx, one line per paragraph
  txt / md - UTF-8 decode
Images (no OCR), audio, video and other files yield empty content.
"""

import asyncio
import io
import math
import re

import docx
from pypdf import PdfReader

from shared.clients.storage.StorageClientInterface import StorageClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import ExtractionMetadata, ExtractionResult, FileType
from shared.models.errors import ExtractionError

LINES_PER_PAGE = 50
SUMMARY_MAX_LENGTH = 500


def _count_words(content: str) -> int:
    return len(content.split())


def _extract_pdf(data: bytes) -> ExtractionResult:
    reader = PdfReader(io.BytesIO(data))
    pages = [page.extract_text() or "" for page in reader.pages]
    content = "\n".join(pages)
    return ExtractionResult(
        content=content,
        metadata=ExtractionMetadata(page_count=len(reader.pages), word_count=_count_words(content)),
    )


def _extract_docx(data: bytes) -> ExtractionResult:
    document = docx.Document(io.BytesIO(data))
    content = "\n".join(paragraph.text for paragraph in document.paragraphs)
    return ExtractionResult(content=content, metadata=ExtractionMetadata(word_count=_count_words(content)))


def _extract_plain_text(data: bytes) -> ExtractionResult:
    content = data.decode("utf-8", errors="replace")
    page_count = math.ceil(len(content.split("\n")) / LINES_PER_PAGE)
    return ExtractionResult(
        content=content,
        metadata=ExtractionMetadata(page_count=page_count, word_count=_count_words(content)),
    )


EXTRACTORS = {
    FileType.PDF: _extract_pdf,
    FileType.DOCX: _extract_docx,
    FileType.TXT: _extract_plain_text,
    FileType.MD: _extract_plain_text,
}


def generate_summary(content: str, max_length: int = SUMMARY_MAX_LENGTH) -> str:
    """Build a short summary from the start of the extracted text.

    Whitespace is collapsed first. Longer texts are cut after the last sentence
    terminator within max_length when it lies beyond half of max_length,
    otherwise hard-truncated with a trailing "...".

    Args:
        content (str): The extracted text.
        max_length (int): Maximum summary length before the ellipsis.

    Returns:
        str: The summary, empty for blank content.
    """
    cleaned = re.sub(r"\s+", " ", content or "").strip()
    if len(cleaned) <= max_length:
        return cleaned

    truncated = cleaned[:max_length]
    last_sentence_end = max(truncated.rfind("."), truncated.rfind("?"), truncated.rfind("!"))
    if last_sentence_end > max_length * 0.5:
        return truncated[:last_sentence_end + 1]
    return truncated + "..."


class TextExtractionService:
    def __init__(self, helper_config: HelperConfig, storage_client: StorageClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._storage = storage_client

    async def extract_text(self, file_path: str, file_type: FileType | str) -> ExtractionResult:
        """Fetch a stored file and extract its plain text.

        Parsing runs in a worker thread so several documents can be parsed in parallel.

        Args:
            file_path (str): Object key of the file in the storage bucket.
            file_type (FileType | str): Declared type of the file.

        Returns:
            ExtractionResult: The text plus page and word counts.

        Raises:
            ExtractionError: If the file cannot be fetched or parsed.
        """
        try:
            extractor = EXTRACTORS.get(FileType(file_type))
            if extractor is None:
                # no OCR or transcription: nothing searchable to extract
                return ExtractionResult(content="", metadata=ExtractionMetadata(word_count=0))

            data = await self._storage.do_get_object(self._storage.bucket, file_path)
            result = await asyncio.to_thread(extractor, data)
        except Exception as e:
            self.logging.error("Text extraction failed for %s (%s): %s", file_path, file_type, e)
            raise ExtractionError(f"Failed to extract text: {e}") from e

        self.logging.debug(
            "Extracted %d words from %s (%s).", result.metadata.word_count, file_path, file_type
        )
        return result

    def generate_summary(self, content: str, max_length: int = SUMMARY_MAX_LENGTH) -> str:
        return generate_summary(content, max_length)
