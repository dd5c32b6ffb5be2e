import re
from collections import Counter
from datetime import datetime, timezone

from shared.clients.db.DocumentRepositoryInterface import DocumentRepositoryInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.document import Document, DocumentStatus, DocumentUpdate
from shared.models.search import FullTextPage, FullTextRow

TOKEN_PATTERN = re.compile(r"\w+")


def _tokenize(value: str | None) -> list[str]:
    return TOKEN_PATTERN.findall((value or "").lower())


class DocumentRepositoryMemory(DocumentRepositoryInterface):
    """In-process document repository for local runs and tests.

    Full-text search requires every query term to occur as a token in title or
    content; the rank is the share of document tokens that are query terms.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._documents: dict[str, Document] = {}
        self._search_history: list[dict] = []

    def _get_engine_name(self) -> str:
        return "Memory"

    def _get_required_config(self) -> list[EnvConfig]:
        return []

    ##########################################
    ################ SEEDING #################
    ##########################################

    def add_document(self, document: Document) -> None:
        """Insert or replace a document record, as the CRUD layer would on upload."""
        self._documents[document.id] = document

    ##########################################
    ############## DOCUMENTS #################
    ##########################################

    async def do_get_document(self, document_id: str) -> Document | None:
        document = self._documents.get(document_id)
        if document is None or document.deleted_at is not None:
            return None
        return document

    async def do_update_document(self, document_id: str, update: DocumentUpdate) -> None:
        document = self._documents.get(document_id)
        if document is None:
            return
        fields = update.changed_fields()
        fields["updated_at"] = datetime.now(timezone.utc)
        self._documents[document_id] = document.model_copy(update=fields)

    async def do_get_documents_by_ids(self, document_ids: list[str]) -> list[Document]:
        documents = (self._documents.get(document_id) for document_id in dict.fromkeys(document_ids))
        return [doc for doc in documents if doc is not None and doc.deleted_at is None]

    async def do_list_documents_by_status(self, statuses: list[DocumentStatus]) -> list[Document]:
        matching = [doc for doc in self._documents.values() if doc.status in statuses and doc.deleted_at is None]
        return sorted(matching, key=lambda doc: doc.created_at or datetime.min.replace(tzinfo=timezone.utc))

    ##########################################
    ################ SEARCH ##################
    ##########################################

    async def do_full_text_search(self, query: str, owner_id: str | None, limit: int, offset: int) -> FullTextPage:
        terms = set(_tokenize(query))
        if not terms:
            return FullTextPage(rows=[], total=0)

        ranked: list[FullTextRow] = []
        for doc in self._documents.values():
            if doc.deleted_at is not None or (owner_id is not None and doc.owner_id != owner_id):
                continue
            tokens = _tokenize(doc.title) + _tokenize(doc.content)
            counts = Counter(tokens)
            if not all(counts[term] for term in terms):
                continue
            rank = sum(counts[term] for term in terms) / len(tokens)
            ranked.append(
                FullTextRow(
                    id=doc.id,
                    title=doc.title,
                    content=doc.content,
                    file_name=doc.file_name,
                    file_type=doc.file_type.value if doc.file_type else None,
                    rank=rank,
                )
            )

        ranked.sort(key=lambda row: (-row.rank, row.id))
        return FullTextPage(rows=ranked[offset:offset + limit], total=len(ranked))

    async def do_get_search_suggestions(self, partial_query: str, limit: int) -> list[str]:
        needle = partial_query.lower()
        counts = Counter(entry["query"] for entry in self._search_history if needle in entry["query"].lower())
        ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return [query for query, _ in ordered[:limit]]

    async def do_log_search(self, owner_id: str, query: str, query_type: str, results_count: int) -> None:
        self._search_history.append(
            {
                "owner_id": owner_id,
                "query": query,
                "query_type": query_type,
                "results_count": results_count,
                "created_at": datetime.now(timezone.utc),
            }
        )
