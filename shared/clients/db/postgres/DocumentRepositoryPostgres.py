from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from shared.clients.db.DocumentRepositoryInterface import DocumentRepositoryInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.document import Document, DocumentStatus, DocumentUpdate
from shared.models.errors import RepositoryError
from shared.models.search import FullTextPage, FullTextRow

DOCUMENT_COLUMNS = (
    "id, user_id, title, status::text AS status, content, summary, file_path, file_name, "
    "file_size_bytes, file_type::text AS file_type, mime_type, processing_error, "
    "created_at, updated_at, deleted_at"
)

# title and content share one english tsvector, matching the GIN index of the documents table
TS_DOCUMENT = "to_tsvector('english', title || ' ' || COALESCE(content, ''))"
TS_QUERY = "plainto_tsquery('english', :query)"

UPDATABLE_COLUMNS = ("status", "content", "summary", "processing_error")


class DocumentRepositoryPostgres(DocumentRepositoryInterface):
    """Document repository on PostgreSQL through SQLAlchemy's asyncio engine (asyncpg driver)."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._url = self.get_config_val("URL", default=None, val_type="string")
        self._pool_size = self.get_config_val("POOL_SIZE", default=5, val_type="number")
        self._engine: AsyncEngine | None = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    def _get_engine_name(self) -> str:
        return "Postgres"

    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="URL", val_type="string", default=None),
            EnvConfig(env_key="POOL_SIZE", val_type="number", default=5),
        ]

    ##########################################
    ############## LIFECYCLE #################
    ##########################################

    async def boot(self) -> None:
        self._engine = create_async_engine(self._url, pool_size=int(self._pool_size), pool_pre_ping=True)
        self.logging.info("Postgres document repository initialised (pool size %d)", int(self._pool_size))

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None

    async def _execute(self, statement: str, params: dict | None = None) -> list[dict]:
        """Run a statement in its own transaction and return the rows as dicts.

        Raises:
            RepositoryError: If the engine is not booted or the statement fails.
        """
        if self._engine is None:
            raise RepositoryError("Postgres engine not initialised. Call boot() before querying.")
        try:
            async with self._engine.begin() as conn:
                result = await conn.execute(text(statement), params or {})
                if not result.returns_rows:
                    return []
                return [dict(row._mapping) for row in result.fetchall()]
        except (SQLAlchemyError, OSError) as e:
            raise RepositoryError(f"Postgres query failed: {e}") from e

    @staticmethod
    def _row_to_document(row: dict) -> Document:
        data = dict(row)
        data["id"] = str(data["id"])
        data["owner_id"] = str(data.pop("user_id"))
        return Document(**data)

    ##########################################
    ############## DOCUMENTS #################
    ##########################################

    async def do_get_document(self, document_id: str) -> Document | None:
        rows = await self._execute(
            f"SELECT {DOCUMENT_COLUMNS} FROM documents WHERE id = :document_id AND deleted_at IS NULL",
            {"document_id": document_id},
        )
        return self._row_to_document(rows[0]) if rows else None

    async def do_update_document(self, document_id: str, update: DocumentUpdate) -> None:
        fields = {key: value for key, value in update.changed_fields().items() if key in UPDATABLE_COLUMNS}
        if not fields:
            return
        if isinstance(fields.get("status"), DocumentStatus):
            fields["status"] = fields["status"].value
        assignments = ", ".join(
            f"{key} = CAST(:{key} AS document_status)" if key == "status" else f"{key} = :{key}" for key in fields
        )
        await self._execute(
            f"UPDATE documents SET {assignments}, updated_at = NOW() WHERE id = :document_id",
            {**fields, "document_id": document_id},
        )

    async def do_get_documents_by_ids(self, document_ids: list[str]) -> list[Document]:
        if not document_ids:
            return []
        rows = await self._execute(
            f"SELECT {DOCUMENT_COLUMNS} FROM documents WHERE id::text = ANY(:document_ids) AND deleted_at IS NULL",
            {"document_ids": list(document_ids)},
        )
        return [self._row_to_document(row) for row in rows]

    async def do_list_documents_by_status(self, statuses: list[DocumentStatus]) -> list[Document]:
        if not statuses:
            return []
        rows = await self._execute(
            f"SELECT {DOCUMENT_COLUMNS} FROM documents "
            "WHERE status::text = ANY(:statuses) AND deleted_at IS NULL ORDER BY created_at",
            {"statuses": [status.value for status in statuses]},
        )
        return [self._row_to_document(row) for row in rows]

    ##########################################
    ################ SEARCH ##################
    ##########################################

    async def do_full_text_search(self, query: str, owner_id: str | None, limit: int, offset: int) -> FullTextPage:
        where = f"deleted_at IS NULL AND {TS_DOCUMENT} @@ {TS_QUERY}"
        params: dict = {"query": query}
        if owner_id is not None:
            where += " AND user_id::text = :owner_id"
            params["owner_id"] = owner_id

        count_rows = await self._execute(f"SELECT COUNT(*) AS total FROM documents WHERE {where}", params)
        total = int(count_rows[0]["total"]) if count_rows else 0
        if total == 0:
            return FullTextPage(rows=[], total=0)

        rows = await self._execute(
            f"SELECT id::text AS id, title, content, file_name, file_type::text AS file_type, "
            f"ts_rank({TS_DOCUMENT}, {TS_QUERY}) AS rank "
            f"FROM documents WHERE {where} ORDER BY rank DESC, id LIMIT :limit OFFSET :offset",
            {**params, "limit": limit, "offset": offset},
        )
        return FullTextPage(rows=[FullTextRow(**row) for row in rows], total=total)

    async def do_get_search_suggestions(self, partial_query: str, limit: int) -> list[str]:
        rows = await self._execute(
            "SELECT query, COUNT(*) AS count FROM search_history "
            "WHERE query ILIKE :pattern GROUP BY query ORDER BY count DESC, query LIMIT :limit",
            {"pattern": f"%{partial_query}%", "limit": limit},
        )
        return [row["query"] for row in rows]

    async def do_log_search(self, owner_id: str, query: str, query_type: str, results_count: int) -> None:
        await self._execute(
            "INSERT INTO search_history (user_id, query, query_type, results_count) "
            "VALUES (CAST(:owner_id AS uuid), :query, :query_type, :results_count)",
            {"owner_id": owner_id, "query": query, "query_type": query_type, "results_count": results_count},
        )
