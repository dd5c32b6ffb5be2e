from abc import ABC, abstractmethod
from typing import Any

from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.document import Document, DocumentStatus, DocumentUpdate
from shared.models.search import FullTextPage


class DocumentRepositoryInterface(ABC):
    """Access to the relational store holding document records and search history.

    The store is owned by the CRUD layer; the core reads documents, writes back
    processing results and uses the store's full-text index. Every operation
    raises RepositoryError when the store fails.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.validate_full_configuration()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """
        Validates that all required configuration values for the repository are set and valid.

        Raises:
            ValueError: If any required configuration value is missing or invalid.
        """
        for config in self._get_required_config():
            _ = self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        """
        Returns the name of the database engine. E.g. "Postgres"
        """
        pass

    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        pass

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """
        Retrieves the value of a DB_{ENGINE}_{KEY} configuration key.

        Raises:
            ValueError: If the key is required but unset, or the type is unsupported.
        """
        key = f"DB_{self.get_engine_name().upper()}_{raw_key.upper()}"
        if val_type == "string":
            return self._helper_config.get_string_val(key, default=default)
        elif val_type == "number":
            return self._helper_config.get_number_val(key, default=default)
        elif val_type == "bool":
            return self._helper_config.get_bool_val(key, default=default)
        else:
            raise ValueError(f"Unsupported config value type '{val_type}' for env key '{raw_key}' in db client '{self.get_engine_name()}'.")

    ##########################################
    ############## LIFECYCLE #################
    ##########################################

    async def boot(self) -> None:
        pass

    async def close(self) -> None:
        pass

    ##########################################
    ############## DOCUMENTS #################
    ##########################################

    @abstractmethod
    async def do_get_document(self, document_id: str) -> Document | None:
        """Fetch a document by id. Soft-deleted documents are treated as missing.

        Returns:
            Document | None: The document, or None if it does not exist or is deleted.
        """
        pass

    @abstractmethod
    async def do_update_document(self, document_id: str, update: DocumentUpdate) -> None:
        """Apply a partial update; only fields explicitly set on update are written.

        Args:
            document_id (str): The document to update.
            update (DocumentUpdate): The fields to write. updated_at is refreshed.
        """
        pass

    @abstractmethod
    async def do_get_documents_by_ids(self, document_ids: list[str]) -> list[Document]:
        """Fetch the non-deleted documents among the given ids, in no particular order."""
        pass

    @abstractmethod
    async def do_list_documents_by_status(self, statuses: list[DocumentStatus]) -> list[Document]:
        """List non-deleted documents whose status is one of statuses, oldest first."""
        pass

    ##########################################
    ################ SEARCH ##################
    ##########################################

    @abstractmethod
    async def do_full_text_search(self, query: str, owner_id: str | None, limit: int, offset: int) -> FullTextPage:
        """Rank documents against query with the store's full-text index.

        Args:
            query (str): Plain user query; all terms must match.
            owner_id (str | None): Restrict to this owner, None searches all owners.
            limit (int): Page size.
            offset (int): Number of ranked rows to skip.

        Returns:
            FullTextPage: The requested page ordered by descending rank plus the total match count.
        """
        pass

    @abstractmethod
    async def do_get_search_suggestions(self, partial_query: str, limit: int) -> list[str]:
        """Return past queries containing partial_query (case-insensitive), most frequent first."""
        pass

    @abstractmethod
    async def do_log_search(self, owner_id: str, query: str, query_type: str, results_count: int) -> None:
        """Append an entry to the search history."""
        pass
