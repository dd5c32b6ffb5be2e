from abc import ABC, abstractmethod
from typing import Any

import httpx
from httpx._types import QueryParamTypes, RequestContent

from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

CONFIG_READERS = {
    "string": "get_string_val",
    "number": "get_number_val",
    "bool": "get_bool_val",
    "list": "get_list_val",
}


class ClientInterface(ABC):
    """Base class of the HTTP-backed collaborators (embedding endpoint, vector database).

    A subclass names its client type and engine, lists the configuration it
    reads and provides base URL, auth header and endpoint paths. Connection
    handling and request plumbing live here.

    Configuration keys are namespaced "{TYPE}_{ENGINE}_{KEY}", e.g.
    RAG_QDRANT_BASE_URL. The request timeout is read from "{TYPE}_TIMEOUT".
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self._client: httpx.AsyncClient | None = None
        self.timeout = helper_config.get_number_val(
            f"{self.get_client_type().upper()}_TIMEOUT", default=self._get_default_timeout()
        )
        self.validate_full_configuration()

    async def __aenter__(self) -> "ClientInterface":
        await self.boot()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """Read every configured key once so missing or malformed values fail at construction.

        Raises:
            ValueError: If a required value is unset or cannot be parsed.
        """
        for config in self._get_required_config():
            self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    def is_booted(self) -> bool:
        return self._client is not None

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_client_type(self) -> str:
        return self._get_client_type().lower()

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """Read a configuration value of this client, e.g. raw_key "API_KEY" reads RAG_QDRANT_API_KEY.

        Args:
            raw_key (str): Key without the client prefix.
            default (Any): Value used when the key is unset; None makes the key required.
            val_type (str): "string", "number", "bool" or "list".

        Raises:
            ValueError: If the key is required but unset, or val_type is unsupported.
        """
        reader = CONFIG_READERS.get(val_type)
        if reader is None:
            raise ValueError(
                f"Unsupported config value type '{val_type}' for '{raw_key}' "
                f"in {self.get_client_type().upper()} client '{self.get_engine_name()}'."
            )
        key = f"{self.get_client_type().upper()}_{self.get_engine_name().upper()}_{raw_key.upper()}"
        return getattr(self._helper_config, reader)(key, default=default)

    def _get_default_timeout(self) -> float:
        return 30.0

    @abstractmethod
    def _get_client_type(self) -> str:
        """Client type used as configuration prefix, e.g. "rag"."""
        pass

    @abstractmethod
    def _get_engine_name(self) -> str:
        """Engine name as in the module and class name, e.g. "Qdrant"."""
        pass

    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        pass

    @abstractmethod
    def _get_auth_header(self) -> dict:
        """Auth headers for the backend; empty when no credentials are configured."""
        pass

    @abstractmethod
    def _get_base_url(self) -> str:
        pass

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def boot(self) -> None:
        self._client = httpx.AsyncClient(base_url=self._get_base_url().rstrip("/"), timeout=self.timeout)
        self.logging.info(
            "%s client '%s' initialised for %r", self.get_client_type().upper(), self.get_engine_name(), self._get_base_url()
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def do_healthcheck(self) -> httpx.Response:
        """Raises httpx.HTTPError if the backend is unreachable or unhealthy."""
        return await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck(), raise_on_error=True)

    async def do_request(
        self,
        method: str = "GET",
        endpoint: str = "",
        content: RequestContent | None = None,
        json: dict | list | None = None,
        params: QueryParamTypes | None = None,
        additional_headers: dict | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Send a request to the backend.

        Args:
            method: HTTP method.
            endpoint: Path relative to the base URL; the leading slash is optional.
            content: Raw body. Takes precedence over json.
            json: JSON body.
            params: Query parameters.
            additional_headers: Headers added on top of the auth header.
            raise_on_error: Raise for non-2xx responses after logging them.

        Raises:
            RuntimeError: If boot() has not been awaited.
            httpx.HTTPStatusError: If raise_on_error is set and the status is not 2xx.
            httpx.TransportError: If the backend cannot be reached or times out.
        """
        if self._client is None:
            raise RuntimeError("HTTP client not initialised. Call boot() before making requests.")

        path = "/" + endpoint.strip().lstrip("/") if endpoint.strip() else ""
        headers = {**self._get_auth_header(), **(additional_headers or {})}
        body: dict = {"content": content} if content is not None else {"json": json} if json is not None else {}

        response = await self._client.request(method, path, headers=headers, params=params, **body)

        if raise_on_error and not response.is_success:
            self.logging.error(
                "Request %s %s failed with status %d: %s", method, response.request.url, response.status_code, response.text[:300]
            )
            response.raise_for_status()
        return response
