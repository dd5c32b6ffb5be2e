from abc import abstractmethod

import httpx
from shared.clients.ClientInterface import ClientInterface

from shared.helper.HelperConfig import HelperConfig
from shared.models.errors import EmbeddingUnavailable

# auth, quota and rate-limit responses put the remote endpoint into cooldown
BREAKER_STATUS_CODES = (401, 403, 429)


class EmbedClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # model and embedding config
        self.embed_model = helper_config.get_string_val(
            f"{self.get_client_type().upper()}_MODEL", default=self._get_default_model()
        )

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "embed"
        """
        return "embed"

    def _get_default_timeout(self) -> float:
        return 10.0

    @abstractmethod
    def _get_default_model(self) -> str:
        """
        Returns the model used when EMBED_MODEL is not configured.
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def get_endpoint_embedding(self) -> str:
        """
        Returns the endpoint path for embedding requests.

        Returns:
            str: The endpoint path for embedding requests (e.g. "/api/embed")
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_embed_payload(self, text: str) -> dict:
        """Build the backend-specific request body for an embedding request.

        Args:
            text (str): The text to embed.

        Returns:
            dict: JSON-serialisable request body.
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_embedding_from_response(self, response_data: dict | list) -> list[float]:
        """Extract the embedding vector from a raw embedding API response.

        Args:
            response_data (dict | list): The parsed JSON response body.

        Returns:
            list[float]: The embedding vector.

        Raises:
            ValueError: If the response does not contain a usable vector.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_embed(self, text: str) -> list[float]:
        """Send an embedding request and return the extracted vector.

        Args:
            text (str): The text to embed.

        Returns:
            list[float]: The raw, non-normalized embedding vector.

        Raises:
            EmbeddingUnavailable: If the request fails or the response holds no vector.
                trips_breaker is set for transport errors, timeouts and 401/403/429.
        """
        body = self.get_embed_payload(text)
        try:
            response = await self.do_request(method="POST", endpoint=self.get_endpoint_embedding(), json=body)
        except httpx.TimeoutException as e:
            raise EmbeddingUnavailable(f"Embedding request timed out after {self.timeout}s: {e}", trips_breaker=True) from e
        except httpx.TransportError as e:
            raise EmbeddingUnavailable(f"Embedding endpoint unreachable: {e}", trips_breaker=True) from e

        if not response.is_success:
            self.logging.warning(
                "Embedding request failed: status %d, body: %s",
                response.status_code,
                response.text[:200],
            )
            raise EmbeddingUnavailable(
                "Embedding request failed with status %d." % response.status_code,
                status_code=response.status_code,
                trips_breaker=response.status_code in BREAKER_STATUS_CODES,
            )

        try:
            return self.extract_embedding_from_response(response.json())
        except ValueError as e:
            raise EmbeddingUnavailable(f"Malformed embedding response: {e}", status_code=response.status_code) from e
