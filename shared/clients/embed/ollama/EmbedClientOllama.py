from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class EmbedClientOllama(EmbedClientInterface):
    """Embeddings from a local or self-hosted Ollama server.

    The model must produce 384-dimensional vectors (e.g. all-minilm); other
    sizes are rejected by EmbeddingService and fall back per call.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="http://localhost:11434", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        self._keep_alive = self.get_config_val("KEEP_ALIVE", default="5m", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    def _get_engine_name(self) -> str:
        return "Ollama"

    def _get_default_model(self) -> str:
        return "all-minilm"

    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="http://localhost:11434"),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="KEEP_ALIVE", val_type="string", default="5m"),
        ]

    def _get_auth_header(self) -> dict:
        # plain ollama has no auth, a reverse proxy in front of it may
        return {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}

    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/api/version"

    def get_endpoint_embedding(self) -> str:
        return "/api/embed"

    ##########################################
    ######### PAYLOAD / RESPONSE #############
    ##########################################

    def get_embed_payload(self, text: str) -> dict:
        """Body for /api/embed. Over-long input is cut by the server instead of failing."""
        return {"model": self.embed_model, "input": text, "truncate": True, "keep_alive": self._keep_alive}

    def extract_embedding_from_response(self, response_data: dict | list) -> list[float]:
        """Return the single vector of an /api/embed response: {"embeddings": [[...]]}.

        Raises:
            ValueError: If the response carries no numeric vector.
        """
        if not isinstance(response_data, dict):
            raise ValueError(f"Unexpected Ollama response type: {type(response_data).__name__}")
        embeddings = response_data.get("embeddings") or []
        if not embeddings or not embeddings[0]:
            raise ValueError(f"Ollama response does not contain embeddings. Response keys: {list(response_data)}")
        vector = embeddings[0]
        if not isinstance(vector, list) or not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in vector):
            raise ValueError("Ollama response does not contain a numeric vector.")
        return [float(v) for v in vector]
