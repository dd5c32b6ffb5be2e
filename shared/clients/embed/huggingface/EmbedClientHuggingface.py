from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class EmbedClientHuggingface(EmbedClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://api-inference.huggingface.co", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Huggingface"

    def _get_default_model(self) -> str:
        return "sentence-transformers/all-MiniLM-L6-v2"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://api-inference.huggingface.co"),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        else:
            return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return f"/models/{self.embed_model}"

    def get_endpoint_embedding(self) -> str:
        # feature-extraction pipeline returns the pooled sentence vector
        return f"/pipeline/feature-extraction/{self.embed_model}"

    ################ PAYLOAD BUILDER ##################
    def get_embed_payload(self, text: str) -> dict:
        """Build the inference API request body.

        Args:
            text (str): The text to embed.

        Returns:
            dict: {"inputs": "...", "options": {"wait_for_model": true}}
        """
        return {"inputs": text, "options": {"wait_for_model": True}}

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_embedding_from_response(self, response_data: dict | list) -> list[float]:
        """Extract the vector from a feature-extraction response.

        The pipeline answers either with a flat vector or, for batched inputs,
        with a list holding one vector per input.

        Raises:
            ValueError: If the response is an error object or holds no numeric vector.
        """
        if isinstance(response_data, dict):
            raise ValueError(f"Inference API returned an object instead of a vector: {response_data.get('error', response_data)}")
        vector = response_data
        if vector and isinstance(vector[0], list):
            vector = vector[0]
        if not vector or not all(isinstance(v, (int, float)) for v in vector):
            raise ValueError("Inference API response does not contain a numeric vector.")
        return [float(v) for v in vector]
