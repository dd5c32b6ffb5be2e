from shared.helper.HelperConfig import HelperConfig
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.SearchHit import CollectionStats, SearchHit
from shared.clients.rag.models.VectorPoint import VectorPoint
from shared.models.config import EnvConfig


class RAGClientQdrant(RAGClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="http://localhost:6333", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        self._collection_name = self.get_config_val("COLLECTION", default="documents", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Qdrant"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="http://localhost:6333"),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="COLLECTION", val_type="string", default="documents")
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"api-key": f"{self._api_key}"}
        else:
            return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/healthz"

    def _get_endpoint_points(self) -> str:
        return f"/collections/{self._collection_name}/points"

    def _get_endpoint_search(self) -> str:
        return f"/collections/{self._collection_name}/points/search"

    def _get_endpoint_delete_points(self) -> str:
        return f"/collections/{self._collection_name}/points/delete"

    def _get_endpoint_check_collection_existence(self) -> str:
        return f"/collections/{self._collection_name}/exists"

    def _get_endpoint_create_collection(self) -> str:
        return f"/collections/{self._collection_name}"

    def _get_endpoint_collection_info(self) -> str:
        return f"/collections/{self._collection_name}"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_point(self, point_id: str, vector: list[float], payload: VectorPoint) -> dict:
        return {"id": point_id, "vector": vector, "payload": payload.model_dump()}

    def get_search_payload(self, vector: list[float], owner_id: str | None, limit: int) -> dict:
        payload = {
            "vector": vector,
            "limit": limit,
            "with_payload": True,
        }
        if owner_id is not None:
            payload["filter"] = {"must": [{"key": "owner_id", "match": {"value": owner_id}}]}
        return payload

    def get_delete_payload(self, document_id: str) -> dict:
        return {"filter": {"must": [{"key": "document_id", "match": {"value": document_id}}]}}

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_search_hits(self, raw_response: dict) -> list[SearchHit]:
        hits = [
            SearchHit(id=str(point["id"]), score=point["score"], payload=VectorPoint(**point.get("payload", {})))
            for point in raw_response.get("result", [])
        ]
        return sorted(hits, key=lambda hit: hit.score, reverse=True)

    def extract_collection_stats(self, raw_response: dict) -> CollectionStats:
        result = raw_response.get("result", {})
        return CollectionStats(
            vector_count=result.get("points_count") or 0,
            is_ready=result.get("status") == "green",
        )
