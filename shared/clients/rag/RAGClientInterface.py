from abc import abstractmethod
from typing import Any, Callable, TypeVar

import httpx
from pydantic import ValidationError
from shared.clients.rag.models.SearchHit import CollectionStats, SearchHit
from shared.clients.rag.models.VectorPoint import VectorPoint
from shared.clients.ClientInterface import ClientInterface
import json

from shared.helper.HelperConfig import HelperConfig
from shared.models.errors import VectorIndexError

T = TypeVar("T")


class RAGClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "rag"
        """
        return "rag"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_points(self) -> str:
        """
        Returns the endpoint path for points upsert requests.

        Returns:
            str: The endpoint path for points requests (e.g. "/points")
        """
        pass

    @abstractmethod
    def _get_endpoint_search(self) -> str:
        """
        Returns the endpoint path for similarity search requests.

        Returns:
            str: The endpoint path (e.g. "/collections/my_col/points/search")
        """
        pass

    @abstractmethod
    def _get_endpoint_delete_points(self) -> str:
        """
        Returns the endpoint path for deleting points by filter.

        Returns:
            str: The endpoint path (e.g. "/collections/my_col/points/delete")
        """
        pass

    @abstractmethod
    def _get_endpoint_check_collection_existence(self) -> str:
        """
        Returns the endpoint path for collection existence check requests.

        Returns:
            str: The endpoint path (e.g. "/collections/my_col/exists")
        """
        pass

    @abstractmethod
    def _get_endpoint_create_collection(self) -> str:
        """
        Returns the endpoint path for create collection requests.

        Returns:
            str: The endpoint path (e.g. "/collections/my_col")
        """
        pass

    @abstractmethod
    def _get_endpoint_collection_info(self) -> str:
        """
        Returns the endpoint path for collection info requests (point count and status).
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_point(self, point_id: str, vector: list[float], payload: VectorPoint) -> dict:
        """
        Builds the backend-specific representation of a single point.

        Args:
            point_id (str): The point id (the chunk id).
            vector (list[float]): The chunk embedding.
            payload (VectorPoint): The chunk metadata.

        Returns:
            dict: The point ready to be sent in an upsert request.
        """
        pass

    @abstractmethod
    def get_search_payload(self, vector: list[float], owner_id: str | None, limit: int) -> dict:
        """
        Builds the backend-specific request payload for a similarity search.

        Args:
            vector (list[float]): The query vector.
            owner_id (str | None): Restrict the search to this owner, None searches all owners.
            limit (int): The maximum number of hits.

        Returns:
            dict: The payload for the search request.
        """
        pass

    @abstractmethod
    def get_delete_payload(self, document_id: str) -> dict:
        """
        Builds the backend-specific request payload deleting every point of a document.

        Args:
            document_id (str): The document whose points are deleted.

        Returns:
            dict: The payload for the delete request.
        """
        pass

    ################ RESPONSE PARSER ##################
    @abstractmethod
    def extract_search_hits(self, raw_response: dict) -> list[SearchHit]:
        """
        Extracts the ranked hits from a raw search response.

        Args:
            raw_response (dict): The raw JSON response from the search endpoint.

        Returns:
            list[SearchHit]: Hits ordered by descending score.
        """
        pass

    @abstractmethod
    def extract_collection_stats(self, raw_response: dict) -> CollectionStats:
        """
        Extracts point count and readiness from a raw collection info response.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def _do_index_request(self, method: str, endpoint: str, body: dict | None = None, params: dict | None = None) -> httpx.Response:
        """Send a request to the vector database and map every failure to VectorIndexError.

        Raises:
            VectorIndexError: On transport errors and non-2xx responses.
        """
        try:
            return await self.do_request(
                method=method,
                content=json.dumps(body) if body is not None else None,
                params=params,
                endpoint=endpoint,
                additional_headers={"Content-Type": "application/json"},
                raise_on_error=True,
            )
        except httpx.HTTPError as e:
            raise VectorIndexError(f"{self.get_engine_name()} request {method} {endpoint} failed: {e}") from e

    def _parse_response(self, resp: httpx.Response, parser: Callable[[Any], T]) -> T:
        """Decode a 2xx response and parse it, mapping malformed bodies to VectorIndexError.

        Raises:
            VectorIndexError: If the body is not JSON or does not match the expected shape.
        """
        try:
            return parser(resp.json())
        except (ValueError, TypeError, KeyError, AttributeError, ValidationError) as e:
            raise VectorIndexError(
                f"{self.get_engine_name()} returned a malformed response for {resp.request.url.path}: {e}"
            ) from e

    async def do_existence_check(self) -> bool:
        """Check if the collection exists in the rag backend.

        Returns:
            bool: True if the collection exists, False otherwise.
        """
        resp = await self._do_index_request(method="GET", endpoint=self._get_endpoint_check_collection_existence())
        return self._parse_response(resp, lambda data: bool(data.get("result", {}).get("exists")))

    async def do_create_collection(self, vector_size: int = 384, distance: str = "Cosine") -> httpx.Response:
        """Create the collection in the rag backend.

        Args:
            vector_size (int): The size of the vectors in the collection.
            distance (str): The distance metric for the vectors.

        Returns:
            httpx.Response: The response from the create collection request.
        """
        return await self._do_index_request(
            method="PUT",
            body={
                "vectors": {
                    "size": vector_size,
                    "distance": distance}},
            endpoint=self._get_endpoint_create_collection())

    async def do_upsert_points(self, points: list[dict[str, Any]]) -> httpx.Response:
        """Upsert points into the collection.
        Inserts new points or replaces existing ones if a point with the same ID already exists,
        so re-indexing a document with deterministic chunk ids never duplicates points.

        Args:
            points (list[dict[str, Any]]): Points built with get_point().

        Returns:
            httpx.Response: The response from the upsert request.
        """
        return await self._do_index_request(
            method="PUT",
            body={"points": points},
            params={"wait": "true"},
            endpoint=self._get_endpoint_points())

    async def do_search(self, vector: list[float], owner_id: str | None = None, limit: int = 10) -> list[SearchHit]:
        """Run a similarity search against the collection.

        Args:
            vector (list[float]): The query vector.
            owner_id (str | None): Restrict hits to this owner, None searches all owners.
            limit (int): The maximum number of hits.

        Returns:
            list[SearchHit]: Hits ordered by descending score.
        """
        resp = await self._do_index_request(
            method="POST",
            body=self.get_search_payload(vector, owner_id, limit),
            endpoint=self._get_endpoint_search(),
        )
        return self._parse_response(resp, self.extract_search_hits)

    async def do_delete_by_document(self, document_id: str) -> None:
        """Deletes all points of a document.
        Used before re-indexing a document and when a document is removed.

        Args:
            document_id (str): The document whose points are deleted.
        """
        await self._do_index_request(
            method="POST",
            body=self.get_delete_payload(document_id),
            params={"wait": "true"},
            endpoint=self._get_endpoint_delete_points(),
        )

    async def do_fetch_collection_stats(self) -> CollectionStats:
        """Fetch the number of stored vectors and whether the collection is ready.

        Returns:
            CollectionStats: Point count and readiness of the collection.
        """
        resp = await self._do_index_request(method="GET", endpoint=self._get_endpoint_collection_info())
        return self._parse_response(resp, self.extract_collection_stats)
