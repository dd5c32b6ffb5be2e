from pydantic import BaseModel

from shared.clients.rag.models.VectorPoint import VectorPoint


class SearchHit(BaseModel):
    """A single ranked result of a vector similarity search.

    Attributes:
        id:      Point id (the chunk id).
        score:   Cosine similarity reported by the backend, higher is better.
        payload: The chunk metadata stored with the vector.
    """

    id: str
    score: float
    payload: VectorPoint


class CollectionStats(BaseModel):
    vector_count: int = 0
    is_ready: bool = False
