"""Pydantic models for search requests and responses."""

from enum import Enum

from pydantic import BaseModel, Field


class SearchMode(str, Enum):
    FULLTEXT = "fulltext"
    SEMANTIC = "semantic"
    HYBRID = "hybrid"


class SearchOptions(BaseModel):
    """Pagination and scoping of a search call. owner_id None searches all owners."""

    limit: int = Field(default=20, ge=1)
    offset: int = Field(default=0, ge=0)
    owner_id: str | None = None


class SearchResult(BaseModel):
    """A single document returned by any search mode."""

    id: str
    title: str
    content_snippet: str = ""
    score: float
    highlights: list[str] = []
    file_name: str | None = None
    file_type: str | None = None


class SearchResponse(BaseModel):
    """Ranked page of results plus the total number of matching documents."""

    results: list[SearchResult] = []
    total: int = 0


class FullTextRow(BaseModel):
    """A document matched by the relational full-text index with its native rank."""

    id: str
    title: str
    content: str | None = None
    file_name: str | None = None
    file_type: str | None = None
    rank: float


class FullTextPage(BaseModel):
    rows: list[FullTextRow] = []
    total: int = 0
