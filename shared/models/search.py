"""Pydantic models for search requests and responses."""

from pydantic import BaseModel, Field

from shared.models.embedding import ChunkMetadata


class SearchRequest(BaseModel):
    """Natural language search query for one user's index."""

    query: str
    user_id: str
    limit: int = Field(default=5, ge=1, le=100)


class SearchResultItem(BaseModel):
    """Best-matching chunk of a single file."""

    file_id: str
    file_name: str
    content: str
    similarity: float
    metadata: ChunkMetadata


class SearchResponse(BaseModel):
    """Ranked results returned for a search, at most one per file."""

    query: str
    results: list[SearchResultItem]
    total: int
