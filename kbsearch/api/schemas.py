"""Request and response schemas for the search API."""

from typing import Any

from pydantic import BaseModel, Field


class SearchRequest(BaseModel):
    query: str
    # Accepted for client compatibility; chunk search does not filter.
    filters: dict[str, Any] | None = None
    limit: int | None = Field(default=None, ge=1)


class SearchResultItem(BaseModel):
    id: str
    url: str
    title: str
    author: str
    author_id: str
    published: str
    summary: str
    topics: list[str]
    key_quotes: list[dict[str, Any]]
    diataxis_type: str
    tags: list[str]
    similarity: float
    mdx_path: str
    source_type: str
    matching_excerpt: str
    fragment: str


class SearchResponse(BaseModel):
    query: str
    results: list[SearchResultItem]
    total: int


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None
