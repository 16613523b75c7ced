"""Query and search request models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from findr.core.sorting import SortOrder


class SearchOptions(BaseModel):
    """Options controlling one aggregated search."""

    limit: int | None = Field(default=None, ge=1, description="Result-count hint passed to every provider")
    sort_order: SortOrder = Field(default=SortOrder.RELEVANCE, description="Ordering policy: relevance | recency | source")
    stream: bool = Field(default=False, description="Emit a snapshot per provider completion via SSE")


class SearchRequest(BaseModel):
    """Incoming search request from the API."""

    query: str = Field(description="Search query text", min_length=1, max_length=2000)
    options: SearchOptions = Field(default_factory=SearchOptions, description="Search behavior options")
