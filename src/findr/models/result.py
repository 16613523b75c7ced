"""Result models — Raw provider hits and their merged, cross-provider form.

A provider returns ``RawResult`` objects. Within one search, every raw result
sharing the same ``url`` is folded into a single ``AggregatedResult`` that
records which providers contributed to it.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_validator


class RawResult(BaseModel):
    """A provider's unprocessed search hit.

    ``url`` is the natural identity of a hit within one search: hits from
    different providers with the same URL are merged.

    Example::

        RawResult(
            title="Search API landscape in 2025",
            description="Compare search APIs for developer tooling.",
            url="https://example.com/articles/search-api-landscape-2025",
            score=20,
        )
    """

    title: str = Field(description="Title or heading of the hit")
    description: str = Field(default="", description="Snippet or summary text")
    url: str = Field(description="Canonical URL, used as the merge key")
    score: float | None = Field(default=None, description="Provider-specific relevance score")
    timestamp: int | None = Field(default=None, description="Publication time as epoch milliseconds")
    metadata: dict[str, Any] | None = Field(default=None, description="Opaque provider-specific metadata")


class AggregatedResult(BaseModel):
    """All raw results sharing one URL within a search, combined.

    ``provider_ids`` and ``provider_names`` are parallel lists with one entry
    per contributing provider, ordered by descending provider id.
    """

    id: str = Field(description="Identifier generated for this URL within the search")
    title: str
    description: str = ""
    url: str
    score: float | None = Field(
        default=None,
        description="Sum of every contributed score, or None when no contributor supplied one",
    )
    timestamp: int | None = None
    metadata: dict[str, Any] | None = None
    provider_ids: list[str] = Field(min_length=1, description="Contributing provider ids")
    provider_names: list[str] = Field(min_length=1, description="Display names parallel to provider_ids")
    received_at: int = Field(description="Wall-clock epoch ms of the snapshot that produced this result")

    @model_validator(mode="after")
    def _check_parallel_providers(self) -> AggregatedResult:
        if len(self.provider_ids) != len(self.provider_names):
            raise ValueError("provider_ids and provider_names must have the same length")
        return self

    @property
    def effective_timestamp(self) -> int:
        """Explicit timestamp when present, else the time the result was received."""
        return self.timestamp if self.timestamp is not None else self.received_at

    @property
    def score_or_zero(self) -> float:
        return self.score if self.score is not None else 0.0
