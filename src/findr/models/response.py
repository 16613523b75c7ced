"""Search response models — Snapshots of an aggregated search.

A search produces a sequence of ``SearchSnapshot`` objects, one per provider
completion. Each snapshot holds the full, re-sorted result list merged so far
plus the provider errors accumulated so far. The last snapshot of a search is
authoritative.

Over HTTP, streaming mode carries each snapshot as a ``StreamEvent``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from findr.core.sorting import SortOrder
from findr.exceptions import SearchCancelledError
from findr.models.result import AggregatedResult


class ProviderErrorRecord(BaseModel):
    """A provider that failed (or was cancelled) during a search."""

    provider_id: str
    provider_display_name: str
    error: str = Field(description="Error message, or the cancellation reason")
    error_type: str = Field(default="Exception", description="Exception class name")
    cancelled: bool = Field(default=False, description="True when the failure is a cancellation")

    @classmethod
    def from_exception(cls, provider_id: str, provider_display_name: str, exc: BaseException) -> ProviderErrorRecord:
        if isinstance(exc, SearchCancelledError):
            message, cancelled = exc.reason, True
        else:
            message, cancelled = str(exc) or type(exc).__name__, False
        return cls(
            provider_id=provider_id,
            provider_display_name=provider_display_name,
            error=message,
            error_type=type(exc).__name__,
            cancelled=cancelled,
        )


class SearchSnapshot(BaseModel):
    """One point-in-time, fully sorted view of an aggregated search."""

    query: str = ""
    sort_order: SortOrder = SortOrder.RELEVANCE
    results: list[AggregatedResult] = Field(default_factory=list)
    errors: list[ProviderErrorRecord] = Field(default_factory=list)
    pending: list[str] = Field(default_factory=list, description="Provider ids that have not completed yet")

    @property
    def complete(self) -> bool:
        return not self.pending


class ProviderInfo(BaseModel):
    """Public description of a registered provider."""

    id: str
    display_name: str
    description: str | None = None
    enabled: bool


class StreamEvent(BaseModel):
    """A single Server-Sent Event payload for streaming mode.

    Event types:

    - ``snapshot`` — A provider completed; carries the full ``SearchSnapshot``.
    - ``done``     — All providers completed; carries summary stats.
    - ``error``    — An unexpected error occurred; carries error detail.
    """

    event: str = Field(description="Event type: snapshot | done | error")
    data: dict[str, Any] = Field(default_factory=dict, description="Event payload")
