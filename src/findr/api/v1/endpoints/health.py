"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from findr import __version__
from findr.api.deps import get_aggregator
from findr.core.aggregator import Aggregator

router = APIRouter()


class HealthResponse(BaseModel):
    """System health check response."""

    status: str = Field(description="Health status (e.g. 'healthy')")
    version: str = Field(description="Findr server version")
    service: str = Field(description="Service name ('findr')")
    registered_providers: list[str] = Field(description="Ids of every registered provider")
    enabled_providers: list[str] = Field(description="Ids of the providers a search fans out to")
    cache_enabled: bool = Field(description="Whether provider results are cached")


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="System Health Check",
    description="Returns overall system health, server version, and the registered and enabled providers.",
)
async def health_check(
    aggregator: Aggregator = Depends(get_aggregator),
) -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=__version__,
        service="findr",
        registered_providers=[r.provider.id for r in aggregator.list_providers()],
        enabled_providers=aggregator.enabled_ids(),
        cache_enabled=aggregator.cache is not None,
    )
