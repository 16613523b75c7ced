"""Cache endpoint — Clear cached provider results."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from findr.api.deps import get_aggregator
from findr.core.aggregator import Aggregator

router = APIRouter()


class CacheClearResponse(BaseModel):
    enabled: bool = Field(description="Whether a result cache is configured")
    cleared: int = Field(description="Number of entries removed")


@router.delete(
    "/cache",
    response_model=CacheClearResponse,
    summary="Clear Result Cache",
    description="Remove every cached provider result. A no-op when caching is disabled.",
)
async def clear_cache(
    aggregator: Aggregator = Depends(get_aggregator),
) -> CacheClearResponse:
    if aggregator.cache is None:
        return CacheClearResponse(enabled=False, cleared=0)
    return CacheClearResponse(enabled=True, cleared=await aggregator.cache.clear())
