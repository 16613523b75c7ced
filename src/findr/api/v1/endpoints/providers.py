"""Provider endpoints — List providers and manage their enabled state."""

from __future__ import annotations

import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from findr.api.deps import get_aggregator
from findr.core.aggregator import Aggregator
from findr.exceptions import ProviderNotFoundError
from findr.models.response import ProviderInfo
from findr.providers.base.registry import ProviderRegistration

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Request models ───────────────────────────────────────────────────────


class EnabledRequest(BaseModel):
    """Set a single provider's enabled flag."""

    enabled: bool = Field(description="New enabled state")


class EnabledSetRequest(BaseModel):
    """Replace the set of enabled providers."""

    provider_ids: list[str] = Field(description="Ids to enable; every other provider is disabled")


# ── Helpers ──────────────────────────────────────────────────────────────


def _to_info(registration: ProviderRegistration) -> ProviderInfo:
    provider = registration.provider
    return ProviderInfo(
        id=provider.id,
        display_name=provider.display_name,
        description=provider.description,
        enabled=registration.enabled,
    )


def _info_for(aggregator: Aggregator, provider_id: str) -> ProviderInfo:
    provider = aggregator.get_provider(provider_id)
    if provider is None:
        raise HTTPException(status_code=404, detail=f"Unknown provider: {provider_id}")
    return ProviderInfo(
        id=provider.id,
        display_name=provider.display_name,
        description=provider.description,
        enabled=aggregator.registry.is_enabled(provider_id),
    )


# ── Endpoints ────────────────────────────────────────────────────────────


@router.get(
    "/providers",
    response_model=list[ProviderInfo],
    summary="List Providers",
    description="List every registered provider with its enabled flag, ordered by id or display name.",
)
async def list_providers(
    order_by: Literal["id", "name"] = Query(default="id", description="Sort key: id | name"),
    aggregator: Aggregator = Depends(get_aggregator),
) -> list[ProviderInfo]:
    return [_to_info(registration) for registration in aggregator.list_providers(order_by)]


@router.put(
    "/providers/enabled",
    response_model=list[ProviderInfo],
    summary="Set Enabled Providers",
    description="Enable exactly the given provider ids and disable every other provider. Unknown ids are ignored.",
)
async def set_enabled_providers(
    body: EnabledSetRequest,
    aggregator: Aggregator = Depends(get_aggregator),
) -> list[ProviderInfo]:
    aggregator.set_enabled_ids(body.provider_ids)
    logger.info("Enabled providers set to %s", aggregator.enabled_ids())
    return [_to_info(registration) for registration in aggregator.list_providers()]


@router.get(
    "/providers/{provider_id}",
    response_model=ProviderInfo,
    summary="Get Provider",
    responses={404: {"description": "Unknown provider"}},
)
async def get_provider(
    provider_id: str,
    aggregator: Aggregator = Depends(get_aggregator),
) -> ProviderInfo:
    return _info_for(aggregator, provider_id)


@router.put(
    "/providers/{provider_id}/enabled",
    response_model=ProviderInfo,
    summary="Enable or Disable Provider",
    responses={404: {"description": "Unknown provider"}},
)
async def set_provider_enabled(
    provider_id: str,
    body: EnabledRequest,
    aggregator: Aggregator = Depends(get_aggregator),
) -> ProviderInfo:
    try:
        aggregator.set_enabled(provider_id, body.enabled)
    except ProviderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return _info_for(aggregator, provider_id)


@router.post(
    "/providers/{provider_id}/toggle",
    response_model=ProviderInfo,
    summary="Toggle Provider",
    responses={404: {"description": "Unknown provider"}},
)
async def toggle_provider(
    provider_id: str,
    aggregator: Aggregator = Depends(get_aggregator),
) -> ProviderInfo:
    try:
        aggregator.toggle(provider_id)
    except ProviderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return _info_for(aggregator, provider_id)
