"""API v1 Router — Search, provider management, cache, and health endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from findr.api.v1.endpoints.cache import router as cache_router
from findr.api.v1.endpoints.health import router as health_router
from findr.api.v1.endpoints.providers import router as providers_router
from findr.api.v1.endpoints.search import router as search_router

router = APIRouter(tags=["v1"])
router.include_router(search_router)
router.include_router(providers_router)
router.include_router(cache_router)
router.include_router(health_router)
