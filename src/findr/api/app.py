"""FastAPI application factory and lifecycle management."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from findr import __version__
from findr.api.deps import set_aggregator
from findr.api.v1.router import router as v1_router
from findr.config.settings import Settings
from findr.core.aggregator import Aggregator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "findr-config.yaml"
CONFIG_FILE_ENV = "FINDR_CONFIG_FILE"


def create_app(settings: Settings | None = None, aggregator: Aggregator | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads the YAML file named
            by ``FINDR_CONFIG_FILE`` (default ``findr-config.yaml``) when it
            exists, else the environment.
        aggregator: Pre-built aggregator. If None, one is built from
            ``settings`` at startup.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        yaml_path = Path(os.environ.get(CONFIG_FILE_ENV, DEFAULT_CONFIG_FILE))
        if yaml_path.exists():
            logger.info("Loading configuration from %s", yaml_path)
            settings = Settings.from_yaml(yaml_path)
        else:
            settings = Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting Findr v%s", __version__)

        instance = aggregator if aggregator is not None else Aggregator.from_settings(settings)
        set_aggregator(instance)

        app.state.settings = settings
        app.state.aggregator = instance

        logger.info("Findr is ready with providers: %s", instance.enabled_ids())
        yield

        set_aggregator(None)
        logger.info("Findr shutdown complete")

    app = FastAPI(
        title="Findr",
        description="Meta-search aggregation service — fans a query out to many providers and merges the results.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(v1_router, prefix="/v1")

    return app
