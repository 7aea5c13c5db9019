"""
ConceptForge HTTP API.

Thin adapter exposing the pipeline over HTTP:

    from conceptforge.api.main import create_app
    app = create_app()

or from the command line:

    conceptforge serve --port 8000
"""

from __future__ import annotations

from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from conceptforge import __version__
from conceptforge.api.routes import concept_map_router, health_router
from conceptforge.core.config import AppConfig
from conceptforge.core.logging import get_logger

logger = get_logger(__name__)


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Application config (defaults if omitted). Its pipeline
            section supplies defaults for request options.
    """
    config = config or AppConfig()

    app = FastAPI(title="ConceptForge API", version=__version__)
    app.state.config = config
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.include_router(health_router)
    app.include_router(concept_map_router)
    return app


def run_server(config: Optional[AppConfig] = None) -> None:
    """Serve the API with uvicorn (blocking)."""
    config = config or AppConfig()
    logger.info("Starting API server", host=config.api.host, port=config.api.port)
    uvicorn.run(
        create_app(config),
        host=config.api.host,
        port=config.api.port,
        log_level=config.logging.level.lower(),
    )
