"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from repo_extractor.infrastructure.config import get_settings
from repo_extractor.interface.dependencies import shutdown, startup
from repo_extractor.interface.error_handlers import register_error_handlers
from repo_extractor.interface.routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    await startup()
    settings = get_settings()
    logger.info(
        "Extractor ready: discovery order %s, policy %s, token %s",
        ",".join(settings.discovery_order),
        settings.discovery_policy.value,
        "configured" if settings.github_token else "absent",
    )
    try:
        yield
    finally:
        await shutdown()


def create_app() -> FastAPI:
    """Build the extractor API: routes, error envelope and shared HTTP client."""
    app = FastAPI(
        title="GitHub Repository Extractor",
        version="1.0.0",
        description=(
            "Flattens a public GitHub repository into a single text document. "
            "Each file is emitted under a path header; binary files are "
            "replaced by a placeholder. Recent attempts are listed under "
            "/api/logs."
        ),
        lifespan=_lifespan,
    )
    app.include_router(router)
    register_error_handlers(app)

    @app.get("/health", include_in_schema=False)
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
