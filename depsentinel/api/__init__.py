"""DepSentinel HTTP API — FastAPI application factory."""

from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI

from depsentinel.api.deps import init_responder
from depsentinel.api.errors import register_error_handlers
from depsentinel.api.middleware.request_id import RequestIDMiddleware
from depsentinel.api.routers import health
from depsentinel.core.config import Settings
from depsentinel.core.logging import setup_logging


def create_app(
    manifest_path: Path | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the app serving ``GET /api/health`` for one manifest file."""
    setup_logging()
    settings = settings or Settings.from_env()
    init_responder(Path(manifest_path or settings.manifest_path), settings)

    app = FastAPI(title="DepSentinel", docs_url=None, redoc_url=None, openapi_url=None)
    register_error_handlers(app)
    app.add_middleware(RequestIDMiddleware, secret_header=settings.secret_header)
    app.include_router(health.router, prefix="/api", tags=["health"])
    return app
