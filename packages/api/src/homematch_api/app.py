"""FastAPI application factory."""

from __future__ import annotations

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from homematch_shared import __version__
from homematch_shared.config import settings

from homematch_api.errors import install_error_handlers
from homematch_api.middleware.logging import LoggingMiddleware
from homematch_api.middleware.rate_limit import RateLimitMiddleware
from homematch_api.routers.health import router as health_router
from homematch_api.routers.v1 import v1_router

logger = structlog.get_logger()


def create_app() -> FastAPI:
    app = FastAPI(
        title="HomeMatch API",
        description="Household property discovery API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Custom middleware (order matters: last added = first executed)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(LoggingMiddleware)

    install_error_handlers(app)

    # Routers
    app.include_router(health_router)
    app.include_router(v1_router)

    logger.info("app_created", cors_origins=settings.cors_origins_list)
    return app


app = create_app()
