"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) to
improve testability and separation of concerns compared to a monolithic main.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from wallet_api.api.routes import health_router, transactions_router
from wallet_api.core.config import settings
from wallet_api.core.database import init_db
from wallet_api.core.exception_handlers import setup_exception_handlers
from wallet_api.core.logging import configure_logging
from wallet_api.core.middleware import request_id_middleware
from wallet_api.core.openapi import apply_openapi_customizations

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if settings.db.create_tables_on_startup:
        init_db()
    logger.info(
        "app.started",
        extra={
            "app_env": settings.app_env,
            "rate_limit_enabled": settings.app.rate_limit_enabled,
            "rate_limit_requests": settings.app.rate_limit_requests,
            "rate_limit_window_s": settings.app.rate_limit_window_seconds,
            "rate_limit_fail_open": settings.app.rate_limit_fail_open,
        },
    )
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Wallet Ledger API",
        description=(
            "Multi-user wallet backend: record income and expense transactions, "
            "list them per user and compute an exact balance summary. "
            "All /transactions routes are protected by a sliding-window rate limit."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=lifespan,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(transactions_router)
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
