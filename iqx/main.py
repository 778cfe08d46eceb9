"""
Application entry point.

Creates the FastAPI application and wires together:
- Routers (one per dashboard area)
- Error handlers (centralized domain-to-HTTP mapping)
- Security middleware (headers, rate limiting)
- Logging configuration
- Background refetching of watched queries

No business logic belongs here.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from iqx.core.config import settings
from iqx.interfaces.admin import router as admin_router
from iqx.interfaces.arix import router as arix_router
from iqx.interfaces.assistant import router as assistant_router
from iqx.interfaces.billing import router as billing_router
from iqx.interfaces.dependencies import get_refetch_scheduler
from iqx.interfaces.extensions import router as extensions_router
from iqx.interfaces.health import router as health_router
from iqx.interfaces.market import router as market_router
from iqx.interfaces.referral import router as referral_router
from iqx.interfaces.trading import router as trading_router
from iqx.interfaces.watchlist import router as watchlist_router
from iqx.shared.errors.handlers import register_error_handlers
from iqx.shared.logging import configure_logging
from iqx.shared.security.headers import SecurityHeadersMiddleware
from iqx.shared.security.rate_limiting import limiter, rate_limit_exceeded_handler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the refetch scheduler on startup and stop it on shutdown."""
    scheduler = get_refetch_scheduler()
    scheduler.start()
    logger.info("%s %s started", settings.project_name, settings.version)

    yield

    scheduler.stop()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Registers routers, error handlers, and security middleware.
    This is the composition root of the application.

    Returns:
        A fully configured FastAPI application instance.
    """
    configure_logging(level=settings.log_level)

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # --- Rate Limiting ---
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # --- Security Middleware ---
    app.add_middleware(SecurityHeadersMiddleware)

    # --- Error Handlers ---
    register_error_handlers(app)

    # --- Routers ---
    for router in (
        health_router,
        market_router,
        arix_router,
        referral_router,
        billing_router,
        extensions_router,
        watchlist_router,
        trading_router,
        admin_router,
        assistant_router,
    ):
        app.include_router(router, prefix="/api/v1")

    return app


app = create_app()
