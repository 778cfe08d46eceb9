"""
Centralized error handlers for FastAPI.

Maps domain-specific errors to HTTP responses.
No stack traces or internal details are exposed to clients.
All error responses use the ErrorResponse schema.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from iqx.domain.errors import DashboardApiError, VirtualTradingError

logger = logging.getLogger(__name__)

HTTP_400 = 400
HTTP_500 = 500
HTTP_502 = 502


def _error_response(status_code: int, error: str, detail: Optional[str] = None) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: dict[str, Optional[str]] = {"error": error}
    if detail:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body)


def status_for(exc: DashboardApiError) -> int:
    """HTTP status for a domain error.

    A 4xx from upstream is passed through, a local order check failure is
    a 400 and anything else (5xx, unreachable, invalid data) is a 502.
    """
    if exc.status_code is not None and 400 <= exc.status_code < 500:
        return exc.status_code
    if isinstance(exc, VirtualTradingError) and exc.status_code is None:
        return HTTP_400
    return HTTP_502


def register_error_handlers(app: FastAPI) -> None:
    """Register all domain error handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(DashboardApiError)
    async def handle_dashboard_api(
        _request: Request, exc: DashboardApiError
    ) -> JSONResponse:
        """Handle any API client failure."""
        status = status_for(exc)
        logger.warning(
            "%s (upstream status %s) -> %d", type(exc).__name__, exc.status_code, status
        )
        return _error_response(status, type(exc).__name__, exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected(
        _request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all for unexpected errors. Never exposes internals."""
        logger.exception("Unexpected error: %s", type(exc).__name__)
        return _error_response(HTTP_500, "Internal server error")
