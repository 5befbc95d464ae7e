"""
Custom Exceptions

This module defines the error taxonomy of the service and the FastAPI
handlers that turn it into HTTP responses.

Every error carries:
- status_code: HTTP status returned to the client
- error_code: short machine-readable reason
- message: human-readable text, safe to show to the client

Responses use a single envelope: {"success": false, "error": ..., "code": ...}
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class LinkTrackerError(Exception):
    """Base exception for the link tracker service."""

    status_code: int = 500
    error_code: str = "internal_error"
    default_message: str = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "error": self.message, "code": self.error_code}


class NotFoundError(LinkTrackerError):
    """Raised when a site, source, article or metadata cannot be found."""
    status_code = 404
    error_code = "not_found"
    default_message = "Not found"


class UnknownSourceError(NotFoundError):
    error_code = "unknown_source"
    default_message = "Unknown source"

    def __init__(self, source_id: str):
        self.source_id = source_id
        super().__init__()


class UnknownSiteError(NotFoundError):
    error_code = "unknown_site"
    default_message = "Unknown site"

    def __init__(self, site_id: str):
        self.site_id = site_id
        super().__init__()


class BadRequestError(LinkTrackerError):
    """Raised for malformed query parameters (period, dates, limits, site)."""
    status_code = 400
    error_code = "bad_request"
    default_message = "Bad request"

    def __init__(self, message: str = None, error_code: str = None):
        if error_code:
            self.error_code = error_code
        super().__init__(message)


class UnauthorizedError(LinkTrackerError):
    """Raised when the Authorization header is missing or malformed."""
    status_code = 401
    error_code = "unauthorized"
    default_message = "Missing or invalid Authorization header"


class ForbiddenError(LinkTrackerError):
    """Raised when the supplied token does not match the configured secret."""
    status_code = 403
    error_code = "forbidden"
    default_message = "Invalid token"


class RateLimitedError(LinkTrackerError):
    """Raised when a client exceeds the request rate for an endpoint."""
    status_code = 429
    error_code = "rate_limited"
    default_message = "Rate limit exceeded"


class UpstreamUnavailableError(LinkTrackerError):
    """Raised when the content store or an outbound HTTP call fails."""
    status_code = 502
    error_code = "upstream_unavailable"
    default_message = "Upstream service unavailable"

    def __init__(self, service_name: str, original_error: Exception = None):
        self.service_name = service_name
        self.original_error = original_error
        super().__init__(f"Service '{service_name}' is unavailable")


class InternalError(LinkTrackerError):
    """Generic fault surfaced to clients without internal detail."""


class ConfigurationError(LinkTrackerError):
    """Raised when site/source configuration cannot be loaded."""
    error_code = "configuration_error"


class UnsupportedStrategyError(ConfigurationError):
    """Raised when a site names a metadata strategy the router cannot serve."""
    error_code = "unsupported_strategy"

    def __init__(self, strategy):
        self.strategy = strategy
        super().__init__(f"Unsupported metadata strategy: {strategy!r}")


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers on the FastAPI app.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(LinkTrackerError)
    async def link_tracker_error_handler(request: Request, exc: LinkTrackerError) -> JSONResponse:
        if exc.status_code >= 500:
            # Internal detail stays in the server log
            return JSONResponse(
                status_code=exc.status_code,
                content=InternalError().to_dict() if isinstance(exc, ConfigurationError) else exc.to_dict(),
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        error = RateLimitedError()
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = "Endpoint not found" if exc.status_code == 404 else str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": message, "code": "http_error"},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(status_code=500, content=InternalError().to_dict())
