"""
Access Logging Middleware

Writes one line per request on the "linktrack.access" logger:

    GET /go/fb/realtruetales/my-story 302 3.41ms IP:81.2.69.142

Server errors are logged at WARNING so they stand out from normal traffic.
Query strings are never logged. The elapsed time is also returned to the
client in the X-Process-Time header.
"""

import logging
import time

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from linktrack.core.client_ip import get_client_ip

logger = logging.getLogger("linktrack.access")


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Times each request and writes the access line."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            f"{request.method} {request.url.path} {response.status_code} "
            f"{elapsed * 1000:.2f}ms IP:{get_client_ip(request)}"
        )

        response.headers["X-Process-Time"] = f"{elapsed:.6f}"
        return response


def add_logging_middleware(app: FastAPI) -> None:
    app.add_middleware(AccessLogMiddleware)
