"""
Client address of a request.

The service runs behind a reverse proxy, so the socket peer is the proxy.
The first X-Forwarded-For entry is the visitor; the peer address is the
fallback for direct connections.
"""

from starlette.requests import Request


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.

    Handles proxies and load balancers by checking X-Forwarded-For header.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first one
        return forwarded_for.split(",")[0].strip()

    return request.client.host if request.client else "unknown"
