"""
Bearer token authentication for the stats API.

A missing or non-Bearer Authorization header is a 401; a token that does not
equal the configured secret is a 403.
"""

import hmac
from typing import Optional

from fastapi import Header

from linktrack.core.exceptions import ForbiddenError, UnauthorizedError
from linktrack.core.setting import settings

BEARER_PREFIX = "Bearer "


def require_api_token(authorization: Optional[str] = Header(default=None)) -> None:
    """FastAPI dependency validating the stats API token."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise UnauthorizedError()

    token = authorization[len(BEARER_PREFIX):]
    expected = settings.API_TOKEN
    if not expected or not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        raise ForbiddenError()
