"""
Input Validators

Parsing helpers for stats query parameters.

Limits accept a positive integer or "all" (unbounded). The countries limit
additionally accepts 0, which switches country statistics off.
"""

import re
from typing import Optional

from linktrack.core.exceptions import BadRequestError

UNBOUNDED = "all"

_INTEGER = re.compile(r"^\d{1,9}$")


def parse_limit(raw: Optional[str], default: int) -> Optional[int]:
    """
    Parse the `limit` parameter for per-article lists.

    Args:
        raw: Raw query value (None when absent)
        default: Limit used when the parameter is absent

    Returns:
        Positive integer, or None for "all"

    Raises:
        BadRequestError: For anything else
    """
    if raw is None or raw == "":
        return default
    raw = raw.strip().lower()
    if raw == UNBOUNDED:
        return None
    if not _INTEGER.match(raw) or int(raw) < 1:
        raise BadRequestError("Parameter \"limit\" must be a positive integer or 'all'", "invalid_limit")
    return int(raw)


def parse_countries_limit(raw: Optional[str], default: int) -> Optional[int]:
    """
    Parse the `countries_limit` parameter.

    Returns:
        0 when country statistics are disabled, a positive integer cap,
        or None for "all"
    """
    if raw is None or raw == "":
        return default
    raw = raw.strip().lower()
    if raw == UNBOUNDED:
        return None
    if not _INTEGER.match(raw):
        raise BadRequestError(
            "Parameter \"countries_limit\" must be 0, a positive integer or 'all'",
            "invalid_countries_limit",
        )
    return int(raw)
