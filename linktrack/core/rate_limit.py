"""
Rate Limiting Configuration

Rate limits for the public redirect surface and the stats API.

Design Decisions:
- Uses slowapi for rate limiting (lightweight, FastAPI-compatible)
- Keyed on the visitor address from X-Forwarded-For, the same address the
  redirect pipeline logs, so visitors behind the proxy get separate buckets
- Limits are read from settings on each request
"""

from slowapi import Limiter

from linktrack.core.client_ip import get_client_ip
from linktrack.core.setting import settings

limiter = Limiter(key_func=get_client_ip, enabled=settings.RATE_LIMIT_ENABLED)

# Rate limit configurations per endpoint
# Format: "count/period" (e.g., "10/minute" means 10 requests per minute)
RATE_LIMITS = {
    "redirect": lambda: settings.RATE_LIMIT_REDIRECT,
    "stats": lambda: settings.RATE_LIMIT_STATS,
}
