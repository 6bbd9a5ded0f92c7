"""
Rate limiting using slowapi.

Requests are keyed by client IP.  The default limit applies to every route
through SlowAPIMiddleware; generation gets a tighter per-endpoint limit
because every call reaches the paid model APIs.
"""

import ipaddress
import logging

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)


def _is_public_ip(value: str) -> bool:
    """True for a syntactically valid, non-private, non-loopback address.

    Private addresses in forwarding headers can be spoofed to share a bucket
    with internal traffic, so they are ignored.
    """
    try:
        addr = ipaddress.ip_address(value)
    except ValueError:
        return False
    return not (addr.is_private or addr.is_loopback or addr.is_link_local)


def _get_real_ip(request: Request) -> str:
    """Extract the client IP from proxy headers, falling back to the peer address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        # Comma-separated list; first entry is the client
        candidate = forwarded.split(",")[0].strip()
        if _is_public_ip(candidate):
            return candidate
    real_ip = request.headers.get("x-real-ip")
    if real_ip and _is_public_ip(real_ip.strip()):
        return real_ip.strip()
    return get_remote_address(request)


# Format: "count/period" where period can be: second, minute, hour, day
RATE_LIMITS = {
    "generate": "10/minute",
    "default": "100/minute",
}

_storage_uri = settings.redis_url if settings.redis_url else "memory://"

if not settings.redis_url and settings.is_production:
    logger.warning(
        "Rate limiter using in-memory storage; limits are per process. Set REDIS_URL to share them."
    )

limiter = Limiter(
    key_func=_get_real_ip,
    storage_uri=_storage_uri,
    default_limits=[RATE_LIMITS["default"]],
)
