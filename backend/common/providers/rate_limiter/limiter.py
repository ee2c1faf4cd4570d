"""Global rate limiter instance for SlowAPI."""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from common.core.config import settings


def get_rate_limit_key(request: Request) -> str:
    """Limit authenticated callers per user, everyone else per address."""
    user_id = request.headers.get("x-user-id")
    if user_id:
        return f"user:{user_id}"
    return get_remote_address(request)


# Multiple limits: both must be satisfied (whichever is hit first applies)
# Point storage_uri at Redis to share counters across API pods
limiter = Limiter(
    key_func=get_rate_limit_key,
    default_limits=settings.rate_limit_default,
    storage_uri=settings.rate_limit_storage_uri,
    enabled=settings.rate_limit_enabled,
)
