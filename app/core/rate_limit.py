"""Rate limiting configuration using slowapi."""

from slowapi import Limiter
from starlette.requests import Request

from app.core.config import settings


def _get_real_client_ip(request: Request) -> str:
    """Extract the real client IP behind a reverse proxy or platform cron runner."""
    return (
        request.headers.get("CF-Connecting-IP")
        or request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
        or (request.client.host if request.client else "127.0.0.1")
    )


limiter = Limiter(key_func=_get_real_client_ip)

# Applied to the sweep trigger; a sweep is cheap to repeat but never needs to run hot.
trigger_limit = limiter.limit(settings.trigger_rate_limit)
