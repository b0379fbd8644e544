"""Per-client request limits for the substitution endpoint.

The limiter object is shared by the route decorators, so it lives at module
level; whether it is on and how many substitution requests a client may make
are applied from the Settings each app is built with.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from core.config import Settings, get_settings

_substitution_limit = get_settings().substitutions_rate_limit


def limiter_enabled(settings: Settings) -> bool:
    return settings.app_env != "test" and settings.rate_limit_enabled


def substitution_limit() -> str:
    """Current limit string for POST /substitutions, read on every request."""
    return _substitution_limit


def configure_limiter(settings: Settings) -> Limiter:
    global _substitution_limit
    _substitution_limit = settings.substitutions_rate_limit
    limiter.enabled = limiter_enabled(settings)
    return limiter


limiter = Limiter(
    key_func=get_remote_address,
    # Counters are process-wide, so storage is fixed when the module loads
    storage_uri=get_settings().rate_limit_storage_uri,
    enabled=False,
    headers_enabled=True,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    detail = getattr(exc, "detail", None) or "Rate limit exceeded"
    response = JSONResponse(
        status_code=429,
        content={"success": False, "error": {"code": "RATE_LIMITED", "message": f"Rate limit exceeded: {detail}"}},
    )
    # Adds Retry-After and X-RateLimit-* for the limit that was hit
    return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)
