"""
Rate Limiting for ProjectHub API
================================
Implements rate limiting using slowapi with in-process memory storage.

Only the unauthenticated credential endpoints are limited:
- /api/register: REGISTER_RATE_LIMIT (3/minute by default)
- /api/signin: SIGNIN_RATE_LIMIT (5/minute, brute force protection)
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from projecthub.core.config import Settings, settings
from projecthub.core.logging_config import logger


def get_client_identifier(request: Request) -> str:
    """Rate limit key: the client's IP address"""
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_client_identifier,
    storage_uri="memory://",
    enabled=settings.RATE_LIMIT_ENABLED,
)


# Limit strings of the most recently configured app; read on every request
_limits = {
    "register": settings.REGISTER_RATE_LIMIT,
    "signin": settings.SIGNIN_RATE_LIMIT,
}


def configure_limiter(app_settings: Settings) -> Limiter:
    """Apply an app's rate limit settings to the shared limiter and clear its counters"""
    limiter.enabled = app_settings.RATE_LIMIT_ENABLED
    _limits["register"] = app_settings.REGISTER_RATE_LIMIT
    _limits["signin"] = app_settings.SIGNIN_RATE_LIMIT
    limiter.reset()
    return limiter


def register_rate_limit() -> str:
    return _limits["register"]


def signin_rate_limit() -> str:
    return _limits["signin"]


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return a JSON error body when a client exceeds its limit"""
    logger.warning(
        f"Rate limit exceeded: {request.method} {request.url.path}",
        extra={
            "event_type": "rate_limited",
            "http_path": request.url.path,
            "client": get_client_identifier(request),
            "limit": str(exc.detail),
        }
    )
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": {
                "code": "RATE_LIMITED",
                "message": "Too many requests. Please try again later.",
                "details": {"limit": str(exc.detail)},
            },
        },
    )
