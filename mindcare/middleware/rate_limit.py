"""Rate limiting using slowapi.

Protects the public signup, sign-in, and invite validation endpoints,
where a caller could otherwise enumerate invite codes.
"""

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from starlette.requests import Request
from starlette.responses import JSONResponse

from mindcare.config import settings

# In-memory storage when the store is not Redis (tests, local development)
_storage_uri = (
    settings.redis_url
    if settings.store_backend == "redis" and not settings.testing
    else "memory://"
)

SIGNUP_LIMIT = "10/minute"
LOGIN_LIMIT = "10/minute"
VALIDATE_INVITE_LIMIT = "20/minute"


def _get_real_client_ip(request: Request) -> str:
    """Extract real client IP, respecting X-Forwarded-For behind reverse proxies."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


limiter = Limiter(
    key_func=_get_real_client_ip,
    storage_uri=_storage_uri,
    enabled=not settings.testing,
)


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Return a 429 JSON response when rate limit is exceeded."""
    return JSONResponse(
        status_code=429,
        content={"error": f"Rate limit exceeded: {exc.detail}"},
    )
