from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request, Response
from app.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)

# Create limiter instance; storage is any `limits` URI (memory://, redis://host:port)
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    default_limits=[settings.RATE_LIMIT_DEFAULT]
)

# Rate limiting configurations for different endpoint groups
RATE_LIMITS = {
    # Offline signature checks are cheap
    "signature": "600/minute",

    # Purchase reads hit the Google Play quota
    "purchase_read": "300/minute",

    # Acknowledge / cancel / refund / revoke
    "purchase_write": "60/minute",

    # Health checks (very generous for monitoring tools)
    "health": "300/minute"
}

def get_rate_limit_for_endpoint(endpoint: str) -> str:
    """Get rate limit configuration for specific endpoint."""
    return RATE_LIMITS.get(endpoint, "100/minute")

async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """
    Custom rate limit exceeded handler with helpful error messages.
    """
    logger.warning(f"Rate limit exceeded for {get_remote_address(request)} on {request.url.path}: {exc.detail}")
    return Response(
        content=f"Rate limit exceeded: {exc.detail}. Please try again later.",
        status_code=429,
        headers={"Retry-After": "60"}
    )

# Rate limiting decorators for different endpoint types
def rate_limit_signature(func):
    """Rate limit for signature verification endpoints."""
    return limiter.limit(get_rate_limit_for_endpoint("signature"))(func)

def rate_limit_purchase_read(func):
    """Rate limit for purchase lookup endpoints."""
    return limiter.limit(get_rate_limit_for_endpoint("purchase_read"))(func)

def rate_limit_purchase_write(func):
    """Rate limit for purchase lifecycle endpoints."""
    return limiter.limit(get_rate_limit_for_endpoint("purchase_write"))(func)
