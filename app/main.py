from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.logging_config import configure_logging
from app.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from app.middleware.request_id import RequestIDMiddleware
from app.playstore import PlayStoreError, SignatureError, load_public_key
from app.routers import api, receipts, purchases
from app.utils.logger import get_logger

# Configure logging first
configure_logging()
logger = get_logger(__name__)

# Conditional docs configuration
docs_config = {}
if settings.DEBUG:
    docs_config = {
        "docs_url": "/docs",
        "redoc_url": "/redoc",
        "openapi_url": "/openapi.json"
    }
    logger.info("DEBUG mode: Swagger docs enabled at /docs")
else:
    docs_config = {
        "docs_url": None,
        "redoc_url": None,
        "openapi_url": None
    }

app = FastAPI(
    title="Play Receipts API",
    description="Google Play receipt signature verification and purchase lifecycle management",
    version="1.0.0",
    **docs_config
)

# Set up rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(PlayStoreError)
async def play_store_error_handler(request: Request, exc: PlayStoreError):
    """Surface the vendor's status and reason unchanged; 502 when Google sent no status."""
    return JSONResponse(status_code=exc.status_code or 502, content=exc.to_dict())


# Add Request ID middleware first for proper request tracing
app.add_middleware(RequestIDMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(api.router)
app.include_router(receipts.router)
app.include_router(purchases.router)

@app.on_event("startup")
async def startup_event():
    """Log configuration problems that would only surface on the first request."""
    if settings.GOOGLE_PLAY_PUBLIC_KEY:
        try:
            load_public_key(settings.GOOGLE_PLAY_PUBLIC_KEY)
            logger.info("GOOGLE_PLAY_PUBLIC_KEY loaded")
        except SignatureError as e:
            logger.error(f"GOOGLE_PLAY_PUBLIC_KEY is unusable: {e}")
    else:
        logger.warning("GOOGLE_PLAY_PUBLIC_KEY not set, requests must supply public_key")

    if not settings.GOOGLE_PLAY_PACKAGE_NAME:
        logger.warning("GOOGLE_PLAY_PACKAGE_NAME not set, purchase routes require package_name")

    mode = "DEBUG" if settings.DEBUG else "PRODUCTION"
    logger.info(f"Play Receipts API started in {mode} mode")
