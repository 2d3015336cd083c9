from fastapi import APIRouter, Request

from app.middleware.rate_limit import limiter, get_rate_limit_for_endpoint

router = APIRouter()

@router.get("/")
async def root():
    return {"message": "Play Receipts API", "version": "1.0.0"}

@router.get("/health")
@limiter.limit(get_rate_limit_for_endpoint("health"))
async def health_check(request: Request):
    """Health check endpoint for load balancers and monitoring."""
    return {"status": "healthy", "service": "play-receipts-api"}
