from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from app.config import settings
from app.middleware.rate_limit import rate_limit_signature
from app.playstore import verify_signature
from app.schemas.playstore import SignatureVerifyRequest, SignatureVerifyResponse
from app.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(
    prefix="/receipts",
    tags=["receipts"],
    responses={400: {"model": SignatureVerifyResponse, "description": "Receipt, key or signature could not be evaluated"}}
)

@router.post("/verify-signature", response_model=SignatureVerifyResponse)
@rate_limit_signature
def verify_receipt_signature(payload: SignatureVerifyRequest, request: Request):
    """
    Check the Play Billing signature of a purchase receipt.

    The receipt must be the original JSON string, byte for byte. A signature
    that does not match is a normal answer (200, ``valid=false``); only inputs
    that cannot be decoded or parsed are rejected with 400.
    """
    public_key = payload.public_key or settings.GOOGLE_PLAY_PUBLIC_KEY
    if not public_key:
        logger.error("No public key in request and GOOGLE_PLAY_PUBLIC_KEY is not set")
        body = SignatureVerifyResponse(
            valid=False,
            error="missing_public_key",
            message="no public key supplied or configured"
        )
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())

    result = verify_signature(public_key, payload.receipt, payload.signature)
    body = SignatureVerifyResponse(
        valid=result.valid,
        error=result.error.value if result.error else None,
        message=result.message
    )

    if result.error:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())

    logger.info(f"Receipt signature checked: valid={result.valid}")
    return body
