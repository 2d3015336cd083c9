from app.schemas.playstore import (
    SignatureVerifyRequest, SignatureVerifyResponse,
    AcknowledgeRequest, PurchaseActionResponse,
    VoidedPurchasesResponse, PlayStoreErrorResponse
)

__all__ = [
    "SignatureVerifyRequest", "SignatureVerifyResponse",
    "AcknowledgeRequest", "PurchaseActionResponse",
    "VoidedPurchasesResponse", "PlayStoreErrorResponse"
]
