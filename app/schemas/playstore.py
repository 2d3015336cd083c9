from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List

# Receipt signature schemas
class SignatureVerifyRequest(BaseModel):
    """Schema for checking a receipt signature."""
    receipt: str = Field(..., description="Purchase receipt JSON exactly as returned by Play Billing (originalJson)")
    signature: str = Field(..., description="Base64 signature returned alongside the receipt")
    public_key: Optional[str] = Field(None, description="Base64 licence key; the configured key is used when omitted")

class SignatureVerifyResponse(BaseModel):
    """Schema for signature verification result."""
    valid: bool = Field(..., description="True only when the signature matches the receipt")
    error: Optional[str] = Field(None, description="Set when an input could not be decoded or parsed")
    message: Optional[str] = Field(None, description="Human readable description of the error")

# Purchase lifecycle schemas
class AcknowledgeRequest(BaseModel):
    """Schema for acknowledging a product or subscription purchase."""
    developer_payload: Optional[str] = Field(None, description="Payload stored with the acknowledgement")

class PurchaseActionResponse(BaseModel):
    """Schema for lifecycle actions that return no purchase resource."""
    status: str = Field(..., description="Action status")
    purchase_token: str = Field(..., description="Google Play purchase token")

class VoidedPurchasesResponse(BaseModel):
    """Schema for one page of voided purchases."""
    voided_purchases: List[Dict[str, Any]] = Field(default_factory=list, description="VoidedPurchase resources as returned by Google")
    next_page_token: str = Field("", description="Opaque token for the next page, empty on the last page")

class PlayStoreErrorResponse(BaseModel):
    """Schema for vendor errors surfaced by the purchase routes."""
    status_code: Optional[int] = Field(None, description="HTTP status reported by Google")
    reason: Optional[str] = Field(None, description="Machine-readable reason code, e.g. invalid")
    message: str = Field(..., description="Error message reported by Google")
