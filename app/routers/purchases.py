from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from app.dependencies import get_package_name, get_play_client
from app.middleware.rate_limit import rate_limit_purchase_read, rate_limit_purchase_write
from app.playstore import GooglePlayClient
from app.schemas.playstore import (
    AcknowledgeRequest, PurchaseActionResponse,
    VoidedPurchasesResponse, PlayStoreErrorResponse
)
from app.utils.logger import get_logger

logger = get_logger(__name__)

# Handlers are plain `def`: the Google client blocks, FastAPI runs them in its threadpool.
# PlayStoreError raised by the client is rendered by the handler registered in app.main.
router = APIRouter(
    prefix="/purchases",
    tags=["purchases"],
    responses={
        404: {"model": PlayStoreErrorResponse, "description": "Unknown package, product or token"},
        502: {"model": PlayStoreErrorResponse, "description": "Google Play API error"},
        503: {"description": "Google Play API client is not configured"},
    }
)

@router.get("/products/{product_id}/tokens/{token}")
@rate_limit_purchase_read
def get_product_purchase(
    product_id: str,
    token: str,
    request: Request,
    package_name: str = Depends(get_package_name),
    client: GooglePlayClient = Depends(get_play_client)
):
    """Return the ProductPurchase resource for a one-time product."""
    return client.verify_product(package_name, product_id, token)

@router.get("/subscriptions/{subscription_id}/tokens/{token}")
@rate_limit_purchase_read
def get_subscription_purchase(
    subscription_id: str,
    token: str,
    request: Request,
    package_name: str = Depends(get_package_name),
    client: GooglePlayClient = Depends(get_play_client)
):
    """Return the SubscriptionPurchase resource for a subscription."""
    return client.verify_subscription(package_name, subscription_id, token)

@router.post("/products/{product_id}/tokens/{token}/acknowledge", response_model=PurchaseActionResponse)
@rate_limit_purchase_write
def acknowledge_product_purchase(
    product_id: str,
    token: str,
    request: Request,
    body: Optional[AcknowledgeRequest] = None,
    package_name: str = Depends(get_package_name),
    client: GooglePlayClient = Depends(get_play_client)
):
    """Acknowledge a one-time product purchase."""
    payload = body.developer_payload if body else None
    client.acknowledge_product(package_name, product_id, token, developer_payload=payload)
    return PurchaseActionResponse(status="acknowledged", purchase_token=token)

@router.post("/subscriptions/{subscription_id}/tokens/{token}/acknowledge", response_model=PurchaseActionResponse)
@rate_limit_purchase_write
def acknowledge_subscription_purchase(
    subscription_id: str,
    token: str,
    request: Request,
    body: Optional[AcknowledgeRequest] = None,
    package_name: str = Depends(get_package_name),
    client: GooglePlayClient = Depends(get_play_client)
):
    """Acknowledge a subscription purchase."""
    payload = body.developer_payload if body else None
    client.acknowledge_subscription(package_name, subscription_id, token, developer_payload=payload)
    return PurchaseActionResponse(status="acknowledged", purchase_token=token)

@router.post("/subscriptions/{subscription_id}/tokens/{token}/cancel", response_model=PurchaseActionResponse)
@rate_limit_purchase_write
def cancel_subscription_purchase(
    subscription_id: str,
    token: str,
    request: Request,
    package_name: str = Depends(get_package_name),
    client: GooglePlayClient = Depends(get_play_client)
):
    """Stop auto-renew; the user keeps access until the end of the paid period."""
    client.cancel_subscription(package_name, subscription_id, token)
    logger.info(f"Subscription {subscription_id} cancelled for token: {token}")
    return PurchaseActionResponse(status="cancelled", purchase_token=token)

@router.post("/subscriptions/{subscription_id}/tokens/{token}/refund", response_model=PurchaseActionResponse)
@rate_limit_purchase_write
def refund_subscription_purchase(
    subscription_id: str,
    token: str,
    request: Request,
    package_name: str = Depends(get_package_name),
    client: GooglePlayClient = Depends(get_play_client)
):
    """Refund the current period; the subscription keeps renewing."""
    client.refund_subscription(package_name, subscription_id, token)
    logger.info(f"Subscription {subscription_id} refunded for token: {token}")
    return PurchaseActionResponse(status="refunded", purchase_token=token)

@router.post("/subscriptions/{subscription_id}/tokens/{token}/revoke", response_model=PurchaseActionResponse)
@rate_limit_purchase_write
def revoke_subscription_purchase(
    subscription_id: str,
    token: str,
    request: Request,
    package_name: str = Depends(get_package_name),
    client: GooglePlayClient = Depends(get_play_client)
):
    """Refund and end the subscription immediately."""
    client.revoke_subscription(package_name, subscription_id, token)
    logger.info(f"Subscription {subscription_id} revoked for token: {token}")
    return PurchaseActionResponse(status="revoked", purchase_token=token)

@router.get("/voided", response_model=VoidedPurchasesResponse)
@rate_limit_purchase_read
def list_voided_purchases(
    request: Request,
    start_time: int = Query(0, ge=0, description="Oldest void time, milliseconds since epoch (0 = Google default)"),
    end_time: int = Query(0, ge=0, description="Newest void time, milliseconds since epoch (0 = now)"),
    max_results: int = Query(0, ge=0, le=1000, description="Page size (0 = Google default)"),
    voided_type: int = Query(0, alias="type", ge=0, le=1, description="0 = in-app products only, 1 = include subscriptions"),
    token: str = Query("", description="Page token returned by the previous call"),
    package_name: str = Depends(get_package_name),
    client: GooglePlayClient = Depends(get_play_client)
):
    """
    Return one page of voided purchases.

    Pass ``next_page_token`` from the response back as ``token`` until it
    comes back empty.
    """
    page = client.get_voided_purchases(
        package_name,
        start_time=start_time,
        end_time=end_time,
        max_results=max_results,
        voided_type=voided_type,
        page_token=token
    )
    return VoidedPurchasesResponse(
        voided_purchases=page.voided_purchases,
        next_page_token=page.next_page_token
    )
