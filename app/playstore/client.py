import json
import os
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Union

import google_auth_httplib2
import httplib2
from google.auth.exceptions import RefreshError, TransportError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import HttpRequest

from app.config import ANDROID_PUBLISHER_SCOPE
from app.playstore.errors import CredentialError, PlayStoreError
from app.utils.logger import get_logger

logger = get_logger(__name__)


class VoidedPurchasesPage(NamedTuple):
    voided_purchases: List[Dict[str, Any]]
    # Opaque; empty when there are no more pages
    next_page_token: str


def _load_credentials(blob: Union[bytes, str, None]) -> service_account.Credentials:
    """Parse a service-account JSON blob into scoped credentials."""
    if not blob:
        raise CredentialError("service account credentials are empty")

    if isinstance(blob, bytes):
        try:
            blob = blob.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CredentialError(f"service account credentials are not valid UTF-8: {e}") from e

    try:
        info = json.loads(blob)
    except ValueError as e:
        raise CredentialError(f"service account credentials are not valid JSON: {e}") from e
    if not isinstance(info, dict):
        raise CredentialError("service account credentials must be a JSON object")

    try:
        return service_account.Credentials.from_service_account_info(
            info,
            scopes=[ANDROID_PUBLISHER_SCOPE]
        )
    except (ValueError, KeyError, TypeError) as e:
        raise CredentialError(f"invalid service account credentials: {e}") from e


class GooglePlayClient:
    """
    Client for the Google Play Developer API (androidpublisher v3).

    Every method maps to exactly one vendor call. Vendor failures are raised as
    ``PlayStoreError`` with the HTTP status and reason code, nothing is retried.
    """

    def __init__(self, service, credentials: Optional[service_account.Credentials] = None):
        self.service = service
        self.credentials = credentials

    @classmethod
    def from_service_account_json(
        cls,
        blob: Union[bytes, str],
        http: Optional[httplib2.Http] = None
    ) -> "GooglePlayClient":
        """
        Build a client from the contents of a service-account JSON key.

        When ``http`` is given it is used as the transport for every call and
        the caller is responsible for not sharing it across threads. Otherwise
        each request gets its own authorized transport.
        """
        credentials = _load_credentials(blob)

        if http is not None:
            service = build(
                'androidpublisher', 'v3',
                http=google_auth_httplib2.AuthorizedHttp(credentials, http=http),
                cache_discovery=False
            )
        else:
            # httplib2.Http is not thread-safe; give each request its own
            def build_request(_http, *args, **kwargs):
                authorized = google_auth_httplib2.AuthorizedHttp(credentials, http=httplib2.Http())
                return HttpRequest(authorized, *args, **kwargs)

            service = build(
                'androidpublisher', 'v3',
                http=google_auth_httplib2.AuthorizedHttp(credentials, http=httplib2.Http()),
                requestBuilder=build_request,
                cache_discovery=False
            )

        logger.info(f"Google Play API client initialized for {credentials.service_account_email}")
        return cls(service, credentials=credentials)

    @classmethod
    def with_http(cls, blob: Union[bytes, str], http: Optional[httplib2.Http]) -> "GooglePlayClient":
        """Build a client that sends every request through ``http``."""
        if http is None:
            raise ValueError("http client is required")
        return cls.from_service_account_json(blob, http=http)

    @classmethod
    def from_service_account_file(
        cls,
        path: str,
        http: Optional[httplib2.Http] = None
    ) -> "GooglePlayClient":
        if not os.path.exists(path):
            raise CredentialError(f"Google Play service account file not found: {path}")
        with open(path, "rb") as f:
            blob = f.read()
        return cls.from_service_account_json(blob, http=http)

    def check_credentials(self) -> None:
        """
        Fetch an access token to make sure Google accepts the credentials.

        Raises:
            CredentialError: the token endpoint rejected the credentials
            PlayStoreError: the token endpoint could not be reached
        """
        if self.credentials is None:
            raise CredentialError("client was built without credentials")
        try:
            self.credentials.refresh(google_auth_httplib2.Request(httplib2.Http()))
        except RefreshError as e:
            logger.error(f"Google Play credentials rejected: {e}")
            raise CredentialError(str(e)) from e
        except TransportError as e:
            logger.error(f"Could not reach Google token endpoint: {e}")
            raise PlayStoreError(str(e)) from e

    def _execute(self, request, action: str, purchase_token: Optional[str] = None):
        try:
            response = request.execute()
        except HttpError as e:
            error = PlayStoreError.from_http_error(e)
            logger.error(f"Failed to {action}: {error}")
            raise error from e
        if purchase_token:
            logger.info(f"Completed {action} for token: {purchase_token}")
        else:
            logger.info(f"Completed {action}")
        return response

    def acknowledge_subscription(
        self,
        package_name: str,
        subscription_id: str,
        purchase_token: str,
        developer_payload: Optional[str] = None
    ) -> None:
        """Acknowledge a subscription purchase."""
        body = {"developerPayload": developer_payload} if developer_payload else {}
        request = self.service.purchases().subscriptions().acknowledge(  # type: ignore[attr-defined]
            packageName=package_name,
            subscriptionId=subscription_id,
            token=purchase_token,
            body=body
        )
        self._execute(request, "acknowledge subscription", purchase_token)

    def acknowledge_product(
        self,
        package_name: str,
        product_id: str,
        purchase_token: str,
        developer_payload: Optional[str] = None
    ) -> None:
        """Acknowledge a one-time product purchase."""
        body = {"developerPayload": developer_payload} if developer_payload else {}
        request = self.service.purchases().products().acknowledge(  # type: ignore[attr-defined]
            packageName=package_name,
            productId=product_id,
            token=purchase_token,
            body=body
        )
        self._execute(request, "acknowledge product", purchase_token)

    def verify_subscription(self, package_name: str, subscription_id: str, purchase_token: str) -> Dict[str, Any]:
        """Fetch the current state of a subscription purchase."""
        request = self.service.purchases().subscriptions().get(  # type: ignore[attr-defined]
            packageName=package_name,
            subscriptionId=subscription_id,
            token=purchase_token
        )
        return self._execute(request, "get subscription", purchase_token)

    def verify_product(self, package_name: str, product_id: str, purchase_token: str) -> Dict[str, Any]:
        """Fetch the current state of a one-time product purchase."""
        request = self.service.purchases().products().get(  # type: ignore[attr-defined]
            packageName=package_name,
            productId=product_id,
            token=purchase_token
        )
        return self._execute(request, "get product", purchase_token)

    def cancel_subscription(self, package_name: str, subscription_id: str, purchase_token: str) -> None:
        """Cancel a subscription (stop auto-renew). Access continues until period end."""
        request = self.service.purchases().subscriptions().cancel(  # type: ignore[attr-defined]
            packageName=package_name,
            subscriptionId=subscription_id,
            token=purchase_token
        )
        self._execute(request, "cancel subscription", purchase_token)

    def refund_subscription(self, package_name: str, subscription_id: str, purchase_token: str) -> None:
        """Refund the current period of a subscription; it keeps renewing."""
        request = self.service.purchases().subscriptions().refund(  # type: ignore[attr-defined]
            packageName=package_name,
            subscriptionId=subscription_id,
            token=purchase_token
        )
        self._execute(request, "refund subscription", purchase_token)

    def revoke_subscription(self, package_name: str, subscription_id: str, purchase_token: str) -> None:
        """Refund and immediately end a subscription."""
        request = self.service.purchases().subscriptions().revoke(  # type: ignore[attr-defined]
            packageName=package_name,
            subscriptionId=subscription_id,
            token=purchase_token
        )
        self._execute(request, "revoke subscription", purchase_token)

    def get_voided_purchases(
        self,
        package_name: str,
        start_time: int = 0,
        end_time: int = 0,
        max_results: int = 0,
        voided_type: int = 0,
        page_token: str = ""
    ) -> VoidedPurchasesPage:
        """
        Fetch one page of voided purchases.

        Times are milliseconds since the epoch. Zero values are left out of
        the request so Google applies its defaults (last 30 days, 1000 rows,
        in-app products only).
        """
        params: Dict[str, Any] = {"packageName": package_name}
        if start_time:
            params["startTime"] = start_time
        if end_time:
            params["endTime"] = end_time
        if max_results:
            params["maxResults"] = max_results
        if voided_type:
            params["type"] = voided_type
        if page_token:
            params["token"] = page_token

        request = self.service.purchases().voidedpurchases().list(**params)  # type: ignore[attr-defined]
        response = self._execute(request, "list voided purchases") or {}

        next_page_token = (response.get("tokenPagination") or {}).get("nextPageToken") or ""
        return VoidedPurchasesPage(response.get("voidedPurchases") or [], next_page_token)

    def iter_voided_purchases(
        self,
        package_name: str,
        start_time: int = 0,
        end_time: int = 0,
        max_results: int = 0,
        voided_type: int = 0
    ) -> Iterator[Dict[str, Any]]:
        """Yield voided purchases across all pages."""
        page_token = ""
        while True:
            page = self.get_voided_purchases(
                package_name,
                start_time=start_time,
                end_time=end_time,
                max_results=max_results,
                voided_type=voided_type,
                page_token=page_token
            )
            yield from page.voided_purchases
            if not page.next_page_token:
                return
            page_token = page.next_page_token
