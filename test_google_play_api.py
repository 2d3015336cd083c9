"""
Tests for the Google Play Developer API client.

The vendor service is either a MagicMock (to check which endpoint is called
with which arguments) or a real discovery-built service on top of
``HttpMockSequence`` (to check request execution and error decoding).
No test talks to Google.
"""
import json
from unittest.mock import MagicMock

import httplib2
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from google.auth.exceptions import RefreshError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import HttpMockSequence

from app.playstore.client import GooglePlayClient, VoidedPurchasesPage
from app.playstore.errors import CredentialError, PlayStoreError

INVALID_VALUE = json.dumps({
    "error": {
        "code": 400,
        "message": "Invalid Value",
        "errors": [{"message": "Invalid Value", "domain": "global", "reason": "invalid"}],
    }
}).encode("utf-8")

APPLICATION_NOT_FOUND = json.dumps({
    "error": {
        "code": 404,
        "message": "No application was found for the given package name.",
        "errors": [{
            "message": "No application was found for the given package name.",
            "domain": "androidpublisher",
            "reason": "applicationNotFound",
        }],
    }
}).encode("utf-8")


def _http_error(status: int, content: bytes) -> HttpError:
    return HttpError(httplib2.Response({"status": status}), content, uri="https://androidpublisher.googleapis.com/")


@pytest.fixture(scope="module")
def service_account_json() -> str:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    ).decode("ascii")
    return json.dumps({
        "type": "service_account",
        "project_id": "play-receipts-test",
        "private_key_id": "dummy",
        "private_key": pem,
        "client_email": "receipts@play-receipts-test.iam.gserviceaccount.com",
        "client_id": "dummy",
        "auth_uri": "https://accounts.google.com/o/oauth2/auth",
        "token_uri": "https://oauth2.googleapis.com/token",
    })


@pytest.fixture
def service():
    return MagicMock()


@pytest.fixture
def client(service):
    return GooglePlayClient(service)


# --- construction -----------------------------------------------------------

@pytest.mark.parametrize("blob", [None, b"", "", b"not json", "[]", "{}", b"\xff\xfe"])
def test_from_service_account_json_rejects_bad_blobs(blob):
    with pytest.raises(CredentialError):
        GooglePlayClient.from_service_account_json(blob)


def test_from_service_account_json_builds_service(service_account_json):
    client = GooglePlayClient.from_service_account_json(service_account_json.encode("utf-8"))

    assert client.service is not None
    assert client.credentials.service_account_email == "receipts@play-receipts-test.iam.gserviceaccount.com"
    assert "https://www.googleapis.com/auth/androidpublisher" in client.credentials.scopes


def test_with_http_uses_given_transport(service_account_json):
    client = GooglePlayClient.with_http(service_account_json, httplib2.Http())
    assert client.service is not None


def test_with_http_requires_transport(service_account_json):
    with pytest.raises(ValueError, match="http client is required"):
        GooglePlayClient.with_http(service_account_json, None)


def test_from_service_account_file(tmp_path, service_account_json):
    path = tmp_path / "purchase-service-account.json"
    path.write_text(service_account_json)

    client = GooglePlayClient.from_service_account_file(str(path))
    assert client.credentials is not None


def test_from_service_account_file_missing(tmp_path):
    with pytest.raises(CredentialError, match="not found"):
        GooglePlayClient.from_service_account_file(str(tmp_path / "missing.json"))


def test_check_credentials_rejected(client):
    client.credentials = MagicMock()
    client.credentials.refresh.side_effect = RefreshError("invalid_grant: Invalid grant: account not found")

    with pytest.raises(CredentialError, match="invalid_grant"):
        client.check_credentials()


def test_check_credentials_without_credentials(client):
    with pytest.raises(CredentialError):
        client.check_credentials()


# --- operations -------------------------------------------------------------

def test_acknowledge_subscription(client, service):
    client.acknowledge_subscription("package", "subscriptionID", "purchaseToken", developer_payload="user001")

    service.purchases.return_value.subscriptions.return_value.acknowledge.assert_called_once_with(
        packageName="package",
        subscriptionId="subscriptionID",
        token="purchaseToken",
        body={"developerPayload": "user001"}
    )


def test_acknowledge_product_without_payload(client, service):
    client.acknowledge_product("package", "productID", "purchaseToken")

    service.purchases.return_value.products.return_value.acknowledge.assert_called_once_with(
        packageName="package",
        productId="productID",
        token="purchaseToken",
        body={}
    )


def test_verify_subscription_returns_resource(client, service):
    resource = {"kind": "androidpublisher#subscriptionPurchase", "autoRenewing": True, "paymentState": 1}
    get = service.purchases.return_value.subscriptions.return_value.get
    get.return_value.execute.return_value = resource

    assert client.verify_subscription("package", "subscriptionID", "purchaseToken") == resource
    get.assert_called_once_with(packageName="package", subscriptionId="subscriptionID", token="purchaseToken")


def test_verify_product_returns_resource(client, service):
    resource = {"kind": "androidpublisher#productPurchase", "orderId": "GPA.1234", "purchaseState": 0}
    get = service.purchases.return_value.products.return_value.get
    get.return_value.execute.return_value = resource

    assert client.verify_product("package", "productID", "purchaseToken") == resource
    get.assert_called_once_with(packageName="package", productId="productID", token="purchaseToken")


@pytest.mark.parametrize("method", ["cancel", "refund", "revoke"])
def test_subscription_lifecycle_calls(client, service, method):
    getattr(client, f"{method}_subscription")("package", "subscriptionID", "purchaseToken")

    endpoint = getattr(service.purchases.return_value.subscriptions.return_value, method)
    endpoint.assert_called_once_with(packageName="package", subscriptionId="subscriptionID", token="purchaseToken")
    endpoint.return_value.execute.assert_called_once_with()


def test_vendor_error_is_surfaced(client, service):
    cancel = service.purchases.return_value.subscriptions.return_value.cancel
    cancel.return_value.execute.side_effect = _http_error(400, INVALID_VALUE)

    with pytest.raises(PlayStoreError) as excinfo:
        client.cancel_subscription("package", "productID", "purchaseToken")

    error = excinfo.value
    assert error.status_code == 400
    assert error.reason == "invalid"
    assert error.message == "Invalid Value"
    assert str(error) == "googleapi: Error 400: Invalid Value, invalid"
    assert not error.is_transient


@pytest.mark.parametrize("method", ["refund", "revoke"])
def test_unknown_package_is_surfaced(client, service, method):
    endpoint = getattr(service.purchases.return_value.subscriptions.return_value, method)
    endpoint.return_value.execute.side_effect = _http_error(404, APPLICATION_NOT_FOUND)

    with pytest.raises(PlayStoreError) as excinfo:
        getattr(client, f"{method}_subscription")("package", "productID", "purchaseToken")

    assert str(excinfo.value) == (
        "googleapi: Error 404: No application was found for the given package name., applicationNotFound"
    )


def test_error_without_json_body():
    error = PlayStoreError.from_http_error(_http_error(503, b"Service Unavailable"))

    assert error.status_code == 503
    assert error.reason is None
    assert error.is_transient
    assert error.to_dict() == {"status_code": 503, "reason": None, "message": "Service Unavailable"}


def test_long_plain_text_body_is_kept_whole():
    body = "upstream connect error or disconnect/reset before headers. " * 10
    error = PlayStoreError.from_http_error(_http_error(502, body.encode("utf-8")))

    assert len(body.strip()) > 200
    assert error.message == body.strip()


# --- voided purchases -------------------------------------------------------

def test_get_voided_purchases_omits_zero_arguments(client, service):
    voided = service.purchases.return_value.voidedpurchases.return_value.list
    voided.return_value.execute.return_value = {}

    page = client.get_voided_purchases("com.example.app")

    voided.assert_called_once_with(packageName="com.example.app")
    assert page == VoidedPurchasesPage([], "")


def test_get_voided_purchases_passes_window_and_token(client, service):
    voided = service.purchases.return_value.voidedpurchases.return_value.list
    voided.return_value.execute.return_value = {
        "voidedPurchases": [{"orderId": "GPA.1", "voidedReason": 1}],
        "tokenPagination": {"nextPageToken": "next"},
    }

    page = client.get_voided_purchases(
        "com.example.app",
        start_time=1437564796303,
        end_time=1437564896303,
        max_results=2,
        voided_type=1,
        page_token="abc"
    )

    voided.assert_called_once_with(
        packageName="com.example.app",
        startTime=1437564796303,
        endTime=1437564896303,
        maxResults=2,
        type=1,
        token="abc"
    )
    assert page.voided_purchases == [{"orderId": "GPA.1", "voidedReason": 1}]
    assert page.next_page_token == "next"


def test_iter_voided_purchases_follows_tokens(client, service):
    voided = service.purchases.return_value.voidedpurchases.return_value.list
    voided.return_value.execute.side_effect = [
        {"voidedPurchases": [{"orderId": "GPA.1"}, {"orderId": "GPA.2"}], "tokenPagination": {"nextPageToken": "t1"}},
        {"voidedPurchases": [], "tokenPagination": {"nextPageToken": "t2"}},
        {"voidedPurchases": [{"orderId": "GPA.3"}]},
    ]

    orders = [p["orderId"] for p in client.iter_voided_purchases("com.example.app", max_results=2)]

    assert orders == ["GPA.1", "GPA.2", "GPA.3"]
    tokens = [c.kwargs.get("token") for c in voided.call_args_list]
    assert tokens == [None, "t1", "t2"]


def test_iter_voided_purchases_stops_on_error(client, service):
    voided = service.purchases.return_value.voidedpurchases.return_value.list
    voided.return_value.execute.side_effect = [
        {"voidedPurchases": [{"orderId": "GPA.1"}], "tokenPagination": {"nextPageToken": "t1"}},
        _http_error(400, INVALID_VALUE),
    ]

    seen = []
    with pytest.raises(PlayStoreError):
        for purchase in client.iter_voided_purchases("com.example.app"):
            seen.append(purchase["orderId"])
    assert seen == ["GPA.1"]


# --- over a discovery-built service -----------------------------------------

def _mock_service(*responses):
    http = HttpMockSequence(list(responses))
    return build("androidpublisher", "v3", http=http, cache_discovery=False)


def test_discovery_service_product_purchase():
    resource = {"kind": "androidpublisher#productPurchase", "orderId": "GPA.1234", "purchaseState": 0}
    client = GooglePlayClient(_mock_service(({"status": "200"}, json.dumps(resource).encode("utf-8"))))

    assert client.verify_product("com.example.app", "item1", "token") == resource


def test_discovery_service_error():
    client = GooglePlayClient(_mock_service(({"status": "400"}, INVALID_VALUE)))

    with pytest.raises(PlayStoreError) as excinfo:
        client.acknowledge_product("package", "productID", "purchaseToken")
    assert excinfo.value.status_code == 400
    assert excinfo.value.reason == "invalid"
