"""Integration tests for the payment endpoints.

The gateway is reached through a mocked httpx transport; signature
verification runs for real against the test key secret.
"""

from unittest.mock import patch

import httpx
import pytest
from django.conf import settings
from rest_framework.test import APIClient

from modules.payments.gateway import RazorpayClient
from modules.payments.views import PAYMENT_NOT_VERIFIED_MESSAGE, PAYMENT_UNAVAILABLE_MESSAGE

pytestmark = pytest.mark.integration

CREATE_URL = "/api/v1/payments/create-razorpay-order/"
VERIFY_URL = "/api/v1/payments/verify-payment/"


def _gateway(handler):
    return RazorpayClient(
        key_id=settings.RAZORPAY_KEY_ID,
        key_secret=settings.RAZORPAY_KEY_SECRET,
        base_url=settings.RAZORPAY_API_URL,
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture()
def gateway_ok():
    def handler(request):
        return httpx.Response(200, json={"id": "order_ABC", "amount": 70564, "currency": "INR"})

    with patch("modules.payments.views.build_payment_gateway", return_value=_gateway(handler)):
        yield


@pytest.fixture()
def gateway_down():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with patch("modules.payments.views.build_payment_gateway", return_value=_gateway(handler)):
        yield


class TestCreatePaymentIntent:
    def test_returns_gateway_order(self, auth_client, gateway_ok):
        response = auth_client.post(CREATE_URL, {"amount": 70564}, format="json")

        assert response.status_code == 200
        assert response.json()["data"] == {
            "id": "order_ABC",
            "currency": "INR",
            "amount": 70564,
        }

    def test_gateway_failure_is_502(self, auth_client, gateway_down):
        response = auth_client.post(
            CREATE_URL, {"amount": 70564, "currency": "INR"}, format="json"
        )

        assert response.status_code == 502
        assert response.json() == {"success": False, "message": PAYMENT_UNAVAILABLE_MESSAGE}

    @pytest.mark.parametrize(
        "payload,field",
        [({"amount": 0}, "amount"), ({"amount": 100, "currency": "rupees"}, "currency")],
    )
    def test_invalid_input(self, auth_client, payload, field):
        response = auth_client.post(CREATE_URL, payload, format="json")
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == field

    def test_requires_authentication(self):
        assert APIClient().post(CREATE_URL, {"amount": 100}, format="json").status_code == 401


class TestVerifyPayment:
    def test_valid_signature(self, auth_client, signed_payment):
        response = auth_client.post(VERIFY_URL, signed_payment, format="json")

        assert response.status_code == 200
        assert response.json()["status"] == "success"

    def test_tampered_payment_id(self, auth_client, signed_payment):
        signed_payment["razorpay_payment_id"] = "pay_TEST457"

        response = auth_client.post(VERIFY_URL, signed_payment, format="json")

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "status": "failure",
            "message": PAYMENT_NOT_VERIFIED_MESSAGE,
        }

    def test_padded_signature_is_not_trimmed(self, auth_client, signed_payment):
        signed_payment["razorpay_signature"] = f" {signed_payment['razorpay_signature']} "

        response = auth_client.post(VERIFY_URL, signed_payment, format="json")

        assert response.status_code == 400
        assert response.json()["status"] == "failure"

    def test_whitespace_only_signature(self, auth_client, signed_payment):
        signed_payment["razorpay_signature"] = "   "

        response = auth_client.post(VERIFY_URL, signed_payment, format="json")

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "razorpay_signature"

    def test_missing_fields(self, auth_client):
        response = auth_client.post(VERIFY_URL, {}, format="json")
        assert response.status_code == 400
        assert {e["field"] for e in response.json()["errors"]} == {
            "razorpay_order_id",
            "razorpay_payment_id",
            "razorpay_signature",
        }
