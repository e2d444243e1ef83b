"""Integration tests for the Orders API.

Covers:
- Checkout: online payment, cash on delivery, validation envelope,
  payment failures, stock and cart errors, payment replay.
- Customer reads and cancellation, ownership rules.
- Admin list with filters and pagination, status updates, analytics.
- Authentication and authorization boundaries.
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from django.core import mail
from rest_framework.test import APIClient

from modules.orders.models import Order
from modules.payments.views import PAYMENT_NOT_VERIFIED_MESSAGE

pytestmark = pytest.mark.integration

ORDERS_URL = "/api/v1/orders/"


def _detail(order_id):
    return f"{ORDERS_URL}{order_id}/"


def _fields(response):
    return {e["field"] for e in response.json()["errors"]}


def _place(client, payload):
    response = client.post(ORDERS_URL, payload, format="json")
    assert response.status_code == 201, response.json()
    return response.json()["data"]["order"]


# ===========================================================================
# Checkout
# ===========================================================================


class TestCreateOrder:
    def test_online_payment_checkout(self, auth_client, filled_cart, upi_order_payload, sattu):
        response = auth_client.post(ORDERS_URL, upi_order_payload, format="json")

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Order placed successfully."

        order = body["data"]["order"]
        assert order["orderNumber"].startswith("MM")
        assert len(order["orderNumber"]) == 11
        assert order["paymentStatus"] == "paid"
        assert order["orderStatus"] == "pending"
        assert order["paymentId"] == "pay_TEST456"
        assert order["paymentIntentId"] == "order_TEST123"
        assert order["subtotal"] == "598.00"
        assert order["shippingCost"] == "0.00"
        assert order["tax"] == "107.64"
        assert order["totalAmount"] == "705.64"
        assert order["notes"] == "Leave at the door"
        assert order["shippingAddress"]["zipCode"] == "110001"
        assert order["shippingAddress"]["country"] == "India"
        assert [h["status"] for h in order["statusHistory"]] == ["pending"]
        assert order["items"] == [
            {
                "productId": str(sattu.id),
                "name": "Sattu",
                "price": "299.00",
                "quantity": 2,
                "image": "https://cdn.example.com/sattu.jpg",
                "lineTotal": "598.00",
            }
        ]

        sattu.refresh_from_db()
        assert sattu.stock == 8
        assert auth_client.get("/api/v1/cart/").json()["data"]["items"] == []

    def test_cash_on_delivery_checkout(self, auth_client, filled_cart, cod_order_payload):
        order = _place(auth_client, cod_order_payload)
        assert order["paymentMethod"] == "cod"
        assert order["paymentStatus"] == "pending"
        assert order["paymentId"] is None

    def test_bad_signature_is_rejected_generically(
        self, auth_client, filled_cart, upi_order_payload, sattu
    ):
        upi_order_payload["payment"]["razorpay_signature"] = "f" * 64

        response = auth_client.post(ORDERS_URL, upi_order_payload, format="json")

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": PAYMENT_NOT_VERIFIED_MESSAGE,
        }
        assert Order.objects.count() == 0
        sattu.refresh_from_db()
        assert sattu.stock == 10

    def test_online_method_without_payment(self, auth_client, filled_cart, upi_order_payload):
        del upi_order_payload["payment"]
        response = auth_client.post(ORDERS_URL, upi_order_payload, format="json")
        assert response.status_code == 400
        assert "payment" in _fields(response)

    def test_missing_payment_reported_with_address_errors(
        self, auth_client, filled_cart, upi_order_payload
    ):
        del upi_order_payload["payment"]
        upi_order_payload["shippingAddress"]["zipCode"] = "123"

        response = auth_client.post(ORDERS_URL, upi_order_payload, format="json")

        assert response.status_code == 400
        assert {"payment", "shippingAddress.zipCode"} <= _fields(response)
        assert Order.objects.count() == 0

    def test_invalid_zip_code(self, auth_client, filled_cart, cod_order_payload):
        cod_order_payload["shippingAddress"]["zipCode"] = "12345"

        response = auth_client.post(ORDERS_URL, cod_order_payload, format="json")

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert {
            "field": "shippingAddress.zipCode",
            "message": "ZIP code must be exactly 6 digits.",
        } in body["errors"]

    def test_every_invalid_field_is_reported(self, auth_client, filled_cart, cod_order_payload):
        cod_order_payload["shippingAddress"].update(
            {"zipCode": "ABCDEF", "phone": "12345", "name": "A"}
        )
        cod_order_payload["paymentMethod"] = "bitcoin"

        response = auth_client.post(ORDERS_URL, cod_order_payload, format="json")

        assert response.status_code == 400
        assert {
            "shippingAddress.zipCode",
            "shippingAddress.phone",
            "shippingAddress.name",
            "paymentMethod",
        } <= _fields(response)

    def test_empty_cart(self, auth_client, customer, cod_order_payload):
        response = auth_client.post(ORDERS_URL, cod_order_payload, format="json")
        assert response.status_code == 400
        assert response.json()["message"] == "Your cart is empty."

    def test_out_of_stock(self, auth_client, customer, cart_repository, makhana, cod_order_payload):
        cart_repository.upsert_item(str(customer.pk), str(makhana.id), 4)

        response = auth_client.post(ORDERS_URL, cod_order_payload, format="json")

        assert response.status_code == 409
        assert "Makhana" in response.json()["message"]
        makhana.refresh_from_db()
        assert makhana.stock == 3

    def test_inactive_product_in_cart(
        self, auth_client, customer, cart_repository, inactive_product, cod_order_payload
    ):
        cart_repository.upsert_item(str(customer.pk), str(inactive_product.id), 1)
        response = auth_client.post(ORDERS_URL, cod_order_payload, format="json")
        assert response.status_code == 400

    def test_replayed_payment_returns_existing_order(
        self, auth_client, filled_cart, upi_order_payload
    ):
        first = _place(auth_client, upi_order_payload)

        response = auth_client.post(ORDERS_URL, upi_order_payload, format="json")

        assert response.status_code == 200
        assert response.json()["data"]["order"]["id"] == first["id"]
        assert Order.objects.count() == 1

    def test_payment_reused_by_another_customer(
        self,
        auth_client,
        other_client,
        other_customer,
        filled_cart,
        upi_order_payload,
        sattu,
    ):
        _place(auth_client, upi_order_payload)
        filled_cart.upsert_item(str(other_customer.pk), str(sattu.id), 1)

        response = other_client.post(ORDERS_URL, upi_order_payload, format="json")

        assert response.status_code == 409
        assert Order.objects.count() == 1

    def test_confirmation_email_after_commit(
        self,
        django_capture_on_commit_callbacks,
        auth_client,
        filled_cart,
        cod_order_payload,
    ):
        with django_capture_on_commit_callbacks(execute=True):
            order = _place(auth_client, cod_order_payload)

        assert len(mail.outbox) == 1
        assert order["orderNumber"] in mail.outbox[0].subject
        assert mail.outbox[0].to == ["asha@example.com"]


# ===========================================================================
# Customer reads and cancellation
# ===========================================================================


class TestCustomerOrders:
    def test_retrieve_own_order(self, auth_client, placed_order):
        response = auth_client.get(_detail(placed_order.id))
        assert response.status_code == 200
        assert response.json()["data"]["order"]["orderNumber"] == placed_order.order_number

    def test_other_customer_gets_403(self, other_client, placed_order):
        response = other_client.get(_detail(placed_order.id))
        assert response.status_code == 403
        assert response.json()["success"] is False

    def test_admin_can_read_any_order(self, admin_client, placed_order):
        assert admin_client.get(_detail(placed_order.id)).status_code == 200

    @pytest.mark.parametrize("order_id", [uuid4(), "not-a-uuid"])
    def test_unknown_order_is_404(self, auth_client, order_id):
        response = auth_client.get(_detail(order_id))
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Order not found."}

    def test_my_orders_lists_only_own(self, auth_client, other_client, placed_order):
        mine = auth_client.get(f"{ORDERS_URL}my-orders/").json()["data"]
        theirs = other_client.get(f"{ORDERS_URL}my-orders/").json()["data"]

        assert [o["id"] for o in mine] == [str(placed_order.id)]
        assert theirs == []

    def test_cancel(self, auth_client, placed_order, sattu):
        response = auth_client.post(
            f"{_detail(placed_order.id)}cancel/", {"note": "Changed my mind"}, format="json"
        )

        assert response.status_code == 200
        order = response.json()["data"]["order"]
        assert order["orderStatus"] == "cancelled"
        assert order["statusHistory"][-1]["note"] == "Changed my mind"
        sattu.refresh_from_db()
        assert sattu.stock == 10

    def test_cancel_twice_is_400(self, auth_client, placed_order):
        url = f"{_detail(placed_order.id)}cancel/"
        auth_client.post(url, format="json")
        response = auth_client.post(url, format="json")
        assert response.status_code == 400

    def test_cannot_cancel_someone_elses_order(self, other_client, placed_order):
        response = other_client.post(f"{_detail(placed_order.id)}cancel/", format="json")
        assert response.status_code == 403


# ===========================================================================
# Admin
# ===========================================================================


class TestAdminOrders:
    def test_list_is_paginated(self, admin_client, placed_order):
        response = admin_client.get(ORDERS_URL)

        assert response.status_code == 200
        data = response.json()["data"]
        assert [o["orderNumber"] for o in data["orders"]] == [placed_order.order_number]
        assert data["orders"][0]["itemCount"] == 2
        assert data["pagination"]["total"] == 1
        assert data["pagination"]["page"] == 1

    def test_list_filters(self, admin_client, placed_order):
        def count(**params):
            return len(admin_client.get(ORDERS_URL, params).json()["data"]["orders"])

        assert count(status="pending") == 1
        assert count(status="shipped") == 0
        assert count(paymentMethod="cod") == 1
        assert count(paymentStatus="paid") == 0
        assert count(userId=placed_order.user_id) == 1
        assert count(min_total="1000") == 0
        assert count(search=placed_order.order_number) == 1

    def test_invalid_filter_value(self, admin_client):
        response = admin_client.get(ORDERS_URL, {"status": "lost"})
        assert response.status_code == 400

    def test_customer_cannot_list_all(self, auth_client):
        assert auth_client.get(ORDERS_URL).status_code == 403

    def test_ship_with_tracking_number(self, admin_client, placed_order):
        url = f"{_detail(placed_order.id)}status/"
        for status in ("confirmed", "processing"):
            assert admin_client.patch(url, {"status": status}, format="json").status_code == 200

        response = admin_client.patch(
            url, {"status": "shipped", "trackingNumber": "TRK123456"}, format="json"
        )

        assert response.status_code == 200
        order = response.json()["data"]["order"]
        assert order["orderStatus"] == "shipped"
        assert order["trackingNumber"] == "TRK123456"
        assert [h["status"] for h in order["statusHistory"]] == [
            "pending",
            "confirmed",
            "processing",
            "shipped",
        ]

    def test_invalid_transition_is_400(self, admin_client, placed_order):
        response = admin_client.patch(
            f"{_detail(placed_order.id)}status/", {"status": "delivered"}, format="json"
        )
        assert response.status_code == 400
        assert "Cannot transition" in response.json()["message"]

    def test_unknown_status_value(self, admin_client, placed_order):
        response = admin_client.patch(
            f"{_detail(placed_order.id)}status/", {"status": "lost"}, format="json"
        )
        assert response.status_code == 400
        assert "status" in _fields(response)

    def test_status_update_on_missing_order(self, admin_client):
        response = admin_client.patch(
            f"{_detail(uuid4())}status/", {"status": "confirmed"}, format="json"
        )
        assert response.status_code == 404

    def test_customer_cannot_update_status(self, auth_client, placed_order):
        response = auth_client.patch(
            f"{_detail(placed_order.id)}status/", {"status": "confirmed"}, format="json"
        )
        assert response.status_code == 403

    def test_analytics(
        self, admin_client, auth_client, filled_cart, upi_order_payload, placed_order, sattu
    ):
        filled_cart.upsert_item(str(placed_order.user_id), str(sattu.id), 2)
        _place(auth_client, upi_order_payload)

        response = admin_client.get(f"{ORDERS_URL}analytics/summary/")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["totalOrders"] == 2
        assert data["pendingOrders"] == 2
        assert data["revenue"] == "705.64"
        assert data["averageOrderValue"] == "705.64"
        assert data["ordersByStatus"]["pending"] == 2
        assert data["ordersByStatus"]["shipped"] == 0
        assert data["ordersByPaymentStatus"] == {
            "pending": 1,
            "paid": 1,
            "failed": 0,
            "refunded": 0,
        }
        assert data["totalProducts"] == 1
        assert data["totalUsers"] == 2

    def test_cancelled_orders_do_not_count_as_revenue(
        self, admin_client, auth_client, filled_cart, upi_order_payload
    ):
        order = _place(auth_client, upi_order_payload)
        auth_client.post(f"{_detail(order['id'])}cancel/", format="json")

        data = admin_client.get(f"{ORDERS_URL}analytics/summary/").json()["data"]

        assert Decimal(data["revenue"]) == Decimal("0.00")
        assert Decimal(data["averageOrderValue"]) == Decimal("0.00")

    def test_customer_cannot_read_analytics(self, auth_client):
        assert auth_client.get(f"{ORDERS_URL}analytics/summary/").status_code == 403


# ===========================================================================
# Authentication
# ===========================================================================


class TestAuthentication:
    @pytest.mark.parametrize(
        "method,url",
        [
            ("get", ORDERS_URL),
            ("post", ORDERS_URL),
            ("get", f"{ORDERS_URL}my-orders/"),
            ("get", f"{ORDERS_URL}analytics/summary/"),
        ],
    )
    def test_anonymous_requests_are_401(self, method, url):
        response = getattr(APIClient(), method)(url)
        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_jwt_bearer_token(self, customer, placed_order):
        client = APIClient()
        tokens = client.post(
            "/api/v1/auth/token/",
            {"username": "asha", "password": "testpass123"},
            format="json",
        ).json()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")

        response = client.get(f"{ORDERS_URL}my-orders/")

        assert response.status_code == 200
        assert len(response.json()["data"]) == 1
