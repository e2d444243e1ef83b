from decimal import Decimal

import pytest
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.orders.constants import PaymentMethod
from modules.orders.dtos import CreateOrderDTO, ShippingAddressDTO
from modules.orders.views import build_order_service
from modules.payments.gateway import compute_signature
from modules.products.models import Product, ProductStatus

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@pytest.fixture()
def customer():
    return User.objects.create_user(
        username="asha", email="asha@example.com", password="testpass123"
    )


@pytest.fixture()
def other_customer():
    return User.objects.create_user(
        username="ravi", email="ravi@example.com", password="testpass123"
    )


@pytest.fixture()
def admin_user():
    return User.objects.create_user(
        username="storeadmin",
        email="admin@example.com",
        password="testpass123",
        is_staff=True,
    )


@pytest.fixture()
def auth_client(customer):
    """APIClient with a force-authenticated customer."""
    client = APIClient()
    client.force_authenticate(user=customer)
    return client


@pytest.fixture()
def other_client(other_customer):
    client = APIClient()
    client.force_authenticate(user=other_customer)
    return client


@pytest.fixture()
def admin_client(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


# ---------------------------------------------------------------------------
# Catalog and cart
# ---------------------------------------------------------------------------


@pytest.fixture()
def sattu():
    return Product.objects.create(
        name="Sattu",
        description="Roasted gram flour",
        category="Staples",
        price=Decimal("299.00"),
        image="https://cdn.example.com/sattu.jpg",
        stock=10,
        status=ProductStatus.ACTIVE,
    )


@pytest.fixture()
def makhana():
    return Product.objects.create(
        name="Makhana",
        category="Snacks",
        price=Decimal("120.00"),
        stock=3,
        status=ProductStatus.ACTIVE,
    )


@pytest.fixture()
def inactive_product():
    return Product.objects.create(
        name="Discontinued Chikki",
        price=Decimal("50.00"),
        stock=10,
        status=ProductStatus.INACTIVE,
    )


@pytest.fixture()
def cart_repository():
    return CartDjangoRepository()


@pytest.fixture()
def filled_cart(customer, sattu, cart_repository):
    """Two units of Sattu in the customer's cart."""
    cart_repository.upsert_item(str(customer.pk), str(sattu.id), 2)
    return cart_repository


# ---------------------------------------------------------------------------
# Checkout payloads
# ---------------------------------------------------------------------------


@pytest.fixture()
def shipping_address():
    return {
        "name": "A B",
        "phone": "9876543210",
        "street": "123 Main Street",
        "city": "Delhi",
        "state": "Delhi",
        "zipCode": "110001",
    }


@pytest.fixture()
def signed_payment():
    """A gateway callback signed with the test key secret."""
    intent_id = "order_TEST123"
    payment_id = "pay_TEST456"
    return {
        "razorpay_order_id": intent_id,
        "razorpay_payment_id": payment_id,
        "razorpay_signature": compute_signature(
            intent_id, payment_id, settings.RAZORPAY_KEY_SECRET
        ),
    }


@pytest.fixture()
def upi_order_payload(shipping_address, signed_payment):
    return {
        "shippingAddress": shipping_address,
        "paymentMethod": "upi",
        "notes": "Leave at the door",
        "payment": signed_payment,
    }


@pytest.fixture()
def cod_order_payload(shipping_address):
    return {"shippingAddress": shipping_address, "paymentMethod": "cod"}


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def order_service():
    return build_order_service()


@pytest.fixture()
def address_dto():
    return ShippingAddressDTO(
        name="A B",
        phone="9876543210",
        street="123 Main Street",
        city="Delhi",
        state="Delhi",
        zip_code="110001",
    )


@pytest.fixture()
def placed_order(order_service, customer, filled_cart, address_dto):
    """A cash-on-delivery order for two units of Sattu, still pending."""
    placement = order_service.create_order(
        CreateOrderDTO(
            user_id=str(customer.pk),
            shipping_address=address_dto,
            payment_method=PaymentMethod.COD,
        )
    )
    return placement.order
