"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.  Payloads are camelCase on the wire.
"""

from __future__ import annotations

from collections.abc import Mapping

from rest_framework import serializers

from modules.orders.constants import GATEWAY_PAYMENT_METHODS, OrderStatus, PaymentMethod
from modules.orders.dtos import PHONE_RE, ZIP_CODE_RE
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.payments.serializers import PaymentConfirmationSerializer

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class ShippingAddressSerializer(serializers.Serializer):
    """Validates every address field so that all failures are reported."""

    name = serializers.CharField(min_length=2, max_length=50)
    phone = serializers.RegexField(
        PHONE_RE,
        error_messages={"invalid": "Enter a valid mobile number."},
    )
    street = serializers.CharField(min_length=5, max_length=100)
    city = serializers.CharField(min_length=2, max_length=50)
    state = serializers.CharField(min_length=2, max_length=50)
    zipCode = serializers.RegexField(
        ZIP_CODE_RE,
        error_messages={"invalid": "ZIP code must be exactly 6 digits."},
    )
    country = serializers.CharField(max_length=56, required=False, default="India")


PAYMENT_REQUIRED_MESSAGE = "Payment confirmation is required for online payment methods."


def _payment_missing(values) -> bool:
    method = values.get("paymentMethod")
    return (
        isinstance(method, str)
        and method in GATEWAY_PAYMENT_METHODS
        and not values.get("payment")
    )


class CreateOrderSerializer(serializers.Serializer):
    """Validates the checkout payload; items come from the cart."""

    shippingAddress = ShippingAddressSerializer()
    paymentMethod = serializers.ChoiceField(choices=PaymentMethod.choices)
    notes = serializers.CharField(
        max_length=500, required=False, default="", allow_blank=True
    )
    payment = PaymentConfirmationSerializer(required=False, allow_null=True)

    def to_internal_value(self, data):
        # validate() is skipped once a field fails, so the cross-field
        # payment check is merged into the field errors here.
        try:
            return super().to_internal_value(data)
        except serializers.ValidationError as exc:
            if not (isinstance(data, Mapping) and isinstance(exc.detail, dict)):
                raise
            if "payment" in exc.detail or not _payment_missing(data):
                raise
            errors = dict(exc.detail)
            errors["payment"] = [PAYMENT_REQUIRED_MESSAGE]
            raise serializers.ValidationError(errors) from exc

    def validate(self, attrs):
        if _payment_missing(attrs):
            raise serializers.ValidationError({"payment": PAYMENT_REQUIRED_MESSAGE})
        return attrs


class UpdateOrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    trackingNumber = serializers.CharField(min_length=5, max_length=50, required=False)
    note = serializers.CharField(
        max_length=200, required=False, default="", allow_blank=True
    )


class CancelOrderSerializer(serializers.Serializer):
    note = serializers.CharField(
        max_length=200, required=False, default="", allow_blank=True
    )


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for the frozen line items."""

    productId = serializers.UUIDField(source="product_id", read_only=True)
    lineTotal = serializers.DecimalField(
        source="line_total", max_digits=12, decimal_places=2, read_only=True
    )

    class Meta:
        model = OrderItem
        fields = ["productId", "name", "price", "quantity", "image", "lineTotal"]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    timestamp = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = OrderStatusHistory
        fields = ["status", "timestamp", "note"]
        read_only_fields = fields


class OrderShippingAddressSerializer(serializers.Serializer):
    name = serializers.CharField(source="shipping_name")
    phone = serializers.CharField(source="shipping_phone")
    street = serializers.CharField(source="shipping_street")
    city = serializers.CharField(source="shipping_city")
    state = serializers.CharField(source="shipping_state")
    zipCode = serializers.CharField(source="shipping_zip_code")
    country = serializers.CharField(source="shipping_country")


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items and history."""

    orderNumber = serializers.CharField(source="order_number", read_only=True)
    userId = serializers.CharField(source="user_id", read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    shippingAddress = OrderShippingAddressSerializer(source="*", read_only=True)
    paymentMethod = serializers.CharField(source="payment_method", read_only=True)
    paymentStatus = serializers.CharField(source="payment_status", read_only=True)
    paymentIntentId = serializers.CharField(source="payment_intent_id", read_only=True)
    paymentId = serializers.CharField(source="payment_id", read_only=True)
    orderStatus = serializers.CharField(source="status", read_only=True)
    shippingCost = serializers.DecimalField(
        source="shipping_cost", max_digits=12, decimal_places=2, read_only=True
    )
    totalAmount = serializers.DecimalField(
        source="total_amount", max_digits=12, decimal_places=2, read_only=True
    )
    trackingNumber = serializers.CharField(source="tracking_number", read_only=True)
    estimatedDelivery = serializers.DateTimeField(
        source="estimated_delivery", read_only=True
    )
    statusHistory = StatusHistorySerializer(
        source="status_history", many=True, read_only=True
    )
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "orderNumber",
            "userId",
            "items",
            "shippingAddress",
            "paymentMethod",
            "paymentStatus",
            "paymentIntentId",
            "paymentId",
            "orderStatus",
            "subtotal",
            "shippingCost",
            "tax",
            "discount",
            "totalAmount",
            "trackingNumber",
            "notes",
            "estimatedDelivery",
            "statusHistory",
            "createdAt",
            "updatedAt",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for the admin order list (no nested relations)."""

    orderNumber = serializers.CharField(source="order_number", read_only=True)
    userId = serializers.CharField(source="user_id", read_only=True)
    shippingName = serializers.CharField(source="shipping_name", read_only=True)
    paymentMethod = serializers.CharField(source="payment_method", read_only=True)
    paymentStatus = serializers.CharField(source="payment_status", read_only=True)
    orderStatus = serializers.CharField(source="status", read_only=True)
    totalAmount = serializers.DecimalField(
        source="total_amount", max_digits=12, decimal_places=2, read_only=True
    )
    itemCount = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "orderNumber",
            "userId",
            "shippingName",
            "paymentMethod",
            "paymentStatus",
            "orderStatus",
            "totalAmount",
            "itemCount",
            "createdAt",
        ]
        read_only_fields = fields

    def get_itemCount(self, obj: Order) -> int:
        return sum(item.quantity for item in obj.items.all())


class OrderAnalyticsSerializer(serializers.Serializer):
    totalOrders = serializers.IntegerField(source="total_orders")
    pendingOrders = serializers.IntegerField(source="pending_orders")
    revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    averageOrderValue = serializers.DecimalField(
        source="average_order_value", max_digits=12, decimal_places=2
    )
    ordersByStatus = serializers.DictField(
        source="orders_by_status", child=serializers.IntegerField()
    )
    ordersByPaymentStatus = serializers.DictField(
        source="orders_by_payment_status", child=serializers.IntegerField()
    )
    totalProducts = serializers.IntegerField(source="total_products")
    lowStockProducts = serializers.IntegerField(source="low_stock_products")
    totalUsers = serializers.IntegerField(source="total_users")
