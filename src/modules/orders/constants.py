"""Order domain constants.

Defines status choices and valid status transitions for the order
state machine.  ``delivered`` and ``cancelled`` are terminal; ``cancelled``
is reachable from every non-terminal state.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"


class PaymentMethod(models.TextChoices):
    COD = "cod", "Cash on delivery"
    CARD = "card", "Card"
    UPI = "upi", "UPI"
    NETBANKING = "netbanking", "Net banking"


# Methods settled through the payment gateway before the order exists.
GATEWAY_PAYMENT_METHODS: set[str] = {
    PaymentMethod.CARD,
    PaymentMethod.UPI,
    PaymentMethod.NETBANKING,
}

VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

# Customers may only cancel before the parcel leaves the warehouse.
CUSTOMER_CANCELLABLE_STATES: set[str] = {
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
}

# Status changes the customer is emailed about (cancellation has its own event).
NOTIFIABLE_STATES: set[str] = {OrderStatus.SHIPPED, OrderStatus.DELIVERED}

ORDER_NUMBER_PREFIX = "MM"
ORDER_NUMBER_MAX_RETRIES = 5

INITIAL_STATUS_NOTE = "Order placed"
