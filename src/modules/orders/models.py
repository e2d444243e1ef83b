"""Order, OrderItem, and OrderStatusHistory models.

Business rules implemented:
- Invalid status transitions rejected (enforced at service layer).
- Each status write appends exactly one history record (see ``signals``).
- ``total_amount == subtotal + shipping_cost + tax - discount`` on every save.
- Order number ``MM`` + 6 timestamp digits + 3 random digits, unique.
- A gateway payment id belongs to at most one order (unique, nullable).
- OrderItem snapshots product name, price and image at checkout.
"""

from __future__ import annotations

import secrets
import time
from decimal import Decimal
from typing import Any

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import (
    ORDER_NUMBER_PREFIX,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)

MONEY = {"max_digits": 12, "decimal_places": 2}


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    ``order_number`` is the customer-facing identifier; the UUIDv7 ``id``
    is used for API look-ups.  ``user_id`` holds the authenticated user's
    id as a string so that orders survive account clean-ups.
    """

    order_number = models.CharField(max_length=20, unique=True, editable=False)
    user_id = models.CharField(max_length=64)

    shipping_name = models.CharField(max_length=50)
    shipping_phone = models.CharField(max_length=20)
    shipping_street = models.CharField(max_length=100)
    shipping_city = models.CharField(max_length=50)
    shipping_state = models.CharField(max_length=50)
    shipping_zip_code = models.CharField(max_length=6)
    shipping_country = models.CharField(max_length=56, default="India")

    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    payment_intent_id = models.CharField(
        max_length=100, unique=True, null=True, blank=True
    )
    payment_id = models.CharField(max_length=100, unique=True, null=True, blank=True)

    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )

    subtotal = models.DecimalField(**MONEY, default=Decimal("0.00"))
    shipping_cost = models.DecimalField(**MONEY, default=Decimal("0.00"))
    tax = models.DecimalField(**MONEY, default=Decimal("0.00"))
    discount = models.DecimalField(**MONEY, default=Decimal("0.00"))
    total_amount = models.DecimalField(**MONEY, default=Decimal("0.00"))

    tracking_number = models.CharField(max_length=50, blank=True, default="")
    notes = models.TextField(max_length=500, blank=True, default="")
    estimated_delivery = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user_id", "-created_at"], name="orders_user_created_idx"),
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["payment_status"], name="orders_payment_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(total_amount__gte=0),
                name="orders_total_non_negative",
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether transitioning to *new_status* is valid."""
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    def set_status(self, new_status: str, note: str = "") -> None:
        """Change the status; the history row is written when the order is saved."""
        self.status = new_status
        self._status_change_notes = note

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    @property
    def expected_total(self) -> Decimal:
        return self.subtotal + self.shipping_cost + self.tax - self.discount

    @property
    def shipping_address(self) -> dict[str, str]:
        return {
            "name": self.shipping_name,
            "phone": self.shipping_phone,
            "street": self.shipping_street,
            "city": self.shipping_city,
            "state": self.shipping_state,
            "zip_code": self.shipping_zip_code,
            "country": self.shipping_country,
        }

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """``MM`` + last 6 digits of the epoch millis + 3 random digits."""
        millis = str(int(time.time() * 1000))[-6:]
        return f"{ORDER_NUMBER_PREFIX}{millis}{secrets.randbelow(1000):03d}"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if Decimal(self.total_amount) != Decimal(self.expected_total):
            raise ValidationError(
                {
                    "total_amount": (
                        f"Total {self.total_amount} does not match "
                        f"subtotal + shipping + tax - discount ({self.expected_total})."
                    )
                }
            )
        if not self.order_number:
            self.order_number = self.generate_order_number()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """Line item frozen at checkout.

    ``name``, ``price`` and ``image`` are copies of the product at the time
    of purchase; later catalog edits never touch them.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    name = models.CharField(max_length=255)
    price = models.DecimalField(**MONEY)
    image = models.URLField(max_length=500, blank=True, default="")
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def __str__(self) -> str:
        return f"{self.name} x{self.quantity}"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status changes.

    The last record always carries the order's current status.  Records
    are never edited or deleted while the order exists.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    status = models.CharField(max_length=20, choices=OrderStatus.choices)
    note = models.CharField(max_length=200, blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["order", "created_at"], name="osh_order_created_idx"),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self._state.adding:
            raise ValidationError("Status history records are append-only.")
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order} : {self.old_status} -> {self.status}"
