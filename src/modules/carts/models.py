"""Cart and CartItem models.

One cart per user.  The cart is never deleted: checkout empties it by
removing its items.  Lines hold a live product reference, prices are
only frozen when the cart is turned into an order.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel


class Cart(BaseModel):
    """Per-user cart aggregate root."""

    user_id = models.CharField(max_length=64, unique=True)

    class Meta:
        db_table = "carts"

    def __str__(self) -> str:
        return f"Cart({self.user_id})"


class CartItem(BaseModel):
    """A (product, quantity) line in a cart."""

    cart = models.ForeignKey(
        "carts.Cart",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.CASCADE,
        related_name="cart_items",
    )
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )

    class Meta:
        db_table = "cart_items"
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["cart", "product"],
                name="cart_items_unique_product",
            ),
            models.CheckConstraint(
                check=models.Q(quantity__gte=1),
                name="cart_items_quantity_positive",
            ),
        ]

    @property
    def line_total(self) -> Decimal:
        return self.product.price * self.quantity

    def __str__(self) -> str:
        return f"{self.product} x{self.quantity}"
