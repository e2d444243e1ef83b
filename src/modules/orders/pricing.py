"""Checkout pricing.

All amounts are ``Decimal`` with two places.  Rates and thresholds come
from settings so that finance can tune them without a deploy.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Tuple

from django.conf import settings
from django.utils import timezone

CENT = Decimal("0.01")


@dataclass(frozen=True)
class OrderPricing:
    subtotal: Decimal
    shipping_cost: Decimal
    tax: Decimal
    discount: Decimal
    total_amount: Decimal


def quantize(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_pricing(lines: Iterable[Tuple[Decimal, int]]) -> OrderPricing:
    """Price a basket of ``(unit_price, quantity)`` lines.

    Shipping is free from ``FREE_SHIPPING_THRESHOLD`` upwards, otherwise
    ``SHIPPING_FLAT_RATE``.  Tax is ``TAX_RATE`` of the subtotal.
    """
    subtotal = quantize(sum((price * quantity for price, quantity in lines), Decimal("0")))
    shipping_cost = (
        Decimal("0.00")
        if subtotal >= settings.FREE_SHIPPING_THRESHOLD
        else quantize(settings.SHIPPING_FLAT_RATE)
    )
    tax = quantize(subtotal * settings.TAX_RATE)
    discount = Decimal("0.00")
    return OrderPricing(
        subtotal=subtotal,
        shipping_cost=shipping_cost,
        tax=tax,
        discount=discount,
        total_amount=subtotal + shipping_cost + tax - discount,
    )


def estimate_delivery(placed_at: datetime | None = None) -> datetime:
    return (placed_at or timezone.now()) + timedelta(days=settings.ESTIMATED_DELIVERY_DAYS)
