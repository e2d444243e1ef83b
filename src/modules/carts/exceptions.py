"""Cart domain exceptions."""

from __future__ import annotations


class CartItemNotFound(Exception):
    """The product is not in the user's cart."""
