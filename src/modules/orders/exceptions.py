"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations


class OrderNotFound(Exception):
    """The requested order does not exist."""


class OrderAccessDenied(Exception):
    """The requester neither owns the order nor is an admin."""


class InvalidOrderStatus(Exception):
    """An invalid status transition was attempted."""


class EmptyCart(Exception):
    """Checkout was attempted with nothing in the cart."""


class InsufficientStock(Exception):
    """Not enough stock to fulfil the order."""


class MissingPaymentConfirmation(Exception):
    """An online payment method was chosen without a gateway confirmation."""


class OrderNumberConflict(Exception):
    """No unique order number could be allocated within the retry budget."""


class DuplicatePayment(Exception):
    """The gateway payment is already attached to another order."""
