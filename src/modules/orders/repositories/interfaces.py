"""Order repository interface.

Extends ``IRepository[Order]`` with the methods required by the Order
aggregate: atomic creation with items, locking, look-up by gateway
payment id and the aggregates behind the admin dashboard.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from django.db.models import QuerySet

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children and
    OrderStatusHistory records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Insert an order and its items under a fresh, unique order number.

        ``data`` holds the Order field values plus ``items``: a list of
        dicts with ``product_id``, ``name``, ``price``, ``image`` and
        ``quantity``.
        """

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def get_by_payment(self, intent_id: str, payment_id: str) -> Optional[Order]:
        """Retrieve the order already backed by this gateway intent or payment."""

    @abstractmethod
    def list_for_user(self, user_id: str) -> QuerySet[Order]:
        """The user's orders, newest first."""

    @abstractmethod
    def count_by(self, field: str) -> Dict[str, int]:
        """Number of orders per distinct value of ``field``."""

    @abstractmethod
    def revenue_summary(self) -> Tuple[Decimal, int]:
        """Sum of ``total_amount`` and number of paid, non-cancelled orders."""
