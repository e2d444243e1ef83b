"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  The order
number is allocated optimistically: the insert runs inside a savepoint
and a unique-constraint collision retries with a new number, so two
concurrent checkouts can never share one.

Domain events collected on the aggregate are published once the
surrounding transaction commits.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

import structlog
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import Count, Q, QuerySet, Sum

from modules.orders.constants import ORDER_NUMBER_MAX_RETRIES, OrderStatus, PaymentStatus
from modules.orders.exceptions import DuplicatePayment, OrderNumberConflict
from modules.orders.models import Order, OrderItem
from modules.orders.repositories.interfaces import IOrderRepository
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    def _queryset(self) -> QuerySet[Order]:
        return Order.objects.prefetch_related("items", "status_history")

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        Raises:
            DuplicatePayment: ``payment_id`` or ``payment_intent_id`` is already
                attached to an order.
            OrderNumberConflict: no free order number after
                ``ORDER_NUMBER_MAX_RETRIES`` attempts.
        """
        fields = {key: value for key, value in data.items() if key != "items"}
        payment_id = fields.get("payment_id")
        intent_id = fields.get("payment_intent_id")

        for attempt in range(1, ORDER_NUMBER_MAX_RETRIES + 1):
            order = Order(order_number=Order.generate_order_number(), **fields)
            try:
                with transaction.atomic():
                    order.save()
            except IntegrityError:
                if payment_id and Order.objects.filter(
                    Q(payment_id=payment_id) | Q(payment_intent_id=intent_id)
                ).exists():
                    raise DuplicatePayment(
                        f"Payment {payment_id} (intent {intent_id}) is already "
                        "attached to an order."
                    )
                logger.warning(
                    "order.number_collision",
                    order_number=order.order_number,
                    attempt=attempt,
                )
                continue
            break
        else:
            raise OrderNumberConflict(
                f"Failed to allocate a unique order number after "
                f"{ORDER_NUMBER_MAX_RETRIES} attempts."
            )

        items = data.get("items", [])
        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    product_id=item["product_id"],
                    name=item["name"],
                    price=item["price"],
                    image=item.get("image", ""),
                    quantity=item["quantity"],
                )
                for item in items
            ]
        )

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(items),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with prefetched items and history.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return self._queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Eager-loads items so the caller can release their stock while
        the row is locked.
        """
        try:
            return (
                Order.objects.select_for_update()
                .prefetch_related("items")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_by_payment(self, intent_id: str, payment_id: str) -> Optional[Order]:
        return (
            self._queryset()
            .filter(Q(payment_intent_id=intent_id) | Q(payment_id=payment_id))
            .first()
        )

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Order]:
        """List orders, newest first, with optional Django ORM look-ups."""
        queryset = self._queryset().order_by("-created_at", "-id")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list_for_user(self, user_id: str) -> QuerySet[Order]:
        return self.list({"user_id": user_id})

    # ------------------------------------------------------------------
    # Save (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist an order and publish its pending events after commit."""
        entity.save()
        events = entity.pull_domain_events()
        for event in events:
            event_bus.publish_on_commit(event)
        logger.info("order.saved", order_id=str(entity.id), event_count=len(events))
        return entity

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    def count_by(self, field: str) -> Dict[str, int]:
        rows = Order.objects.order_by().values(field).annotate(count=Count("id"))
        return {row[field]: row["count"] for row in rows}

    def revenue_summary(self) -> Tuple[Decimal, int]:
        row = (
            Order.objects.filter(payment_status=PaymentStatus.PAID)
            .exclude(status=OrderStatus.CANCELLED)
            .aggregate(total=Sum("total_amount"), count=Count("id"))
        )
        return row["total"] or Decimal("0.00"), row["count"]
