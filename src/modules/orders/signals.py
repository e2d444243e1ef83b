"""Signals for automatic Order status history tracking.

Every save that creates an order or changes its status appends one
``OrderStatusHistory`` row inside the same transaction.  The note comes
from ``Order.set_status``.
"""

from __future__ import annotations

from typing import Optional, Protocol, cast

import structlog
from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from modules.orders.constants import INITIAL_STATUS_NOTE
from modules.orders.models import Order, OrderStatusHistory

logger = structlog.get_logger(__name__)


class _OrderStatusAware(Protocol):
    _previous_status: str | None
    _status_change_notes: str | None


@receiver(pre_save, sender=Order)
def _capture_previous_status(sender, instance: Order, **kwargs) -> None:
    status_instance = cast(_OrderStatusAware, instance)
    if instance._state.adding:
        status_instance._previous_status = None
        return
    status_instance._previous_status = (
        sender.objects.filter(pk=instance.pk).values_list("status", flat=True).first()
    )


@receiver(post_save, sender=Order)
def _create_status_history(sender, instance: Order, created: bool, **kwargs) -> None:
    status_instance = cast(_OrderStatusAware, instance)
    previous_status: Optional[str] = getattr(status_instance, "_previous_status", None)
    note = getattr(status_instance, "_status_change_notes", None)

    if not created and previous_status == instance.status:
        _clear_transient_status_attrs(instance)
        return

    if created and not note:
        note = INITIAL_STATUS_NOTE

    OrderStatusHistory.objects.create(
        order=instance,
        old_status=previous_status,
        status=instance.status,
        note=note or "",
    )
    logger.info(
        "order.history_added",
        order_id=str(instance.id),
        old_status=previous_status,
        new_status=instance.status,
    )

    _clear_transient_status_attrs(instance)


def _clear_transient_status_attrs(instance: Order) -> None:
    if hasattr(instance, "_previous_status"):
        delattr(instance, "_previous_status")
    if hasattr(instance, "_status_change_notes"):
        delattr(instance, "_status_change_notes")
