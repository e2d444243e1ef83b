"""Celery tasks for order notifications.

Emails are best effort: failures are logged and the task returns
``False``.  Nothing is retried, a duplicate confirmation is worse than a
missing one.
"""

import structlog
from celery import shared_task

from modules.notifications.exceptions import RecipientUnavailable
from modules.notifications.services import OrderEmailService
from modules.orders.models import Order

logger = structlog.get_logger(__name__)


def _load_order(order_id: str):
    order = Order.objects.prefetch_related("items").filter(id=order_id).first()
    if order is None:
        logger.warning("notification.order_missing", order_id=order_id)
    return order


@shared_task(name="notifications.send_order_confirmation", ignore_result=True)
def send_order_confirmation(order_id: str) -> bool:
    order = _load_order(order_id)
    if order is None:
        return False
    try:
        OrderEmailService().send_confirmation(order)
    except RecipientUnavailable as exc:
        logger.warning("notification.no_recipient", order_id=order_id, reason=str(exc))
        return False
    except Exception:
        logger.exception("notification.send_failed", order_id=order_id, kind="confirmation")
        return False
    return True


@shared_task(name="notifications.send_order_status_update", ignore_result=True)
def send_order_status_update(order_id: str, status: str) -> bool:
    order = _load_order(order_id)
    if order is None:
        return False
    try:
        OrderEmailService().send_status_update(order, status)
    except RecipientUnavailable as exc:
        logger.warning("notification.no_recipient", order_id=order_id, reason=str(exc))
        return False
    except Exception:
        logger.exception(
            "notification.send_failed", order_id=order_id, kind="status_update", status=status
        )
        return False
    return True
