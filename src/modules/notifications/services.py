"""Order emails.

Renders the plain-text and HTML bodies from templates and sends them
through Django's email framework, so the transport (SMTP, console,
locmem in tests) is a settings concern.
"""

from __future__ import annotations

from typing import Any, Dict

import structlog
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string

from modules.notifications.exceptions import RecipientUnavailable
from modules.orders.constants import OrderStatus
from modules.orders.models import Order

logger = structlog.get_logger(__name__)

STATUS_HEADLINES = {
    OrderStatus.SHIPPED: "is on its way",
    OrderStatus.DELIVERED: "has been delivered",
    OrderStatus.CANCELLED: "has been cancelled",
}


class OrderEmailService:
    def __init__(self, from_email: str | None = None, store_name: str | None = None) -> None:
        self._from_email = from_email or settings.DEFAULT_FROM_EMAIL
        self._store_name = store_name or settings.STORE_NAME

    def send_confirmation(self, order: Order) -> None:
        subject = f"Order confirmed #{order.order_number} - {self._store_name}"
        self._send(order, subject, "notifications/order_confirmation", {})

    def send_status_update(self, order: Order, status: str) -> None:
        headline = STATUS_HEADLINES.get(status, f"is now {status}")
        subject = f"Your order #{order.order_number} {headline}"
        self._send(
            order,
            subject,
            "notifications/order_status_update",
            {"status": status, "headline": headline},
        )

    def _send(self, order: Order, subject: str, template: str, extra: Dict[str, Any]) -> None:
        recipient = self._recipient(order)
        context = {
            "order": order,
            "items": list(order.items.all()),
            "store_name": self._store_name,
            **extra,
        }
        message = EmailMultiAlternatives(
            subject=subject,
            body=render_to_string(f"{template}.txt", context),
            from_email=self._from_email,
            to=[recipient],
        )
        message.attach_alternative(render_to_string(f"{template}.html", context), "text/html")
        message.send()
        logger.info(
            "notification.email_sent",
            order_id=str(order.id),
            template=template,
        )

    @staticmethod
    def _recipient(order: Order) -> str:
        user = get_user_model().objects.filter(pk=order.user_id).first()
        if user is None or not user.email:
            raise RecipientUnavailable(f"No email address for user {order.user_id}.")
        return user.email
