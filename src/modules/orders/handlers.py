"""Event handlers for Orders domain events.

They run after commit and only hand work to the notification
dispatcher.
"""

from __future__ import annotations

import structlog

from modules.notifications.dispatcher import NotificationDispatcher, notification_dispatcher
from modules.orders.constants import NOTIFIABLE_STATES, OrderStatus
from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def __init__(self, dispatcher: NotificationDispatcher) -> None:
        self._dispatcher = dispatcher

    def handle(self, event: OrderCreated) -> None:
        logger.info("order.event.created", order_id=str(event.aggregate_id))
        self._dispatcher.order_confirmation(str(event.aggregate_id))


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def __init__(self, dispatcher: NotificationDispatcher) -> None:
        self._dispatcher = dispatcher

    def handle(self, event: OrderCancelled) -> None:
        logger.info("order.event.cancelled", order_id=str(event.aggregate_id))
        self._dispatcher.order_status_update(
            str(event.aggregate_id), OrderStatus.CANCELLED.value
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def __init__(self, dispatcher: NotificationDispatcher) -> None:
        self._dispatcher = dispatcher

    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.event.status_changed",
            order_id=str(event.aggregate_id),
            old_status=event.old_status,
            new_status=event.new_status,
        )
        if event.new_status in NOTIFIABLE_STATES:
            self._dispatcher.order_status_update(str(event.aggregate_id), event.new_status)


order_created_handler = OrderCreatedHandler(notification_dispatcher)
order_cancelled_handler = OrderCancelledHandler(notification_dispatcher)
order_status_changed_handler = OrderStatusChangedHandler(notification_dispatcher)
