"""Notification Dispatcher.

Queues notification tasks for domain events.  Queueing must never
break the caller: by the time an event is published the order is
already committed, so a broker outage is logged and forgotten.
"""

from __future__ import annotations

import structlog

from modules.notifications.tasks import send_order_confirmation, send_order_status_update

logger = structlog.get_logger(__name__)


class NotificationDispatcher:
    def order_confirmation(self, order_id: str) -> bool:
        return self._enqueue(send_order_confirmation, order_id)

    def order_status_update(self, order_id: str, status: str) -> bool:
        return self._enqueue(send_order_status_update, order_id, status)

    def _enqueue(self, task, *args) -> bool:
        try:
            task.delay(*args)
        except Exception:
            logger.exception("notification.dispatch_failed", task=task.name, args=list(args))
            return False
        logger.info("notification.queued", task=task.name, order_id=args[0])
        return True


notification_dispatcher = NotificationDispatcher()
