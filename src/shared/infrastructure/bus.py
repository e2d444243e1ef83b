"""In-memory event bus implementation.

Handlers are side effects (emails, logs) that must never undo or fail
the business transaction that raised the event, so a failing handler is
logged and the remaining handlers still run.
"""

from __future__ import annotations

from functools import partial
from typing import Dict, List, Type

import structlog
from django.db import transaction

from shared.domain.bus import IEventBus, IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


class InMemoryEventBus(IEventBus):
    """Simple in-process event bus."""

    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[IEventHandler]] = {}

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        handlers = self._handlers.setdefault(event_class, [])
        if handler not in handlers:
            handlers.append(handler)

    def publish(self, event: DomainEvent) -> None:
        for handler in self._handlers.get(type(event), []):
            try:
                handler.handle(event)
            except Exception:
                logger.exception(
                    "event_bus.handler_failed",
                    event_name=event.event_name,
                    handler=handler.__class__.__name__,
                    aggregate_id=str(event.aggregate_id),
                )

    def publish_on_commit(self, event: DomainEvent) -> None:
        """Defer publication until the surrounding transaction commits.

        Outside a transaction Django runs the callback immediately.
        """
        transaction.on_commit(partial(self.publish, event))


# Global bus instance (singleton)

event_bus = InMemoryEventBus()
