"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when checkout commits a new order."""


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Raised when an order is cancelled by its owner or an admin."""


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised when an admin moves an order along the lifecycle."""

    old_status: str = ""
    new_status: str = ""
