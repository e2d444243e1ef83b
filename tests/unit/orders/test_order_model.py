"""Unit tests for the Order aggregate models.

Covers:
- Order number format and generation.
- Total invariant enforced on save.
- Status history: initial entry, one entry per change, none for no-op
  saves, append-only records.
- Domain event collection on the aggregate.
"""

from __future__ import annotations

import re
from decimal import Decimal
from uuid import uuid4

import pytest
from django.core.exceptions import ValidationError
from freezegun import freeze_time

from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.events import OrderCreated
from modules.orders.models import Order, OrderStatusHistory

pytestmark = pytest.mark.unit

ORDER_NUMBER_RE = re.compile(r"^MM\d{9}$")


def _order(**overrides) -> Order:
    defaults = {
        "user_id": "42",
        "shipping_name": "A B",
        "shipping_phone": "9876543210",
        "shipping_street": "123 Main Street",
        "shipping_city": "Delhi",
        "shipping_state": "Delhi",
        "shipping_zip_code": "110001",
        "payment_method": PaymentMethod.COD,
        "subtotal": Decimal("598.00"),
        "shipping_cost": Decimal("0.00"),
        "tax": Decimal("107.64"),
        "discount": Decimal("0.00"),
        "total_amount": Decimal("705.64"),
    }
    defaults.update(overrides)
    return Order(**defaults)


# ===========================================================================
# Order number
# ===========================================================================


class TestOrderNumber:
    def test_format(self):
        for _ in range(50):
            assert ORDER_NUMBER_RE.match(Order.generate_order_number())

    @freeze_time("2026-03-01 10:00:00.123456")
    def test_embeds_trailing_timestamp_digits(self):
        assert Order.generate_order_number()[2:8] == "200123"

    def test_assigned_on_first_save(self):
        order = _order()
        order.save()
        assert ORDER_NUMBER_RE.match(order.order_number)

    def test_not_regenerated_on_later_saves(self):
        order = _order()
        order.save()
        number = order.order_number
        order.notes = "updated"
        order.save()
        order.refresh_from_db()
        assert order.order_number == number


# ===========================================================================
# Total invariant
# ===========================================================================


class TestTotalInvariant:
    def test_consistent_totals_save(self):
        order = _order()
        order.save()
        assert order.total_amount == order.expected_total

    def test_inconsistent_total_is_rejected(self):
        order = _order(total_amount=Decimal("700.00"))
        with pytest.raises(ValidationError):
            order.save()
        assert Order.objects.count() == 0

    def test_discount_is_subtracted(self):
        order = _order(
            subtotal=Decimal("100.00"),
            shipping_cost=Decimal("50.00"),
            tax=Decimal("18.00"),
            discount=Decimal("10.00"),
            total_amount=Decimal("158.00"),
        )
        order.save()
        assert order.expected_total == Decimal("158.00")


# ===========================================================================
# Status history
# ===========================================================================


class TestStatusHistory:
    def test_creation_records_initial_entry(self):
        order = _order()
        order.save()

        history = list(order.status_history.all())
        assert len(history) == 1
        assert history[0].status == OrderStatus.PENDING
        assert history[0].old_status is None
        assert history[0].note == "Order placed"

    def test_status_change_appends_entry(self):
        order = _order()
        order.save()

        order.set_status(OrderStatus.CONFIRMED, "Payment received")
        order.save()

        history = list(order.status_history.all())
        assert [h.status for h in history] == [OrderStatus.PENDING, OrderStatus.CONFIRMED]
        assert history[-1].old_status == OrderStatus.PENDING
        assert history[-1].note == "Payment received"

    def test_same_status_save_does_not_append(self):
        order = _order()
        order.save()
        order.tracking_number = "TRK123456"
        order.save()
        assert order.status_history.count() == 1

    def test_last_entry_matches_current_status(self):
        order = _order()
        order.save()
        for status in (OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.SHIPPED):
            order.set_status(status)
            order.save()
            assert order.status_history.last().status == order.status

    def test_history_records_are_append_only(self):
        order = _order()
        order.save()
        entry = order.status_history.first()
        entry.note = "rewritten"
        with pytest.raises(ValidationError):
            entry.save()
        assert OrderStatusHistory.objects.get(pk=entry.pk).note == "Order placed"


# ===========================================================================
# State machine helpers and events
# ===========================================================================


class TestHelpers:
    def test_terminal_states(self):
        assert _order(status=OrderStatus.DELIVERED).is_terminal
        assert _order(status=OrderStatus.CANCELLED).is_terminal
        assert not _order(status=OrderStatus.SHIPPED).is_terminal

    def test_can_transition_to(self):
        order = _order(status=OrderStatus.PENDING)
        assert order.can_transition_to(OrderStatus.CONFIRMED)
        assert order.can_transition_to(OrderStatus.CANCELLED)
        assert not order.can_transition_to(OrderStatus.SHIPPED)

    def test_loaded_status_string_uses_state_machine(self):
        order = _order()
        order.save()
        loaded = Order.objects.get(pk=order.pk)
        assert loaded.can_transition_to("confirmed")
        assert not loaded.is_terminal

    def test_domain_events_are_collected_and_pulled(self):
        order = _order()
        assert order.domain_events == []

        event = OrderCreated(aggregate_id=uuid4())
        order.add_domain_event(event)

        assert order.domain_events == [event]
        assert event.event_name == "OrderCreated"
        assert order.pull_domain_events() == [event]
        assert order.domain_events == []

    def test_shipping_address_view(self):
        address = _order().shipping_address
        assert address["zip_code"] == "110001"
        assert address["country"] == "India"
