"""Unit tests for the in-memory event bus."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4

import pytest
from django.db import transaction

from shared.domain.events import DomainEvent
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


@dataclass(frozen=True)
class SomethingHappened(DomainEvent):
    pass


@dataclass(frozen=True)
class SomethingElse(DomainEvent):
    pass


class RecordingHandler:
    def __init__(self):
        self.seen = []

    def handle(self, event):
        self.seen.append(event)


class ExplodingHandler:
    def handle(self, event):
        raise RuntimeError("boom")


class TestInMemoryEventBus:
    def test_dispatches_by_event_type(self):
        bus = InMemoryEventBus()
        handler = RecordingHandler()
        bus.subscribe(SomethingHappened, handler)

        event = SomethingHappened(aggregate_id=uuid4())
        bus.publish(event)
        bus.publish(SomethingElse(aggregate_id=uuid4()))

        assert handler.seen == [event]

    def test_subscribing_twice_delivers_once(self):
        bus = InMemoryEventBus()
        handler = RecordingHandler()
        bus.subscribe(SomethingHappened, handler)
        bus.subscribe(SomethingHappened, handler)

        bus.publish(SomethingHappened(aggregate_id=uuid4()))

        assert len(handler.seen) == 1

    def test_failing_handler_does_not_stop_others(self):
        bus = InMemoryEventBus()
        survivor = RecordingHandler()
        bus.subscribe(SomethingHappened, ExplodingHandler())
        bus.subscribe(SomethingHappened, survivor)

        bus.publish(SomethingHappened(aggregate_id=uuid4()))

        assert len(survivor.seen) == 1

    def test_publish_on_commit_waits_for_commit(self, django_capture_on_commit_callbacks):
        bus = InMemoryEventBus()
        handler = RecordingHandler()
        bus.subscribe(SomethingHappened, handler)

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with transaction.atomic():
                bus.publish_on_commit(SomethingHappened(aggregate_id=uuid4()))
                assert handler.seen == []

        assert len(callbacks) == 1
        assert len(handler.seen) == 1

    def test_rolled_back_transaction_publishes_nothing(
        self, django_capture_on_commit_callbacks
    ):
        bus = InMemoryEventBus()
        handler = RecordingHandler()
        bus.subscribe(SomethingHappened, handler)

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(RuntimeError):
                with transaction.atomic():
                    bus.publish_on_commit(SomethingHappened(aggregate_id=uuid4()))
                    raise RuntimeError("rollback")

        assert callbacks == []
        assert handler.seen == []

    def test_event_name_is_class_name(self):
        assert SomethingHappened(aggregate_id=uuid4()).event_name == "SomethingHappened"
