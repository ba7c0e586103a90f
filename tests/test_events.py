"""Tests for putvault.orders.events: event log and bus delivery."""

from __future__ import annotations

import json
from datetime import timedelta
from decimal import Decimal

import pytest

from putvault.core.result import Err, Ok
from putvault.infra.config import TOPIC_VAULT_CONFIG, TOPIC_VAULT_EVENTS
from putvault.infra.memory_adapter import InMemoryEventBus
from putvault.orders.events import (
    EventRecorder,
    MaxOrderActiveChanged,
    OptionRedeemed,
    SellOrderCreated,
    topic_for,
)


class TestTopicRouting:
    def test_order_events_on_event_topic(self) -> None:
        assert topic_for(SellOrderCreated(option="o", amount=Decimal(1))) == TOPIC_VAULT_EVENTS

    def test_config_events_on_config_topic(self) -> None:
        assert topic_for(MaxOrderActiveChanged(value=timedelta(days=1))) == TOPIC_VAULT_CONFIG


class TestEventRecorder:
    def test_without_bus_only_logs(self) -> None:
        recorder = EventRecorder()
        event = OptionRedeemed(option="o", payout=Decimal(5))
        recorder.emit(event)
        assert recorder.events == (event,)
        assert recorder.undelivered == ()
        assert recorder.flush() == Ok(0)

    def test_publishes_canonical_json(self) -> None:
        bus = InMemoryEventBus()
        recorder = EventRecorder(bus)
        recorder.emit(OptionRedeemed(option="oWETH", payout=Decimal("5.50")))
        [(key, value)] = bus.get_messages(TOPIC_VAULT_EVENTS)
        assert key == "OptionRedeemed"
        assert json.loads(value) == {"_type": "OptionRedeemed", "option": "oWETH", "payout": "5.5"}

    def test_offline_bus_queues_in_order(self) -> None:
        bus = InMemoryEventBus()
        bus.offline = True
        recorder = EventRecorder(bus)
        first = OptionRedeemed(option="a", payout=Decimal(1))
        second = OptionRedeemed(option="b", payout=Decimal(2))
        recorder.emit(first)
        recorder.emit(second)
        assert recorder.events == (first, second)
        assert recorder.undelivered == (first, second)
        assert isinstance(recorder.flush(), Err)

        bus.offline = False
        assert recorder.flush() == Ok(2)
        assert recorder.undelivered == ()
        keys = [json.loads(v)["option"] for _, v in bus.get_messages(TOPIC_VAULT_EVENTS)]
        assert keys == ["a", "b"]

    def test_queued_events_hold_back_later_ones(self) -> None:
        bus = InMemoryEventBus()
        recorder = EventRecorder(bus)
        bus.offline = True
        recorder.emit(OptionRedeemed(option="a", payout=Decimal(1)))
        bus.offline = False
        recorder.emit(OptionRedeemed(option="b", payout=Decimal(2)))
        assert bus.get_messages(TOPIC_VAULT_EVENTS) == []
        assert len(recorder.undelivered) == 2

    def test_history_keeps_most_recent(self) -> None:
        recorder = EventRecorder(history=2)
        events = [OptionRedeemed(option=name, payout=Decimal(1)) for name in "abc"]
        for event in events:
            recorder.emit(event)
        assert recorder.events == tuple(events[1:])

    def test_history_bound_does_not_drop_undelivered(self) -> None:
        bus = InMemoryEventBus()
        bus.offline = True
        recorder = EventRecorder(bus, history=1)
        events = [OptionRedeemed(option=name, payout=Decimal(1)) for name in "abc"]
        for event in events:
            recorder.emit(event)
        assert recorder.events == (events[-1],)
        assert recorder.undelivered == tuple(events)

        bus.offline = False
        assert recorder.flush() == Ok(3)

    def test_history_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            EventRecorder(history=0)
