from __future__ import annotations

import threading

from core.models import StateSnapshot
from core.registry import SubscriberRegistry
from core.state import WatcherState


def test_snapshot_holds_watermark_while_copying_registry() -> None:
    state = WatcherState()
    state.watermark.advance_if_newer(5)
    state.registry.subscribe(1)
    advanced = threading.Event()

    def advance() -> None:
        state.watermark.advance_if_newer(6)
        advanced.set()

    with state.watermark.locked() as value:
        worker = threading.Thread(target=advance)
        worker.start()
        # The advance cannot complete while the watermark is held.
        assert not advanced.wait(timeout=0.1)
        assert value == 5
    worker.join()

    assert advanced.is_set()
    assert state.snapshot() == StateSnapshot(watermark=6, subscriptions={1: frozenset()})


def test_restore_round_trip() -> None:
    state = WatcherState()
    state.restore(StateSnapshot(watermark=9, subscriptions={2: frozenset({"governance"})}))

    assert state.snapshot() == StateSnapshot(watermark=9, subscriptions={2: frozenset({"governance"})})


def test_uses_the_registry_it_is_given_even_when_empty() -> None:
    registry = SubscriberRegistry()
    state = WatcherState(registry=registry)

    state.registry.subscribe(3)

    assert registry.is_subscribed(3)
