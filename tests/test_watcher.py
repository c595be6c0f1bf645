from __future__ import annotations

import asyncio
import threading
from typing import List

import pytest

from core.config import PollConfig
from core.dispatcher import NotificationDispatcher
from core.errors import FeedError
from core.models import DeliveryOutcome, Proposal, StateSnapshot
from core.state import WatcherState
from core.watcher import ProposalWatcher


class FakeFeed:
    def __init__(self, batches: List[object]) -> None:
        self._batches = list(batches)

    async def fetch(self) -> List[Proposal]:
        batch = self._batches.pop(0)
        if isinstance(batch, Exception):
            raise batch
        return batch


class FakeNotifier:
    def __init__(self) -> None:
        self.sent: list[tuple[int, str]] = []

    async def notify(self, recipient_id: int, text: str) -> DeliveryOutcome:
        self.sent.append((recipient_id, text))
        return DeliveryOutcome.DELIVERED


class FakeStore:
    def __init__(self, initial: StateSnapshot | None = None) -> None:
        self.initial = initial or StateSnapshot()
        self.saved: list[StateSnapshot] = []

    def save(self, snapshot: StateSnapshot) -> bool:
        self.saved.append(snapshot)
        return True

    def load(self) -> StateSnapshot:
        return self.initial


def _proposal(proposal_id: int, topic: str = "Governance") -> Proposal:
    return Proposal(
        proposal_id=proposal_id,
        title=f"Proposal {proposal_id}",
        topic=topic,
        summary="",
        proposer="1",
    )


def _watcher(
    batches: List[object],
    store: FakeStore | None = None,
    persist_on_advance: bool = False,
) -> tuple[ProposalWatcher, WatcherState, FakeNotifier, FakeStore]:
    state = WatcherState()
    state.registry.subscribe(1)
    notifier = FakeNotifier()
    store = store or FakeStore()
    dispatcher = NotificationDispatcher(
        state.registry,
        notifier,
        lambda proposal: str(proposal.proposal_id),
    )
    watcher = ProposalWatcher(
        state=state,
        feed=FakeFeed(batches),
        dispatcher=dispatcher,
        store=store,
        config=PollConfig(poll_interval=0.01, persist_interval=0.01, persist_on_advance=persist_on_advance),
    )
    return watcher, state, notifier, store


def test_each_id_dispatched_once_across_cycles() -> None:
    watcher, state, notifier, _ = _watcher(
        [
            [_proposal(5), _proposal(3), _proposal(7)],
            [_proposal(7), _proposal(8)],
        ]
    )

    async def scenario() -> None:
        await watcher.poll_once()
        await watcher.poll_once()

    asyncio.run(scenario())

    # 3 arrives after 5 in the first batch but sorting puts it first.
    assert [text for _, text in notifier.sent] == ["3", "5", "7", "8"]
    assert state.watermark.value == 8


def test_ids_at_or_below_watermark_are_skipped() -> None:
    watcher, state, notifier, _ = _watcher([[_proposal(5), _proposal(3), _proposal(7)], [_proposal(7), _proposal(8)]])
    state.watermark.restore(4)

    async def scenario() -> None:
        await watcher.poll_once()
        await watcher.poll_once()

    asyncio.run(scenario())

    assert [text for _, text in notifier.sent] == ["5", "7", "8"]


def test_unsorted_batch_is_dispatched_in_id_order() -> None:
    watcher, _, notifier, _ = _watcher([[_proposal(10), _proposal(9)]])

    results = asyncio.run(watcher.poll_once())

    assert [text for _, text in notifier.sent] == ["9", "10"]
    assert [result.proposal_id for result in results] == [9, 10]


def test_feed_error_skips_cycle_without_state_change() -> None:
    watcher, state, notifier, _ = _watcher([FeedError("bad json"), [_proposal(2)]])

    async def scenario() -> None:
        assert await watcher.poll_once() == []
        await watcher.poll_once()

    asyncio.run(scenario())

    assert [text for _, text in notifier.sent] == ["2"]
    assert state.watermark.value == 2


def test_restore_and_persist() -> None:
    store = FakeStore(StateSnapshot(watermark=50, subscriptions={9: frozenset({"governance"})}))
    watcher, state, _, _ = _watcher([], store=store)

    watcher.restore()
    assert state.watermark.value == 50
    assert state.registry.blocked_topics(9) == ["governance"]

    assert asyncio.run(watcher.persist_once())
    assert store.saved[-1].watermark == 50
    assert store.saved[-1].subscriptions == {9: frozenset({"governance"})}


def test_persist_on_advance_writes_before_dispatch() -> None:
    watcher, _, _, store = _watcher([[_proposal(3), _proposal(4)]], persist_on_advance=True)

    asyncio.run(watcher.poll_once())

    assert [snapshot.watermark for snapshot in store.saved] == [3, 4]


def test_loops_run_and_stop_with_final_snapshot() -> None:
    batches: List[object] = [[_proposal(1)]] + [[] for _ in range(1000)]
    watcher, state, notifier, store = _watcher(batches)

    async def scenario() -> None:
        watcher.start()
        for _ in range(200):
            if notifier.sent:
                break
            await asyncio.sleep(0.01)
        await watcher.stop()

    asyncio.run(scenario())

    assert [text for _, text in notifier.sent] == ["1"]
    assert store.saved
    assert store.saved[-1].watermark == 1
    assert state.watermark.value == 1


class SlowStore(FakeStore):
    """Store whose first save blocks until released."""

    def __init__(self) -> None:
        super().__init__()
        self.release = threading.Event()
        self._calls = 0
        self._calls_lock = threading.Lock()

    def save(self, snapshot: StateSnapshot) -> bool:
        with self._calls_lock:
            self._calls += 1
            first = self._calls == 1
        if first:
            self.release.wait(timeout=5)
        return super().save(snapshot)


def test_overlapping_saves_land_in_order() -> None:
    store = SlowStore()
    watcher, state, _, _ = _watcher([], store=store)

    async def scenario() -> None:
        state.watermark.advance_if_newer(3)
        first = asyncio.create_task(watcher.persist_once())
        await asyncio.sleep(0.05)
        state.watermark.advance_if_newer(4)
        second = asyncio.create_task(watcher.persist_once())
        await asyncio.sleep(0.05)
        store.release.set()
        await asyncio.gather(first, second)

    asyncio.run(scenario())

    assert [snapshot.watermark for snapshot in store.saved] == [3, 4]


def test_cancelled_save_finishes_before_next_one() -> None:
    store = SlowStore()
    watcher, state, _, _ = _watcher([], store=store)

    async def scenario() -> None:
        state.watermark.advance_if_newer(3)
        first = asyncio.create_task(watcher.persist_once())
        await asyncio.sleep(0.05)
        first.cancel()
        state.watermark.advance_if_newer(4)
        asyncio.get_running_loop().call_later(0.05, store.release.set)
        assert await watcher.persist_once()

    asyncio.run(scenario())

    assert [snapshot.watermark for snapshot in store.saved] == [3, 4]


def test_wait_for_stop_requires_start() -> None:
    watcher, _, _, _ = _watcher([])

    with pytest.raises(RuntimeError):
        asyncio.run(watcher._wait_for_stop(0))
