"""Poll and persistence loops.

Each poll cycle enforces a strict order:
1) Fetch the batch (a failed fetch skips the whole cycle)
2) Sort by proposal id so the watermark only moves forward
3) Advance the watermark; only a winning advance is dispatched
4) Fan out to eligible subscribers

The persistence loop runs on its own cadence and writes a copy of the state
through the snapshot store. Snapshots are written from a worker thread so a
slow disk never stalls command handling or dispatch.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from core.config import PollConfig
from core.dispatcher import DispatchResult, NotificationDispatcher
from core.errors import FeedError
from core.ports import FeedPort, SnapshotStorePort
from core.state import WatcherState

LOGGER = logging.getLogger(__name__)


class ProposalWatcher:
    """Supervises the poll loop and the persistence loop."""

    def __init__(
        self,
        state: WatcherState,
        feed: FeedPort,
        dispatcher: NotificationDispatcher,
        store: SnapshotStorePort,
        config: PollConfig,
    ) -> None:
        self._state = state
        self._feed = feed
        self._dispatcher = dispatcher
        self._store = store
        self._config = config
        self._stop_event: Optional[asyncio.Event] = None
        self._tasks: List[asyncio.Task] = []
        self._persist_lock: Optional[asyncio.Lock] = None
        self._pending_save: Optional[asyncio.Future] = None

    def restore(self) -> None:
        """Load the last snapshot into the shared state."""

        snapshot = self._store.load()
        self._state.restore(snapshot)
        LOGGER.info(
            "Restored state: last seen proposal %s, %s subscribers",
            self._state.watermark.value,
            snapshot.subscriber_count,
        )

    async def poll_once(self) -> List[DispatchResult]:
        """Run one poll cycle and return the results of dispatched proposals."""

        try:
            proposals = await self._feed.fetch()
        except FeedError as exc:
            LOGGER.warning("Skipping poll cycle: %s", exc)
            return []

        results: List[DispatchResult] = []
        for proposal in sorted(proposals, key=lambda item: item.proposal_id):
            if not self._state.watermark.advance_if_newer(proposal.proposal_id):
                continue
            LOGGER.info("New proposal detected: %s %r", proposal.proposal_id, proposal.title)
            if self._config.persist_on_advance:
                await self.persist_once()
            try:
                results.append(await self._dispatcher.dispatch(proposal))
            except Exception:
                LOGGER.exception("Failed to dispatch proposal %s", proposal.proposal_id)
        return results

    async def persist_once(self) -> bool:
        """Write the current state through the snapshot store.

        Saves are serialized: the copy is taken only after the previous write
        has finished, so an older snapshot never lands after a newer one. A
        write whose caller was cancelled still completes before the next one
        starts.
        """

        if self._persist_lock is None:
            self._persist_lock = asyncio.Lock()
        async with self._persist_lock:
            if self._pending_save is not None and not self._pending_save.done():
                await asyncio.wait([self._pending_save])
            snapshot = self._state.snapshot()
            self._pending_save = asyncio.ensure_future(asyncio.to_thread(self._store.save, snapshot))
            return await asyncio.shield(self._pending_save)

    def start(self) -> List[asyncio.Task]:
        """Spawn both loops on the running event loop."""

        if self._tasks:
            return self._tasks
        self._stop_event = asyncio.Event()
        self._tasks = [
            asyncio.create_task(self._poll_loop(), name="govwatch-poll"),
            asyncio.create_task(self._persistence_loop(), name="govwatch-persist"),
        ]
        LOGGER.info(
            "Watcher started (poll every %ss, persist every %ss)",
            self._config.poll_interval,
            self._config.persist_interval,
        )
        return self._tasks

    async def stop(self, final_persist: bool = True) -> None:
        """Stop both loops and optionally write a last snapshot."""

        if self._stop_event is not None:
            self._stop_event.set()
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        if final_persist:
            if await self.persist_once():
                LOGGER.info("Final snapshot written")

    async def _poll_loop(self) -> None:
        while not await self._wait_for_stop(self._config.poll_interval):
            try:
                await self.poll_once()
            except Exception:
                LOGGER.exception("Unexpected error in poll cycle")

    async def _persistence_loop(self) -> None:
        while not await self._wait_for_stop(self._config.persist_interval):
            try:
                await self.persist_once()
            except Exception:
                LOGGER.exception("Unexpected error while persisting state")

    async def _wait_for_stop(self, timeout: float) -> bool:
        """Sleep for ``timeout`` seconds; return True if stop was requested."""

        if self._stop_event is None:
            raise RuntimeError("Watcher is not started")
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True
