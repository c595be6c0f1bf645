"""Shared mutable state owned by the watcher process."""

from __future__ import annotations

from typing import Optional

from core.models import StateSnapshot
from core.registry import SubscriberRegistry
from core.watermark import WatermarkTracker


class WatcherState:
    """Registry and watermark, constructed once and passed to every worker."""

    def __init__(
        self,
        registry: Optional[SubscriberRegistry] = None,
        watermark: Optional[WatermarkTracker] = None,
    ) -> None:
        self.registry = registry if registry is not None else SubscriberRegistry()
        self.watermark = watermark if watermark is not None else WatermarkTracker()

    def snapshot(self) -> StateSnapshot:
        # Lock order is watermark, then registry. No advance can slip in
        # between reading the watermark and copying the registry.
        with self.watermark.locked() as watermark:
            subscriptions = self.registry.snapshot()
        return StateSnapshot(watermark=watermark, subscriptions=subscriptions)

    def restore(self, snapshot: StateSnapshot) -> None:
        self.watermark.restore(snapshot.watermark)
        self.registry.restore(snapshot.subscriptions)
