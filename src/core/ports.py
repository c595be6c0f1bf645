"""Ports (interfaces) used by the core.

Ports define the minimal contracts for the feed, delivery and snapshot
adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import List, Protocol

from core.models import DeliveryOutcome, Proposal, StateSnapshot


class FeedPort(Protocol):
    """Source of proposals for one poll cycle."""

    async def fetch(self) -> List[Proposal]:
        """Return the current batch or raise FeedError."""
        ...


class NotifierPort(Protocol):
    """Delivery of one formatted message to one subscriber."""

    async def notify(self, recipient_id: int, text: str) -> DeliveryOutcome:
        ...


class SnapshotStorePort(Protocol):
    """Durable mirror of the watcher state."""

    def save(self, snapshot: StateSnapshot) -> bool:
        ...

    def load(self) -> StateSnapshot:
        ...
