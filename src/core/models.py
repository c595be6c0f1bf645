"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet

MAX_PROPOSAL_ID = 2**64 - 1


@dataclass(frozen=True)
class Proposal:
    """A governance proposal as delivered by the feed for one poll cycle."""

    proposal_id: int
    title: str
    topic: str
    summary: str
    proposer: str
    spam: bool = False


class DeliveryOutcome(Enum):
    """Result of a single notification attempt."""

    DELIVERED = "delivered"
    RECIPIENT_UNREACHABLE = "recipient_unreachable"
    OTHER_FAILURE = "other_failure"


@dataclass(frozen=True)
class StateSnapshot:
    """Point-in-time copy of the watermark and the subscriber registry."""

    watermark: int = 0
    subscriptions: Dict[int, FrozenSet[str]] = field(default_factory=dict)

    @property
    def subscriber_count(self) -> int:
        return len(self.subscriptions)
