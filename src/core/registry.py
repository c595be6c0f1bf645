"""Subscriber registry (core domain).

The registry maps a subscriber id (a Telegram chat id) to the set of topics
that subscriber has blocked. A present key means "subscribed"; an empty set
means "subscribed to everything".

All access goes through a single lock. Callers may come from the asyncio
loop (commands, dispatch) and from worker threads (snapshot writes), so a
threading lock is used and no operation awaits while holding it.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, FrozenSet, List, Mapping, Set

from core.topics import MAX_BLOCKED_TOPICS, is_valid_topic, normalize_topic

LOGGER = logging.getLogger(__name__)


class SubscriberRegistry:
    """Concurrent-safe map of subscriber id to topic blocklist."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: Dict[int, Set[str]] = {}

    def subscribe(self, subscriber_id: int) -> None:
        """Add a subscriber, resetting any previous blocklist."""

        with self._lock:
            self._subscribers[subscriber_id] = set()

    def unsubscribe(self, subscriber_id: int) -> bool:
        """Remove a subscriber. Returns whether it was present."""

        with self._lock:
            return self._subscribers.pop(subscriber_id, None) is not None

    def is_subscribed(self, subscriber_id: int) -> bool:
        with self._lock:
            return subscriber_id in self._subscribers

    def block(self, subscriber_id: int, topic: str) -> bool:
        """Add a topic to the blocklist. Returns whether the blocklist changed.

        Unknown subscribers, oversized topics and additions past the
        cardinality cap are ignored.
        """

        normalized = normalize_topic(topic)
        if not is_valid_topic(normalized):
            return False
        with self._lock:
            blocked = self._subscribers.get(subscriber_id)
            if blocked is None or normalized in blocked:
                return False
            if len(blocked) >= MAX_BLOCKED_TOPICS:
                return False
            blocked.add(normalized)
            return True

    def unblock(self, subscriber_id: int, topic: str) -> bool:
        """Remove a topic from the blocklist. Returns whether it was present."""

        normalized = normalize_topic(topic)
        with self._lock:
            blocked = self._subscribers.get(subscriber_id)
            if blocked is None or normalized not in blocked:
                return False
            blocked.discard(normalized)
            return True

    def blocked_topics(self, subscriber_id: int) -> List[str]:
        """Return the sorted blocklist (empty when unknown or nothing blocked)."""

        with self._lock:
            return sorted(self._subscribers.get(subscriber_id, ()))

    def eligible_recipients(self, topic: str) -> Set[int]:
        """Return every subscriber that has not blocked ``topic``."""

        normalized = normalize_topic(topic)
        with self._lock:
            return {
                subscriber_id
                for subscriber_id, blocked in self._subscribers.items()
                if normalized not in blocked
            }

    def snapshot(self) -> Dict[int, FrozenSet[str]]:
        """Return an immutable copy of the whole registry."""

        with self._lock:
            return {
                subscriber_id: frozenset(blocked)
                for subscriber_id, blocked in self._subscribers.items()
            }

    def restore(self, subscriptions: Mapping[int, FrozenSet[str]]) -> None:
        """Replace the registry contents, re-applying topic constraints."""

        restored: Dict[int, Set[str]] = {}
        for subscriber_id, topics in subscriptions.items():
            blocked: Set[str] = set()
            for topic in sorted(topics):
                normalized = normalize_topic(topic)
                if not is_valid_topic(normalized):
                    LOGGER.warning("Dropping invalid blocked topic for %s", subscriber_id)
                    continue
                if len(blocked) >= MAX_BLOCKED_TOPICS:
                    LOGGER.warning("Blocklist for %s exceeds %s topics, truncating", subscriber_id, MAX_BLOCKED_TOPICS)
                    break
                blocked.add(normalized)
            restored[int(subscriber_id)] = blocked
        with self._lock:
            self._subscribers = restored

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)
