"""Helpers for working with proposal topic keys."""

from __future__ import annotations

import re

# Bounds keep the persisted blocklists small.
MAX_BLOCKED_TOPICS = 30
MAX_TOPIC_LENGTH = 50


def topic_tag(topic: str) -> str:
    """Return the topic with every non-word character removed.

    This is the form shown as a hashtag in notifications, so a subscriber
    can copy it straight into /block.
    """

    return re.sub(r"\W+", "", topic)


def normalize_topic(topic: str) -> str:
    """Return the comparison form of a topic: its tag, case-folded."""

    return topic_tag(topic).casefold()


def is_valid_topic(topic: str) -> bool:
    """Check a normalized topic against the blocklist entry constraints."""

    return 0 < len(topic) <= MAX_TOPIC_LENGTH
