"""Subscriber command handling (core domain).

Commands arrive as plain text from whatever channel the app wires up; this
module parses them and applies the effect to the registry, returning the
reply text for the sender.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

from core.registry import SubscriberRegistry
from core.topics import MAX_BLOCKED_TOPICS, MAX_TOPIC_LENGTH, is_valid_topic, normalize_topic

LOGGER = logging.getLogger(__name__)

HELP_TEXT = (
    "I'm up and running! 🚀\n\n"
    "I send a message for every new governance proposal.\n\n"
    "/start - subscribe to notifications\n"
    "/stop - unsubscribe\n"
    "/block <topic> - stop notifications for a topic\n"
    "/unblock <topic> - resume notifications for a topic\n"
    "/blacklist - show blocked topics"
)
SUBSCRIBED_TEXT = "You are subscribed to new proposals."
UNSUBSCRIBED_TEXT = "You are unsubscribed. Send /start to subscribe again."
NOT_SUBSCRIBED_TEXT = "You are not subscribed. Send /start first."
TOPIC_PROMPT_TEXT = "Please specify a topic, e.g. /{command} governance"
EMPTY_BLOCKLIST_TEXT = "You receive notifications for all topics."


def parse_command(text: str) -> Tuple[str, List[str]]:
    """Split message text into (command, args).

    The command is lower-cased and stripped of a ``@botname`` suffix so
    group-chat forms like ``/block@SomeBot`` work.
    """

    tokens = text.split()
    if not tokens:
        return "", []
    command = tokens[0].lower()
    if command.startswith("/") and "@" in command:
        command = command.split("@", 1)[0]
    return command, tokens[1:]


def format_blocklist(topics: List[str]) -> str:
    if not topics:
        return EMPTY_BLOCKLIST_TEXT
    lines = ["Blocked topics:"]
    lines.extend(f"#{topic}" for topic in topics)
    return "\n".join(lines)


class CommandHandler:
    """Apply subscriber commands to the registry."""

    def __init__(self, registry: SubscriberRegistry) -> None:
        self._registry = registry

    def handle_text(self, subscriber_id: int, text: str) -> str:
        command, args = parse_command(text)
        return self.handle(subscriber_id, command, args)

    def handle(self, subscriber_id: int, command: str, args: List[str]) -> str:
        """Process one parsed command and return the reply."""

        if command == "/start":
            self._registry.subscribe(subscriber_id)
            LOGGER.info("Subscriber %s started", subscriber_id)
            return f"{SUBSCRIBED_TEXT}\n\n{HELP_TEXT}"

        if command == "/stop":
            self._registry.unsubscribe(subscriber_id)
            LOGGER.info("Subscriber %s stopped", subscriber_id)
            return UNSUBSCRIBED_TEXT

        if command in {"/block", "/unblock"}:
            if len(args) != 1:
                return TOPIC_PROMPT_TEXT.format(command=command.lstrip("/"))
            if not self._registry.is_subscribed(subscriber_id):
                return NOT_SUBSCRIBED_TEXT
            if command == "/block":
                return self._block(subscriber_id, args[0])
            self._registry.unblock(subscriber_id, args[0])
            return format_blocklist(self._registry.blocked_topics(subscriber_id))

        if command == "/blacklist":
            if not self._registry.is_subscribed(subscriber_id):
                return NOT_SUBSCRIBED_TEXT
            return format_blocklist(self._registry.blocked_topics(subscriber_id))

        return HELP_TEXT

    def _block(self, subscriber_id: int, topic: str) -> str:
        changed = self._registry.block(subscriber_id, topic)
        topics = self._registry.blocked_topics(subscriber_id)
        reply = format_blocklist(topics)
        if changed or normalize_topic(topic) in topics:
            return reply
        # Rejected by the registry limits; tell the user why.
        if not is_valid_topic(normalize_topic(topic)):
            return f"Topics must be 1-{MAX_TOPIC_LENGTH} characters long.\n\n{reply}"
        if len(topics) >= MAX_BLOCKED_TOPICS:
            return f"You can block at most {MAX_BLOCKED_TOPICS} topics.\n\n{reply}"
        return reply
