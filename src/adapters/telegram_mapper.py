"""Telegram-to-core command mapping adapter.

This keeps Telethon-specific details out of the core command handler.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from telethon.tl.custom import Message


@dataclass(frozen=True)
class InboundCommand:
    """A message from a chat, ready for the core command handler."""

    subscriber_id: int
    text: str


def command_from_message(message: Message) -> Optional[InboundCommand]:
    """Return the command carried by a message, or None to ignore it.

    Private chats get a reply to anything (unknown input yields the help
    text). In groups only '/' commands are answered so the bot does not
    reply to every message.
    """

    chat_id = getattr(message, "chat_id", None)
    text = (getattr(message, "raw_text", None) or "").strip()
    if chat_id is None or not text:
        return None
    if not getattr(message, "is_private", False) and not text.startswith("/"):
        return None
    return InboundCommand(subscriber_id=int(chat_id), text=text)
