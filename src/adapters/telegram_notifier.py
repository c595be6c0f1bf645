"""Telethon notification adapter.

Sends notifications through the same bot session that receives commands.
"""

from __future__ import annotations

import logging

from telethon import errors

from core.models import DeliveryOutcome

LOGGER = logging.getLogger(__name__)

# Errors after which the chat will never accept messages from the bot again.
UNREACHABLE_ERRORS = (
    errors.UserIsBlockedError,
    errors.InputUserDeactivatedError,
    errors.UserDeactivatedError,
    errors.PeerIdInvalidError,
    errors.ChatWriteForbiddenError,
    errors.ChannelPrivateError,
)


class TelegramClientNotifier:
    """Notifier adapter that sends messages with a Telethon client."""

    def __init__(self, client) -> None:
        self._client = client

    async def notify(self, recipient_id: int, text: str) -> DeliveryOutcome:
        """Send the formatted notification to one chat."""

        try:
            await self._client.send_message(
                recipient_id,
                text,
                parse_mode="html",
                link_preview=False,
            )
        except UNREACHABLE_ERRORS as exc:
            LOGGER.info("Chat %s is unreachable: %s", recipient_id, exc.__class__.__name__)
            return DeliveryOutcome.RECIPIENT_UNREACHABLE
        except errors.RPCError as exc:
            LOGGER.warning("Couldn't send message to %s: %s", recipient_id, exc)
            return DeliveryOutcome.OTHER_FAILURE
        except (ValueError, ConnectionError) as exc:
            # Telethon raises ValueError when it cannot resolve the entity.
            LOGGER.warning("Couldn't send message to %s: %s", recipient_id, exc)
            return DeliveryOutcome.OTHER_FAILURE
        return DeliveryOutcome.DELIVERED
