"""Telegram Bot API notification adapter.

Uses the HTTPS Bot API for delivery, independent of the Telethon session
used for receiving commands.
"""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.request

from core.models import DeliveryOutcome

LOGGER = logging.getLogger(__name__)

# 400 descriptions that mean the chat is gone for good.
_GONE_DESCRIPTIONS = ("chat not found", "user is deactivated", "peer_id_invalid")


def classify_api_error(status: int, description: str) -> DeliveryOutcome:
    """Map a Bot API error response to a delivery outcome."""

    if status == 403:
        # "Forbidden: bot was blocked by the user", "user is deactivated", ...
        return DeliveryOutcome.RECIPIENT_UNREACHABLE
    lowered = description.lower()
    if status == 400 and any(text in lowered for text in _GONE_DESCRIPTIONS):
        return DeliveryOutcome.RECIPIENT_UNREACHABLE
    return DeliveryOutcome.OTHER_FAILURE


class TelegramBotNotifier:
    """Notifier adapter that sends messages via the Telegram Bot API."""

    def __init__(self, bot_token: str, timeout: float = 10.0) -> None:
        self._bot_token = bot_token
        self._timeout = timeout

    def _endpoint(self) -> str:
        # The Bot API endpoint is deterministic and derived from the token.
        return f"https://api.telegram.org/bot{self._bot_token}/sendMessage"

    def _send(self, recipient_id: int, text: str) -> DeliveryOutcome:
        payload = {
            "chat_id": recipient_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(self._endpoint(), data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        try:
            with urllib.request.urlopen(request, timeout=self._timeout):
                pass
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            try:
                description = str(json.loads(body).get("description", body))
            except (ValueError, AttributeError):
                description = body
            outcome = classify_api_error(e.code, description)
            LOGGER.warning("Bot API error %s for %s: %s", e.code, recipient_id, description)
            return outcome
        except (urllib.error.URLError, OSError) as e:
            LOGGER.warning("Bot API request for %s failed: %s", recipient_id, e)
            return DeliveryOutcome.OTHER_FAILURE
        return DeliveryOutcome.DELIVERED

    async def notify(self, recipient_id: int, text: str) -> DeliveryOutcome:
        """Send the formatted notification via the Bot API."""

        return await asyncio.to_thread(self._send, recipient_id, text)
