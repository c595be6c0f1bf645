"""Notification fan-out for newly detected proposals.

This module is integration-agnostic. It only relies on the notifier port and
a formatter callable, enabling different delivery channels without changes
here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from core.models import DeliveryOutcome, Proposal
from core.ports import NotifierPort
from core.registry import SubscriberRegistry

LOGGER = logging.getLogger(__name__)

Formatter = Callable[[Proposal], str]


@dataclass(frozen=True)
class DispatchResult:
    """Per-proposal delivery counters."""

    proposal_id: int
    delivered: int = 0
    unreachable: int = 0
    failed: int = 0

    @property
    def attempted(self) -> int:
        return self.delivered + self.unreachable + self.failed


class NotificationDispatcher:
    """Formats a proposal and delivers it to every eligible subscriber."""

    def __init__(
        self,
        registry: SubscriberRegistry,
        notifier: NotifierPort,
        formatter: Formatter,
        skip_spam: bool = False,
    ) -> None:
        self._registry = registry
        self._notifier = notifier
        self._formatter = formatter
        self._skip_spam = skip_spam

    async def dispatch(self, proposal: Proposal) -> DispatchResult:
        """Deliver one proposal. Never raises for delivery problems."""

        if proposal.spam and self._skip_spam:
            LOGGER.info("Skipping spam proposal %s", proposal.proposal_id)
            return DispatchResult(proposal_id=proposal.proposal_id)

        text = self._formatter(proposal)
        recipients = self._registry.eligible_recipients(proposal.topic)

        delivered = unreachable = failed = 0
        for recipient_id in sorted(recipients):
            outcome = await self._deliver(recipient_id, text)
            if outcome is DeliveryOutcome.DELIVERED:
                delivered += 1
            elif outcome is DeliveryOutcome.RECIPIENT_UNREACHABLE:
                unreachable += 1
                # The chat blocked or deleted the bot; stop sending to it.
                if self._registry.unsubscribe(recipient_id):
                    LOGGER.info("Removed unreachable subscriber %s", recipient_id)
            else:
                failed += 1

        LOGGER.info(
            "Proposal %s (%s) dispatched: delivered=%s, unreachable=%s, failed=%s",
            proposal.proposal_id,
            proposal.topic,
            delivered,
            unreachable,
            failed,
        )
        return DispatchResult(
            proposal_id=proposal.proposal_id,
            delivered=delivered,
            unreachable=unreachable,
            failed=failed,
        )

    async def _deliver(self, recipient_id: int, text: str) -> DeliveryOutcome:
        try:
            outcome = await self._notifier.notify(recipient_id, text)
        except Exception:
            LOGGER.exception("Notifier raised while sending to %s", recipient_id)
            return DeliveryOutcome.OTHER_FAILURE
        if outcome is DeliveryOutcome.OTHER_FAILURE:
            LOGGER.warning("Delivery to %s failed", recipient_id)
        return outcome
