"""Shared notification formatting helpers.

Keeping formatting here prevents drift between adapters and keeps messages
consistent regardless of delivery channel. Both Telegram adapters send HTML.
"""

from __future__ import annotations

import html

from core.config import DispatchConfig
from core.models import Proposal
from core.topics import topic_tag

SUMMARY_TOO_LONG = "[Proposal summary is too long.]"
SPAM_HEADER = "SPAM PROPOSAL DETECTED"


def clip_summary(summary: str, max_chars: int) -> str:
    """Return the summary, or a placeholder when it would not fit.

    Two characters are reserved for the blank lines around the summary.
    """

    if len(summary) + 2 > max_chars:
        return SUMMARY_TOO_LONG
    return summary


def topic_hashtag(topic: str) -> str:
    """Return a Telegram-clickable hashtag for a topic name."""

    tag = topic_tag(topic)
    return f"#{tag}" if tag else ""


def proposal_link(proposal: Proposal, config: DispatchConfig) -> str:
    return config.proposal_url.format(id=proposal.proposal_id)


def format_notification(proposal: Proposal, config: DispatchConfig) -> str:
    """Create the HTML notification body for one proposal."""

    link = html.escape(proposal_link(proposal, config))
    if proposal.spam:
        return f"{SPAM_HEADER}\n\n{link}"

    summary = clip_summary(proposal.summary.strip(), config.max_summary_chars)
    parts = [
        f"<b>{html.escape(proposal.title)}</b>",
        "",
        f"Proposer: {html.escape(proposal.proposer)}",
    ]
    if summary:
        parts.extend(["", html.escape(summary)])
    hashtag = topic_hashtag(proposal.topic)
    if hashtag:
        parts.extend(["", hashtag])
    parts.extend(["", link])
    return "\n".join(parts)
