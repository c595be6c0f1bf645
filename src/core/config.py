"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PollConfig:
    """Timing settings for the poll and persistence loops."""

    poll_interval: float
    persist_interval: float
    persist_on_advance: bool = False


@dataclass(frozen=True)
class DispatchConfig:
    """Notification settings consumed by the dispatcher and formatters."""

    max_summary_chars: int = 2048
    proposal_url: str = "https://dashboard.internetcomputer.org/proposal/{id}"
    skip_spam: bool = False
