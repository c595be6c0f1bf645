"""HTTP proposal feed adapter.

Fetches the JSON proposal list and maps it to core Proposal records. Any
transport or parse problem raises FeedError so the whole cycle is skipped.
"""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.request
from typing import Any, List

from core.errors import FeedError
from core.models import MAX_PROPOSAL_ID, Proposal

LOGGER = logging.getLogger(__name__)


def _parse_id(record: dict) -> int:
    raw_id = record.get("id", record.get("proposal_id"))
    if isinstance(raw_id, bool):
        raise FeedError(f"Invalid proposal id: {raw_id!r}")
    try:
        proposal_id = int(raw_id)
    except (TypeError, ValueError) as exc:
        raise FeedError(f"Invalid proposal id: {raw_id!r}") from exc
    if not 0 <= proposal_id <= MAX_PROPOSAL_ID:
        raise FeedError(f"Proposal id out of range: {proposal_id}")
    return proposal_id


def _spam_flag(record: dict) -> bool:
    value = record.get("spam")
    if value is None:
        return False
    if not isinstance(value, bool):
        raise FeedError(f"Invalid spam flag: {value!r}")
    return value


def _text(record: dict, key: str) -> str:
    value = record.get(key)
    if value is None:
        return ""
    return str(value)


def parse_proposals(payload: Any) -> List[Proposal]:
    """Map a decoded JSON payload to Proposal records."""

    if not isinstance(payload, list):
        raise FeedError(f"Expected a JSON list of proposals, got {type(payload).__name__}")

    proposals: List[Proposal] = []
    for record in payload:
        if not isinstance(record, dict):
            raise FeedError(f"Expected a proposal object, got {type(record).__name__}")
        proposals.append(
            Proposal(
                proposal_id=_parse_id(record),
                title=_text(record, "title"),
                topic=_text(record, "topic"),
                summary=_text(record, "summary"),
                proposer=_text(record, "proposer"),
                spam=_spam_flag(record),
            )
        )
    return proposals


class HttpProposalFeed:
    """Feed adapter that polls a JSON endpoint."""

    def __init__(self, url: str, timeout: float = 30.0) -> None:
        self._url = url
        self._timeout = timeout

    def _fetch_body(self) -> bytes:
        request = urllib.request.Request(self._url, headers={"Accept": "application/json"})
        try:
            with urllib.request.urlopen(request, timeout=self._timeout) as response:
                return response.read()
        except urllib.error.HTTPError as exc:
            raise FeedError(f"GET {self._url} failed with HTTP {exc.code}") from exc
        except (urllib.error.URLError, OSError) as exc:
            raise FeedError(f"GET {self._url} failed: {exc}") from exc

    async def fetch(self) -> List[Proposal]:
        """Return the current proposal batch."""

        # urllib blocks, so run it off the event loop.
        body = await asyncio.to_thread(self._fetch_body)
        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise FeedError(f"Couldn't parse the response as JSON: {exc}") from exc
        proposals = parse_proposals(payload)
        LOGGER.debug("Fetched %s proposals from %s", len(proposals), self._url)
        return proposals
