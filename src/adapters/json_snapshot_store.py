"""JSON snapshot adapter.

Implements the core SnapshotStorePort using a single JSON file:

    {
        "last_seen_proposal": 123,
        "chat_ids": {"42": {"governance": true}}
    }

Writes go to a sibling temporary file which is then renamed over the
canonical path, so readers see either the old or the new snapshot.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from typing import Any, Dict, FrozenSet

from core.errors import SnapshotError
from core.models import MAX_PROPOSAL_ID, StateSnapshot

LOGGER = logging.getLogger(__name__)


def encode_snapshot(snapshot: StateSnapshot) -> str:
    """Serialize a snapshot to the on-disk JSON layout."""

    chat_ids = {
        str(subscriber_id): {topic: True for topic in sorted(topics)}
        for subscriber_id, topics in sorted(snapshot.subscriptions.items())
    }
    payload = {"last_seen_proposal": snapshot.watermark, "chat_ids": chat_ids}
    return json.dumps(payload, indent=2, ensure_ascii=False)


def decode_snapshot(raw: str) -> StateSnapshot:
    """Parse the on-disk JSON layout; raises SnapshotError on bad content."""

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SnapshotError(f"Snapshot is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise SnapshotError("Snapshot root must be an object")

    watermark = payload.get("last_seen_proposal", 0)
    if isinstance(watermark, bool) or not isinstance(watermark, int):
        raise SnapshotError(f"Invalid last_seen_proposal: {watermark!r}")
    if not 0 <= watermark <= MAX_PROPOSAL_ID:
        raise SnapshotError(f"last_seen_proposal out of range: {watermark}")

    raw_chat_ids = payload.get("chat_ids") or {}
    if not isinstance(raw_chat_ids, dict):
        raise SnapshotError("chat_ids must be an object")

    subscriptions: Dict[int, FrozenSet[str]] = {}
    for raw_id, raw_topics in raw_chat_ids.items():
        try:
            subscriber_id = int(raw_id)
        except ValueError as exc:
            raise SnapshotError(f"Invalid chat id: {raw_id!r}") from exc
        subscriptions[subscriber_id] = _decode_topics(raw_topics)

    return StateSnapshot(watermark=watermark, subscriptions=subscriptions)


def _decode_topics(raw_topics: Any) -> FrozenSet[str]:
    if raw_topics is None:
        return frozenset()
    if not isinstance(raw_topics, dict):
        raise SnapshotError(f"Blocked topics must be an object, got {type(raw_topics).__name__}")
    # A false flag means "not blocked"; keep only the blocked entries.
    return frozenset(str(topic) for topic, blocked in raw_topics.items() if blocked)


class JsonSnapshotStore:
    """File-backed snapshot store that satisfies the SnapshotStorePort contract."""

    def __init__(self, path: str) -> None:
        self._path = os.path.abspath(path)
        self._write_lock = threading.Lock()

    @property
    def path(self) -> str:
        return self._path

    def save(self, snapshot: StateSnapshot) -> bool:
        """Atomically replace the snapshot file. Returns False on failure."""

        try:
            data = encode_snapshot(snapshot)
        except (TypeError, ValueError):
            LOGGER.exception("Failed to serialize snapshot")
            return False

        directory = os.path.dirname(self._path)
        name = os.path.basename(self._path)
        with self._write_lock:
            tmp_path = None
            try:
                os.makedirs(directory, exist_ok=True)
                fd, tmp_path = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=directory)
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(data)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_path, self._path)
                tmp_path = None
            except OSError:
                LOGGER.exception("Failed to write snapshot to %s", self._path)
                return False
            finally:
                if tmp_path is not None:
                    _remove_quietly(tmp_path)

        LOGGER.debug(
            "Snapshot saved: last seen proposal %s, %s subscribers",
            snapshot.watermark,
            snapshot.subscriber_count,
        )
        return True

    def load(self) -> StateSnapshot:
        """Read the last snapshot, or the empty state if none is usable."""

        if not os.path.exists(self._path):
            LOGGER.info("No snapshot at %s, starting with empty state", self._path)
            return StateSnapshot()
        try:
            with open(self._path, "r", encoding="utf-8") as handle:
                return decode_snapshot(handle.read())
        except (OSError, UnicodeDecodeError, SnapshotError) as exc:
            LOGGER.warning("Could not read snapshot %s: %s", self._path, exc)
            return StateSnapshot()


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError:
        LOGGER.warning("Could not remove temporary snapshot %s", path)
