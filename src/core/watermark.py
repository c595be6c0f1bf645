"""Proposal watermark: the single deduplication gate for dispatch."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class WatermarkTracker:
    """Highest proposal id handed to the dispatcher so far."""

    def __init__(self, initial: int = 0) -> None:
        if initial < 0:
            raise ValueError(f"Watermark must be non-negative, got {initial}")
        self._lock = threading.Lock()
        self._value = initial

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def advance_if_newer(self, candidate_id: int) -> bool:
        """Move the watermark to ``candidate_id`` if it is strictly higher.

        The comparison and the update happen under one lock acquisition, so
        each id wins at most once across concurrent callers.
        """

        with self._lock:
            if candidate_id <= self._value:
                return False
            self._value = candidate_id
            return True

    @contextmanager
    def locked(self) -> Iterator[int]:
        """Hold the watermark still and yield its value."""

        with self._lock:
            yield self._value

    def restore(self, value: int) -> None:
        """Raise the watermark to a persisted value; never lowers it."""

        with self._lock:
            if value > self._value:
                self._value = value
