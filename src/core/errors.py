"""Core exception types."""

from __future__ import annotations


class GovwatchError(Exception):
    """Base class for errors raised by govwatch components."""


class FeedError(GovwatchError):
    """The proposal feed could not be fetched or parsed for this cycle."""


class SnapshotError(GovwatchError):
    """A snapshot could not be serialized or deserialized."""
