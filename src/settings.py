"""Static configuration for govwatch.

All user-editable settings (feed, state file, notifications, logging) live in
a single JSON file for quick edits without touching Python. Secrets stay in
the environment (.env).
"""

import json
import os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.environ.get("GOVWATCH_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _project_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Proposal feed polled by the poll loop.
_feed = _CONFIG.get("feed", {})
FEED_URL = _feed.get("url", "https://cb3bp-ciaaa-aaaai-qkw4q-cai.raw.ic0.app")
POLL_INTERVAL_SECONDS = float(_feed.get("poll_interval_seconds", 300))
FEED_TIMEOUT_SECONDS = float(_feed.get("timeout_seconds", 30))

# Snapshot of subscribers + last seen proposal.
# - PERSIST_INTERVAL_SECONDS: cadence of the persistence loop
# - PERSIST_ON_ADVANCE: also write right after each new proposal id
_state = _CONFIG.get("state", {})
STATE_PATH = _project_path(_state.get("path", "state.json"))
PERSIST_INTERVAL_SECONDS = float(_state.get("persist_interval_seconds", 60))
PERSIST_ON_ADVANCE = bool(_state.get("persist_on_advance", False))

_notifications = _CONFIG.get("notifications", {})
# Notification method switches adapters without changing core logic.
NOTIFICATION_METHOD = _notifications.get("notification_method", "client")
MAX_SUMMARY_CHARS = int(_notifications.get("max_summary_chars", 2048))
PROPOSAL_URL = _notifications.get("proposal_url", "https://dashboard.internetcomputer.org/proposal/{id}")
SKIP_SPAM = bool(_notifications.get("skip_spam", False))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
