"""Integration adapters: Telegram delivery and commands, HTTP feed, JSON snapshots."""
