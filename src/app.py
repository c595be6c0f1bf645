"""Application entry point for the govwatch proposal bot."""

from __future__ import annotations

import argparse
import functools
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv
from telethon import events

import settings
from adapters.json_snapshot_store import JsonSnapshotStore
from adapters.notification_formatting import format_notification
from adapters.proposal_feed import HttpProposalFeed
from adapters.telegram_bot_notifier import TelegramBotNotifier
from adapters.telegram_mapper import command_from_message
from adapters.telegram_notifier import TelegramClientNotifier
from client import bot_token, build_client
from core.commands import CommandHandler
from core.config import DispatchConfig, PollConfig
from core.dispatcher import NotificationDispatcher
from core.state import WatcherState
from core.watcher import ProposalWatcher

NAME = "GOVWATCH"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/govwatch.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)
    # Telethon is chatty at INFO; keep its connection noise out of our logs.
    logging.getLogger("telethon").setLevel(max(level, logging.WARNING))


def _build_notifier(client, token: str):
    # Select the notification adapter based on configuration to keep the core
    # dispatcher independent from delivery details.
    if settings.NOTIFICATION_METHOD == "bot_api":
        return TelegramBotNotifier(bot_token=token)
    if settings.NOTIFICATION_METHOD == "client":
        return TelegramClientNotifier(client)
    raise RuntimeError("notification_method must be 'client' or 'bot_api'")


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting govwatch")

    token = bot_token()
    client = build_client()
    notifier = _build_notifier(client, token)
    logger.info("Selected notification method - %s", settings.NOTIFICATION_METHOD)

    dispatch_config = DispatchConfig(
        max_summary_chars=settings.MAX_SUMMARY_CHARS,
        proposal_url=settings.PROPOSAL_URL,
        skip_spam=settings.SKIP_SPAM,
    )
    poll_config = PollConfig(
        poll_interval=settings.POLL_INTERVAL_SECONDS,
        persist_interval=settings.PERSIST_INTERVAL_SECONDS,
        persist_on_advance=settings.PERSIST_ON_ADVANCE,
    )

    # One state object is shared by the command handler and both loops.
    state = WatcherState()
    store = JsonSnapshotStore(settings.STATE_PATH)
    dispatcher = NotificationDispatcher(
        registry=state.registry,
        notifier=notifier,
        formatter=functools.partial(format_notification, config=dispatch_config),
        skip_spam=dispatch_config.skip_spam,
    )
    watcher = ProposalWatcher(
        state=state,
        feed=HttpProposalFeed(settings.FEED_URL, timeout=settings.FEED_TIMEOUT_SECONDS),
        dispatcher=dispatcher,
        store=store,
        config=poll_config,
    )
    watcher.restore()
    commands = CommandHandler(state.registry)

    @client.on(events.NewMessage(incoming=True))
    async def handler(event) -> None:
        try:
            inbound = command_from_message(event.message)
            if inbound is None:
                return
            logger.info("Got message: chat=%s, text=%s", inbound.subscriber_id, inbound.text)
            reply = commands.handle_text(inbound.subscriber_id, inbound.text)
            await event.respond(reply, link_preview=False)
        except Exception:
            logger.exception("Error while handling command")

    async def _serve() -> None:
        await client.start(bot_token=token)
        me = await client.get_me()
        logger.info("Authorized on account %s", getattr(me, "username", None))
        watcher.start()
        logger.info("Listening for commands...")
        await client.run_until_disconnected()

    # Explicit lifecycle management makes start/shutdown behavior obvious.
    try:
        client.loop.run_until_complete(_serve())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        client.loop.run_until_complete(watcher.stop())
        if client.is_connected():
            client.loop.run_until_complete(client.disconnect())
        logger.info("Stopped")


def _status() -> None:
    store = JsonSnapshotStore(settings.STATE_PATH)
    snapshot = store.load()
    print(f"State file: {store.path}")
    print(f"Last seen proposal: {snapshot.watermark}")
    print(f"Subscribers: {snapshot.subscriber_count}")
    for subscriber_id, topics in sorted(snapshot.subscriptions.items()):
        blocked = ", ".join(sorted(topics)) if topics else "-"
        print(f"  {subscriber_id} | blocked: {blocked}")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="govwatch")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the proposal bot")
    subparsers.add_parser("status", help="Show the persisted subscribers and last seen proposal")

    args = parser.parse_args(argv)
    if args.command == "status":
        _status()
        return
    _run()


if __name__ == "__main__":
    main()
