"""Application entry point for the diffscope watcher."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import AsyncIterator, Optional

from art import tprint
from dotenv import load_dotenv

import settings
from adapters.sqlite_storage import SQLiteUpdateStorage
from adapters.telegram_bot_notifier import TelegramBotApiNotifier
from adapters.telegram_notifier import TelegramChatNotifier
from adapters.update_inbox import UpdateInbox, load_payload
from client import build_client, read_bot_token
from core.dispatcher import ChannelDispatcher
from core.monitor import UpdateMonitor
from core.notifier import UpdateNotifier
from core.ports import ChatClientPort

NAME = "DIFFSCOPE"
FONT = "tarty-1"

LOGGER = logging.getLogger(__name__)


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
        path = file_cfg.get("path", "logs/diffscope.log")
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


def _open_storage() -> SQLiteUpdateStorage:
    directory = os.path.dirname(settings.DB_PATH)
    if directory:
        os.makedirs(directory, exist_ok=True)
    storage = SQLiteUpdateStorage(settings.DB_PATH)
    storage.init_db()
    return storage


@contextlib.asynccontextmanager
async def _chat_client() -> AsyncIterator[Optional[ChatClientPort]]:
    """Yield the configured chat adapter, or None when messaging is off."""

    bot_token = read_bot_token()
    if not bot_token:
        LOGGER.warning("BOT_TOKEN is not set, notifications will only be logged")
        yield None
        return

    chats = {channel: chat for channel, chat in settings.CHANNEL_CHATS.items() if chat is not None}
    missing = sorted(channel.value for channel in settings.CHANNEL_CHATS if channel not in chats)
    if missing:
        LOGGER.warning("No chat configured for channel(s): %s", ", ".join(missing))

    # Select the chat adapter based on configuration.
    if settings.NOTIFICATION_METHOD == "bot_api":
        LOGGER.info("Selected notification method - %s", settings.NOTIFICATION_METHOD)
        yield TelegramBotApiNotifier(bot_token, chats)
        return
    if settings.NOTIFICATION_METHOD != "telethon":
        raise RuntimeError("notification_method must be 'telethon' or 'bot_api'")

    LOGGER.info("Selected notification method - %s", settings.NOTIFICATION_METHOD)
    client = build_client()
    await client.start(bot_token=bot_token)
    try:
        yield TelegramChatNotifier(client, chats)
    finally:
        await client.disconnect()


async def _drain_inbox(inbox: UpdateInbox, monitor: UpdateMonitor) -> int:
    """Handle pending payloads in order and return how many were handled.

    Discovery tooling is expected to write payloads atomically (write to a
    temporary name, then rename into the inbox).
    """

    handled = 0
    for path in inbox.pending():
        try:
            update = inbox.load(path)
        except OSError:
            # Unreadable or vanished file: leave it for the next poll.
            LOGGER.exception("Could not open discovery payload %s, will retry", path.name)
            return handled
        except ValueError:
            LOGGER.exception("Failed to read discovery payload %s", path.name)
            inbox.mark_rejected(path)
            continue

        try:
            await monitor.handle_discovery(update)
        except Exception:
            # The payload stays in the inbox and later ones wait behind it, so
            # records keep the order in which discovery produced them.
            LOGGER.exception("Error while handling update for %s, will retry", update.name)
            return handled

        inbox.mark_done(path)
        handled += 1
    return handled


async def _watch() -> None:
    storage = _open_storage()
    inbox = UpdateInbox(settings.INBOX_PATH)
    inbox.ensure_dirs()

    async with _chat_client() as chat_client:
        notifier = UpdateNotifier(storage, ChannelDispatcher(chat_client), settings.notifier_config())
        monitor = UpdateMonitor(notifier)

        await notifier.handle_start()
        LOGGER.info("Watching %s for discovery payloads...", inbox.path)

        while True:
            handled = await _drain_inbox(inbox, monitor)
            if handled:
                LOGGER.info("Handled %s discovery payload(s), unresolved: %s", handled, len(monitor.unresolved))
            await monitor.handle_tick(datetime.now(timezone.utc))
            await asyncio.sleep(settings.POLL_INTERVAL_SECONDS)


def _run() -> None:
    _print_banner()
    _configure_logging()

    LOGGER.info("Starting diffscope")
    try:
        asyncio.run(_watch())
    except KeyboardInterrupt:
        LOGGER.info("Stopped")


async def _notify_once(payload_path: str) -> None:
    update = load_payload(Path(payload_path))
    if not update.diff:
        LOGGER.info("No changes for %s, nothing to send", update.name)
        return

    storage = _open_storage()
    async with _chat_client() as chat_client:
        notifier = UpdateNotifier(storage, ChannelDispatcher(chat_client), settings.notifier_config())
        await notifier.handle_update(update.name, update.diff, update.metadata)


def _notify(payload_path: str) -> None:
    _configure_logging()
    asyncio.run(_notify_once(payload_path))


def _history(limit: int, show: Optional[int]) -> None:
    storage = _open_storage()

    if show is not None:
        diff = storage.load_diff(show)
        if diff is None:
            print(f"No record with id {show}")
            return
        print(json.dumps(diff, indent=2))
        return

    records = storage.list_recent(limit)
    if not records:
        print("No notifications recorded yet.")
        return

    for record in records:
        created = record.created_at.strftime("%Y-%m-%d %H:%M:%S")
        print(
            f"#{record.id} | {created} | {record.project_name} | "
            f"block {record.block_number} | {record.change_count} change(s)"
        )


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="diffscope")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the watcher")

    notify_parser = subparsers.add_parser("notify", help="Send notifications for one discovery payload")
    notify_parser.add_argument("payload", help="Path to a discovery payload JSON file")

    history_parser = subparsers.add_parser("history", help="List recorded notifications")
    history_parser.add_argument("--limit", type=int, default=20)
    history_parser.add_argument("--show", type=int, metavar="ID", help="Print the stored diff of one record")

    args = parser.parse_args(argv)
    if args.command == "notify":
        _notify(args.payload)
        return
    if args.command == "history":
        _history(args.limit, args.show)
        return
    _run()


if __name__ == "__main__":
    main()
