"""Static configuration for diffscope.

All user-editable settings (chains, chats, reminder, inbox, logging) live in
a single JSON file for quick edits without touching Python. Secrets stay in
the environment (.env).
"""

import json
import os

from core.config import TELEGRAM_MAX_MESSAGE_LENGTH, NotifierConfig
from core.models import Channel

CONFIG_FILENAME = "config.json"

# Source checkout root; only used as a fallback for running from the repo.
SOURCE_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


def _find_config_path() -> str:
    """Return the config file to load.

    Lookup order: the DIFFSCOPE_CONFIG environment variable, config.json in
    the current working directory, config.json in the source checkout.
    """

    explicit = os.environ.get("DIFFSCOPE_CONFIG")
    if explicit:
        return os.path.abspath(explicit)
    local = os.path.join(os.getcwd(), CONFIG_FILENAME)
    if os.path.exists(local):
        return local
    return os.path.join(SOURCE_ROOT, CONFIG_FILENAME)


CONFIG_PATH = _find_config_path()

# Relative paths in the config (database, inbox, log file) resolve next to it.
PROJECT_ROOT = os.path.dirname(CONFIG_PATH)


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

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Where to store the SQLite database.
DB_PATH = _project_path(_CONFIG.get("database", {}).get("path", "diffscope.db"))

# Only updates on this chain are notified; the rest are dropped.
PRIMARY_CHAIN = _CONFIG.get("chains", {}).get("primary", "ethereum")

# Notification method switches adapters without changing core logic.
# - "telethon": bot session through Telethon (needs API_ID/API_HASH too)
# - "bot_api": plain HTTPS calls to the Bot API
_notifications = _CONFIG.get("notifications", {})
NOTIFICATION_METHOD = _notifications.get("notification_method", "telethon")
MAX_MESSAGE_LENGTH = int(_notifications.get("max_message_length", TELEGRAM_MAX_MESSAGE_LENGTH))
CHANNEL_CHATS = {
    Channel.INTERNAL: _notifications.get("internal_chat_id"),
    Channel.PUBLIC: _notifications.get("public_chat_id"),
}

# Daily reminder about projects whose changes are still pending.
_reminder = _CONFIG.get("reminder", {})
REMINDER_TIMEZONE = _reminder.get("timezone", "CET")
REMINDER_HOUR = int(_reminder.get("hour", 9))

# Inbox where discovery tooling drops its JSON payloads.
_inbox = _CONFIG.get("inbox", {})
INBOX_PATH = _project_path(_inbox.get("path", "inbox"))
POLL_INTERVAL_SECONDS = float(_inbox.get("poll_interval_seconds", 60))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})


def notifier_config() -> NotifierConfig:
    return NotifierConfig(
        primary_chain=PRIMARY_CHAIN,
        reminder_timezone=REMINDER_TIMEZONE,
        reminder_hour=REMINDER_HOUR,
        max_message_length=MAX_MESSAGE_LENGTH,
    )
