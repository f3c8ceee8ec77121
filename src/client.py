"""Telegram client factory for diffscope.

We explicitly manage the client's lifecycle (start/disconnect) so it is
obvious when the bot session is created and when it ends.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from telethon import TelegramClient


def read_bot_token() -> Optional[str]:
    """Return BOT_TOKEN from the environment, or None when it is not set.

    A missing token is not an error: notifications are then logged and
    skipped instead of delivered.
    """

    load_dotenv()
    return os.getenv("BOT_TOKEN") or None


def build_client() -> TelegramClient:
    """Create a Telethon client from environment variables.

    We read API_ID/API_HASH via python-dotenv to keep secrets out of the repo.
    The session name defaults to "diffscope" to create a local .session file.
    """

    load_dotenv()

    api_id = os.getenv("API_ID")
    api_hash = os.getenv("API_HASH")
    session_name = os.getenv("SESSION_NAME", "diffscope")

    # Fail fast on missing credentials; bot sessions still need an API id.
    if not api_id or not api_hash:
        raise RuntimeError("Missing API_ID or API_HASH in environment")

    logging.getLogger(__name__).info("Initializing Telegram client")

    return TelegramClient(session_name, int(api_id), api_hash)
