"""Telegram Bot API chat adapter.

Uses the Bot API over plain HTTPS, so no Telethon session is needed.
"""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request
from typing import Mapping, Union

from core.models import Channel

ChatTarget = Union[int, str]


class TelegramBotApiNotifier:
    """Chat adapter that sends messages via the Telegram Bot API."""

    def __init__(self, bot_token: str, chats: Mapping[Channel, ChatTarget], timeout: float = 10) -> None:
        self._bot_token = bot_token
        self._chats = dict(chats)
        self._timeout = timeout

    def _endpoint(self) -> str:
        # The Bot API endpoint is deterministic and derived from the token.
        return f"https://api.telegram.org/bot{self._bot_token}/sendMessage"

    def build_payload(self, message: str, channel: Channel) -> dict:
        chat_id = self._chats.get(channel)
        if chat_id is None:
            raise RuntimeError(f"No chat configured for the {channel.value} channel")
        return {
            "chat_id": chat_id,
            "text": message,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }

    def _post(self, payload: dict) -> None:
        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(self._endpoint(), data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        try:
            with urllib.request.urlopen(request, timeout=self._timeout):
                pass
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise RuntimeError(f"Bot API error {e.code}: {body}") from e

    async def send(self, message: str, channel: Channel) -> None:
        """Send one message to the chat bound to ``channel``."""

        payload = self.build_payload(message, channel)
        # urllib blocks, so the request runs in a worker thread.
        await asyncio.to_thread(self._post, payload)
