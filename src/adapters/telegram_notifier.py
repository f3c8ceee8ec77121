"""Telegram chat adapter backed by a Telethon bot session.

Sends HTML-formatted messages to the chat configured for each audience channel.
"""

from __future__ import annotations

from typing import Mapping, Union

from core.models import Channel

ChatTarget = Union[int, str]


class TelegramChatNotifier:
    """Chat adapter that sends messages through a connected Telethon client."""

    def __init__(self, client, chats: Mapping[Channel, ChatTarget]) -> None:
        self._client = client
        self._chats = dict(chats)

    def chat_for(self, channel: Channel) -> ChatTarget:
        try:
            return self._chats[channel]
        except KeyError:
            raise RuntimeError(f"No chat configured for the {channel.value} channel") from None

    async def send(self, message: str, channel: Channel) -> None:
        """Send one message to the chat bound to ``channel``."""

        await self._client.send_message(
            self.chat_for(channel),
            message,
            parse_mode="html",
            link_preview=False,
        )
