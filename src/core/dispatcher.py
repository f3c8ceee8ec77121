"""Best-effort delivery of messages to an audience channel."""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Union

from core.models import Channel
from core.ports import ChatClientPort

LOGGER = logging.getLogger(__name__)


class ChannelDispatcher:
    """Send message batches through an optional chat client.

    Delivery is sequential and at most once per message: a failed message is
    logged and the next one is still attempted. Without a chat client every
    dispatch is a logged no-op.
    """

    def __init__(self, chat_client: Optional[ChatClientPort]) -> None:
        self._chat_client = chat_client

    @property
    def enabled(self) -> bool:
        return self._chat_client is not None

    async def notify(self, messages: Union[str, Sequence[str]], channel: Channel) -> int:
        """Deliver ``messages`` in order and return how many were sent."""

        if self._chat_client is None:
            LOGGER.info(
                "Chat client not set up, %s notification has not been sent. "
                "Did you provide the BOT_TOKEN environment variable?",
                channel.value,
            )
            return 0

        batch = [messages] if isinstance(messages, str) else list(messages)
        delivered = 0
        for message in batch:
            try:
                await self._chat_client.send(message, channel)
            except Exception:
                LOGGER.exception("Chat API error while sending %s notification", channel.value)
                continue
            delivered += 1
            LOGGER.debug("Notification sent to %s channel", channel.value)
        return delivered
