"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for storage and chat adapters so that the
core can be reused with different backends.
"""

from __future__ import annotations

from typing import Optional, Protocol

from core.models import Channel, NotificationRecord


class UpdateStoragePort(Protocol):
    """Storage operations required by the update notifier."""

    def add(self, record: NotificationRecord) -> int:
        ...

    def find_latest_id(self) -> Optional[int]:
        ...


class ChatClientPort(Protocol):
    """Delivery of a single text message to the chat bound to a channel.

    Implementations raise on delivery failure; the dispatcher isolates it.
    """

    async def send(self, message: str, channel: Channel) -> None:
        ...
