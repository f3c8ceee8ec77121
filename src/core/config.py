"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass

# Telegram rejects text messages longer than this.
TELEGRAM_MAX_MESSAGE_LENGTH = 4096


@dataclass(frozen=True)
class NotifierConfig:
    """Settings consumed by the update notifier."""

    primary_chain: str = "ethereum"
    reminder_timezone: str = "CET"
    reminder_hour: int = 9
    max_message_length: int = TELEGRAM_MAX_MESSAGE_LENGTH
