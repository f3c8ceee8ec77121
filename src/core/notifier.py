"""Core update notification pipeline.

This module is integration-agnostic. It only relies on ports for storage and
chat delivery, so the watcher, one-shot CLI and tests share the same flow.

``handle_update`` enforces a strict order:
1) Fast-exit for chains other than the primary one
2) Derive the internal nonce from the latest stored record
3) Notify INTERNAL with the full diff
4) Persist the notification record
5) Notify PUBLIC with the reviewed-contracts-only diff, if anything is left
"""

from __future__ import annotations

import asyncio
import html
import logging
from datetime import datetime
from typing import List, Sequence

from core.audience import filter_diff
from core.config import TELEGRAM_MAX_MESSAGE_LENGTH, NotifierConfig
from core.diff_messages import TRUNCATED, count_diff, cut_escaped, diff_to_messages, pack_messages
from core.dispatcher import ChannelDispatcher
from core.models import Channel, DiffEntry, MessageContext, NotificationRecord, UpdateMetadata
from core.nonce import NonceSequencer
from core.ports import UpdateStoragePort
from core.schedule import is_daily_trigger, report_date

LOGGER = logging.getLogger(__name__)

START_MESSAGE = "Update monitor started."


class UpdateNotifier:
    """Orchestrates formatting, filtering, persistence, and notifications."""

    def __init__(
        self,
        storage: UpdateStoragePort,
        dispatcher: ChannelDispatcher,
        config: NotifierConfig,
    ) -> None:
        self._storage = storage
        self._dispatcher = dispatcher
        self._config = config
        self._nonces = NonceSequencer(storage)
        # Nonce read and record append must not interleave between updates.
        self._update_lock = asyncio.Lock()

    async def handle_update(
        self,
        name: str,
        diff: Sequence[DiffEntry],
        metadata: UpdateMetadata,
    ) -> None:
        """Notify both audiences about one detected update."""

        # Only the primary chain is notified for now. Other chains carry many
        # changes that have not been reviewed yet, so they are skipped
        # entirely, including persistence.
        if metadata.chain != self._config.primary_chain:
            LOGGER.debug("Skipping update for %s on chain %s", name, metadata.chain)
            return

        async with self._update_lock:
            nonce = self._nonces.next_nonce()
            messages = diff_to_messages(
                name,
                diff,
                MessageContext(
                    nonce=nonce,
                    block_number=metadata.block_number,
                    dependents=metadata.dependents,
                    chain=metadata.chain,
                ),
                max_length=self._config.max_message_length,
            )
            await self._dispatcher.notify(messages, Channel.INTERNAL)
            self._storage.add(
                NotificationRecord(
                    project_name=name,
                    diff=tuple(diff),
                    block_number=metadata.block_number,
                )
            )
            LOGGER.info(
                "Updates detected, notification sent [INTERNAL] for %s (%s changes, nonce %s)",
                name,
                count_diff(diff),
                nonce,
            )

            filtered_diff = filter_diff(diff, metadata.unknown_contracts)
            if not filtered_diff:
                return

            # Public messages never carry a nonce.
            filtered_messages = diff_to_messages(
                name,
                filtered_diff,
                MessageContext(
                    block_number=metadata.block_number,
                    dependents=metadata.dependents,
                    chain=metadata.chain,
                ),
                max_length=self._config.max_message_length,
            )
            await self._dispatcher.notify(filtered_messages, Channel.PUBLIC)
            LOGGER.info(
                "Updates detected, notification sent [PUBLIC] for %s (%s changes)",
                name,
                count_diff(filtered_diff),
            )

    async def handle_unresolved(self, not_updated_projects: Sequence[str], timestamp: datetime) -> None:
        """Send the daily reminder about projects with pending changes."""

        if not is_daily_trigger(timestamp, self._config.reminder_timezone, self._config.reminder_hour):
            return

        await self._dispatcher.notify(
            build_daily_reminder(not_updated_projects, timestamp, self._config.max_message_length),
            Channel.INTERNAL,
        )
        LOGGER.info("Daily reminder sent (projects: %s)", ", ".join(not_updated_projects) or "none")

    async def handle_start(self) -> None:
        await self._dispatcher.notify(START_MESSAGE, Channel.INTERNAL)
        await self._dispatcher.notify(START_MESSAGE, Channel.PUBLIC)
        LOGGER.info("Initial notifications sent")


def build_daily_reminder(
    projects: Sequence[str],
    timestamp: datetime,
    max_length: int = TELEGRAM_MAX_MESSAGE_LENGTH,
) -> List[str]:
    """Render the daily report, split into messages of at most ``max_length``."""

    header = f"<code>Daily bot report @ {report_date(timestamp)}</code>"
    if not projects:
        return [f"{header}\n✅ everything is up to date"]

    # Every line must fit a message on its own, next to the header for the first one.
    limit = max_length - len(header) - len("\n❌ ") - len(TRUNCATED)
    lines: List[str] = []
    for project in projects:
        name = html.escape(project)
        if len(name) > limit:
            name = cut_escaped(name, limit) + TRUNCATED
        lines.append(f"❌ {name}")
    lines[0] = f"{header}\n{lines[0]}"
    return pack_messages(lines, max_length, separator="\n\n")
