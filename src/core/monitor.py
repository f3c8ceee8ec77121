"""Per-project update tracking on top of the notifier.

The monitor receives every discovery run (including the ones without
changes) and remembers which projects still have pending changes, which is
what the daily reminder reports.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional, Set, Tuple

from core.models import DiscoveredUpdate
from core.notifier import UpdateNotifier

LOGGER = logging.getLogger(__name__)


def _hour_bucket(timestamp: datetime) -> datetime:
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc).replace(minute=0, second=0, microsecond=0)


class UpdateMonitor:
    """Feeds discovery runs and clock ticks to an ``UpdateNotifier``."""

    def __init__(self, notifier: UpdateNotifier) -> None:
        self._notifier = notifier
        # Discovery runs once per project and chain, so both form the key.
        self._unresolved: Set[Tuple[str, str]] = set()
        self._last_tick: Optional[datetime] = None

    @property
    def unresolved(self) -> List[str]:
        """Pending projects rendered as ``name (chain)``, sorted."""

        return [f"{name} ({chain})" for name, chain in sorted(self._unresolved)]

    async def handle_discovery(self, update: DiscoveredUpdate) -> None:
        """Record a discovery run and notify when it carries changes."""

        key = (update.name, update.metadata.chain)
        if not update.diff:
            if key in self._unresolved:
                LOGGER.info("Project %s on %s is up to date again", *key)
            self._unresolved.discard(key)
            return

        self._unresolved.add(key)
        await self._notifier.handle_update(update.name, update.diff, update.metadata)

    async def handle_tick(self, now: datetime) -> bool:
        """Evaluate the daily reminder once per clock hour.

        Returns True when the notifier was consulted for this tick. The
        reminder gate matches a whole hour, so ticking more often than hourly
        would repeat the reminder.
        """

        bucket = _hour_bucket(now)
        if self._last_tick is not None and bucket <= self._last_tick:
            return False
        self._last_tick = bucket
        await self._notifier.handle_unresolved(self.unresolved, now)
        return True
