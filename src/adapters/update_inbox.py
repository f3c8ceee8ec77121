"""Directory inbox for discovery payloads.

Discovery tooling drops one JSON file per run into the inbox. Files are
handled in name order and moved to ``done/`` or ``rejected/`` afterwards, so
a file left in the inbox is retried on the next poll.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List

from adapters.discovery_mapper import build_update
from core.models import DiscoveredUpdate

LOGGER = logging.getLogger(__name__)

DONE_DIR = "done"
REJECTED_DIR = "rejected"


def load_payload(path: Path) -> DiscoveredUpdate:
    """Read and map one payload file.

    Raises ValueError for unreadable JSON or an unexpected payload shape.
    """

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path.name}: {e}") from e
    return build_update(payload)


class UpdateInbox:
    """Filesystem-backed queue of discovery payloads."""

    def __init__(self, path: str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def ensure_dirs(self) -> None:
        for directory in (self._path, self._path / DONE_DIR, self._path / REJECTED_DIR):
            directory.mkdir(parents=True, exist_ok=True)

    def pending(self) -> List[Path]:
        """Return payload files waiting in the inbox, oldest name first."""

        if not self._path.is_dir():
            return []
        return sorted(item for item in self._path.glob("*.json") if item.is_file())

    def load(self, path: Path) -> DiscoveredUpdate:
        return load_payload(path)

    def _move(self, path: Path, directory: str) -> Path:
        target_dir = self._path / directory
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / path.name
        path.replace(target)
        return target

    def mark_done(self, path: Path) -> Path:
        return self._move(path, DONE_DIR)

    def mark_rejected(self, path: Path) -> Path:
        LOGGER.warning("Rejected discovery payload %s", path.name)
        return self._move(path, REJECTED_DIR)
