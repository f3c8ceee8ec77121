"""Nonce sequencing for internal notifications (core domain)."""

from __future__ import annotations

from core.ports import UpdateStoragePort


class NonceSequencer:
    """Derive the next internal-message nonce from persisted records.

    The nonce is read, not reserved: two callers reading before either has
    appended a record get the same value. ``UpdateNotifier`` serialises its
    updates to keep nonces distinct within one process.
    """

    def __init__(self, storage: UpdateStoragePort) -> None:
        self._storage = storage

    def next_nonce(self) -> int:
        latest_id = self._storage.find_latest_id()
        if latest_id is None:
            return 0
        return latest_id + 1
