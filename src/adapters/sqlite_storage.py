"""SQLite storage adapter.

Implements the core UpdateStoragePort using a simple SQLite database.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import List, Optional

from adapters.discovery_mapper import entry_to_payload
from core.diff_messages import count_diff
from core.models import NotificationRecord, StoredRecord


class SQLiteUpdateStorage:
    """Thin SQLite wrapper that satisfies the UpdateStoragePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - update_notifications: append-only log of internal notifications
        """

        with self._connect() as conn:
            # update_notifications ids feed the internal nonce, so the table is
            # never updated or pruned. AUTOINCREMENT keeps ids strictly
            # increasing even if rows are removed by hand.
            # Fields:
            # - id: auto-increment primary key, source of the nonce
            # - project_name: project the diff was detected for
            # - block_number: block the discovery ran at
            # - diff: JSON list of diff entries as delivered
            # - change_count: number of changes, kept for quick history output
            # - created_at: insert timestamp (UTC)
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS update_notifications (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    project_name TEXT NOT NULL,
                    block_number INTEGER NOT NULL,
                    diff TEXT NOT NULL,
                    change_count INTEGER NOT NULL,
                    created_at TIMESTAMP NOT NULL
                )
                """
            )

    def add(self, record: NotificationRecord) -> int:
        """Append a notification record and return its id."""

        created_at = datetime.now(timezone.utc)
        payload = json.dumps([entry_to_payload(entry) for entry in record.diff])
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO update_notifications (
                    project_name,
                    block_number,
                    diff,
                    change_count,
                    created_at
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (
                    record.project_name,
                    record.block_number,
                    payload,
                    count_diff(record.diff),
                    created_at.isoformat(),
                ),
            )
            return int(cur.lastrowid)

    def find_latest_id(self) -> Optional[int]:
        """Return the highest assigned record id, if any."""

        with self._connect() as conn:
            row = conn.execute("SELECT MAX(id) AS latest_id FROM update_notifications").fetchone()
        if row is None or row["latest_id"] is None:
            return None
        return int(row["latest_id"])

    def list_recent(self, limit: int = 20) -> List[StoredRecord]:
        """Return the newest records first."""

        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, project_name, block_number, change_count, created_at
                FROM update_notifications
                ORDER BY id DESC
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
        return [
            StoredRecord(
                id=int(row["id"]),
                project_name=row["project_name"],
                block_number=int(row["block_number"]),
                change_count=int(row["change_count"]),
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    def load_diff(self, record_id: int) -> Optional[list]:
        """Return the stored diff JSON of one record."""

        with self._connect() as conn:
            row = conn.execute(
                "SELECT diff FROM update_notifications WHERE id = ?",
                (record_id,),
            ).fetchone()
        return json.loads(row["diff"]) if row else None
