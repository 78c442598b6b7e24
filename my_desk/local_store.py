"""SQLite-backed key/value store holding the client's local JSON blobs."""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator

logger = logging.getLogger(__name__)

Connection = sqlite3.Connection


class LocalKeys:
    ATTENDANCE = "myDesk_attendance"
    TASKS = "myDesk_tasks"
    INWARD = "myDesk_inward"
    OUTWARD = "myDesk_outward"
    OFFICES = "myDesk_offices"
    PROFILE = "myDesk_profile"
    MIGRATED = "myDesk_migrated"


# Export snapshot field -> (local key, default when absent).
SNAPSHOT_FIELDS: Dict[str, tuple[str, Any]] = {
    "inward": (LocalKeys.INWARD, []),
    "outward": (LocalKeys.OUTWARD, []),
    "attendance": (LocalKeys.ATTENDANCE, {}),
    "tasks": (LocalKeys.TASKS, []),
    "profile": (LocalKeys.PROFILE, {}),
    "offices": (LocalKeys.OFFICES, []),
}


class LocalStore:
    """Best-effort JSON blob storage keyed by collection name.

    Every failure is logged and degrades to the caller's default on reads
    and to ``False`` on writes.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize()

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        conn = sqlite3.connect(self._path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _initialize(self) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS local_state (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            conn.commit()

    def get(self, key: str, default: Any = None) -> Any:
        try:
            with self.connect() as conn:
                row = conn.execute(
                    "SELECT value FROM local_state WHERE key = ?", (key,)
                ).fetchone()
            if not row or not row["value"]:
                return default
            return json.loads(row["value"])
        except (sqlite3.Error, ValueError) as exc:
            logger.error("Error reading %s from local store: %s", key, exc)
            return default

    def set(self, key: str, value: Any) -> bool:
        try:
            encoded = json.dumps(value)
            with self.connect() as conn:
                conn.execute(
                    """
                    INSERT INTO local_state (key, value) VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value
                    """,
                    (key, encoded),
                )
                conn.commit()
            return True
        except (sqlite3.Error, TypeError, ValueError) as exc:
            logger.error("Error saving %s to local store: %s", key, exc)
            return False

    def is_migrated(self) -> bool:
        return self.get(LocalKeys.MIGRATED) == "1"

    def mark_migrated(self) -> bool:
        return self.set(LocalKeys.MIGRATED, "1")

    def export_snapshot(self) -> Dict[str, Any]:
        """All collection blobs in the offline import format."""

        return {
            field: self.get(key, type(default)())
            for field, (key, default) in SNAPSHOT_FIELDS.items()
        }


__all__ = ["LocalStore", "LocalKeys", "SNAPSHOT_FIELDS"]
