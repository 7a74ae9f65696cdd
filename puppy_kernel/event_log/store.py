"""
Event Log: the persisted, flat record of puppy events.

Behavioral Contract:
- Events are stored whole as JSON; `time` is indexed for range queries.
- `get_events(start, end)` covers the half-open interval [start, end).
  Callers sort; ascending order is not part of the contract.
- Events are frozen values: updates replace the stored record by id.
"""

import logging
import sqlite3
from datetime import datetime
from typing import List, Optional

from puppy_kernel.core.errors import DuplicateEventError, EventNotFoundError
from puppy_kernel.models.event import Event

logger = logging.getLogger(__name__)


def _time_key(value: datetime) -> str:
    return value.isoformat(timespec="microseconds")


class EventLog:
    """
    SQLite-backed event log.
    Defaults to an in-memory database; pass a file path to persist.
    """

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS events (
                id TEXT PRIMARY KEY,
                type TEXT NOT NULL,
                time_key TEXT NOT NULL,
                record_json TEXT NOT NULL
            )
        """)
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_events_time ON events(time_key)
        """)
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_events_type ON events(type)
        """)
        self._conn.commit()

    def _deserialize(self, row: sqlite3.Row) -> Event:
        return Event.model_validate_json(row["record_json"])

    def add_event(self, event: Event) -> Event:
        try:
            self._conn.execute(
                "INSERT INTO events (id, type, time_key, record_json) VALUES (?, ?, ?, ?)",
                (event.id, event.type.value, _time_key(event.time), event.model_dump_json()),
            )
        except sqlite3.IntegrityError:
            raise DuplicateEventError(event.id)
        self._conn.commit()
        logger.debug("Logged %s event %s at %s", event.type.value, event.id, event.time)
        return event

    def update_event(self, event: Event) -> Event:
        cursor = self._conn.execute(
            "UPDATE events SET type = ?, time_key = ?, record_json = ? WHERE id = ?",
            (event.type.value, _time_key(event.time), event.model_dump_json(), event.id),
        )
        if cursor.rowcount == 0:
            raise EventNotFoundError(event.id)
        self._conn.commit()
        return event

    def delete_event(self, event_id: str) -> None:
        cursor = self._conn.execute("DELETE FROM events WHERE id = ?", (event_id,))
        if cursor.rowcount == 0:
            raise EventNotFoundError(event_id)
        self._conn.commit()

    def get_event(self, event_id: str) -> Optional[Event]:
        row = self._conn.execute(
            "SELECT record_json FROM events WHERE id = ?", (event_id,)
        ).fetchone()
        return self._deserialize(row) if row else None

    def get_events(self, start: datetime, end: datetime) -> List[Event]:
        """Events with start <= time < end."""
        rows = self._conn.execute(
            "SELECT record_json FROM events WHERE time_key >= ? AND time_key < ?",
            (_time_key(start), _time_key(end)),
        ).fetchall()
        return [self._deserialize(r) for r in rows]

    def get_all_events(self) -> List[Event]:
        rows = self._conn.execute("SELECT record_json FROM events").fetchall()
        return [self._deserialize(r) for r in rows]

    def count(self) -> int:
        row = self._conn.execute("SELECT COUNT(*) AS n FROM events").fetchone()
        return row["n"]

    def close(self) -> None:
        self._conn.close()
