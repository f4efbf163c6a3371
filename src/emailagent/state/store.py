"""SQLite-backed, origin-scoped key-value store.

Stands in for the browser's ``localStorage``: string keys mapping to string
values, visible to every tab of the same origin.  Each write is committed
synchronously and then announced on the ``StorageBus`` so the *other* tabs
can react.  No expiry is enforced.
"""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime

from emailagent.events import StorageBus, StorageChange


class KeyValueStore:
    """Persist and retrieve string values for one origin.

    Args:
        conn: An open sqlite3.Connection whose database already has the
              ``kv_store`` table (see ``init_kv_table``).
        origin: The origin all reads and writes are scoped to.
        bus: Optional bus on which writes are broadcast.
        tab_id: Identifier of the tab owning this store handle; stamped on
                every broadcast so the writer does not hear its own change.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        origin: str,
        *,
        bus: StorageBus | None = None,
        tab_id: str | None = None,
    ) -> None:
        self._conn = conn
        self.origin = origin
        self.bus = bus
        self.tab_id = tab_id

    def get(self, key: str) -> str | None:
        """Return the value stored under *key*, or ``None``."""
        row = self._conn.execute(
            "SELECT value FROM kv_store WHERE origin = ? AND key = ?",
            (self.origin, key),
        ).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        """Store *value* under *key* (upsert) and notify the other tabs."""
        old_value = self.get(key)
        now = datetime.now(tz=UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
        self._conn.execute(
            "INSERT OR REPLACE INTO kv_store (origin, key, value, updated_at) "
            "VALUES (?, ?, ?, ?)",
            (self.origin, key, value, now),
        )
        self._conn.commit()
        self._broadcast(key, old_value, value)

    def _broadcast(self, key: str, old_value: str | None, new_value: str) -> None:
        if self.bus is None:
            return
        self.bus.emit(
            StorageChange(
                origin=self.origin,
                key=key,
                old_value=old_value,
                new_value=new_value,
                source_tab=self.tab_id,
            )
        )
