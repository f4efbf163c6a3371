"""SQLite schema for the origin-scoped key-value store."""

from __future__ import annotations

import sqlite3
from pathlib import Path


def init_kv_table(conn: sqlite3.Connection) -> None:
    """Create the kv_store table if it does not already exist.

    Rows are keyed by ``(origin, key)`` so several origins can share one
    database file without seeing each other's entries.

    Args:
        conn: An open sqlite3.Connection.
    """
    conn.execute("""
        CREATE TABLE IF NOT EXISTS kv_store (
            origin TEXT NOT NULL,
            key TEXT NOT NULL,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
            PRIMARY KEY (origin, key)
        )
    """)

    conn.commit()


def open_store_connection(db_path: str | Path) -> sqlite3.Connection:
    """Open the session database and make sure its table exists.

    Parent directories are created on demand; ``":memory:"`` is passed
    through untouched.

    Args:
        db_path: Filesystem path of the database, or ``":memory:"``.

    Returns:
        An open connection with the ``kv_store`` table initialized.
    """
    if str(db_path) == ":memory:":
        conn = sqlite3.connect(":memory:")
    else:
        path = Path(db_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(path))
        conn.execute("PRAGMA journal_mode=WAL")

    init_kv_table(conn)
    return conn
