"""Session persistence package.

Provides the SQLite-backed, origin-scoped key-value store that holds the
serialized identity between page sessions.
"""

from emailagent.state.schema import init_kv_table, open_store_connection
from emailagent.state.store import KeyValueStore

__all__ = [
    "KeyValueStore",
    "init_kv_table",
    "open_store_connection",
]
