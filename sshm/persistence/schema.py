"""
Host store table definitions.
"""

import sqlite3

SCHEMA_VERSION = 2

# Columns added after the first release, with their definitions
_ADDED_COLUMNS = {
    "key_path": "TEXT NOT NULL DEFAULT ''",
    "description": "TEXT NOT NULL DEFAULT ''",
    "tags": "TEXT NOT NULL DEFAULT ''",
}


def init_host_tables(cursor: sqlite3.Cursor) -> None:
    """Initialize the hosts table and its indexes."""
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS hosts (
            host_key TEXT PRIMARY KEY,
            key_host TEXT NOT NULL,
            key_port INTEGER NOT NULL,
            display_name TEXT NOT NULL,
            address TEXT NOT NULL,
            port INTEGER NOT NULL DEFAULT 22,
            username TEXT NOT NULL DEFAULT '',
            username_source TEXT NOT NULL DEFAULT '',
            key_path TEXT NOT NULL DEFAULT '',
            description TEXT NOT NULL DEFAULT '',
            tags TEXT NOT NULL DEFAULT '',
            last_seen_sources TEXT NOT NULL DEFAULT '[]',
            user_edited INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            last_used TEXT,
            use_count INTEGER NOT NULL DEFAULT 0
        )
    """)
    # Add missing columns (migration for version 1 databases)
    cursor.execute("PRAGMA table_info(hosts)")
    columns = {row[1] for row in cursor.fetchall()}
    for name, definition in _ADDED_COLUMNS.items():
        if name not in columns:
            cursor.execute(f"ALTER TABLE hosts ADD COLUMN {name} {definition}")
    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_hosts_last_used ON hosts(last_used)
    """)
    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_hosts_display_name ON hosts(display_name COLLATE NOCASE)
    """)
    cursor.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
