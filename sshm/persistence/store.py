"""
Host Store - durable mapping from HostKey to HostRecord.

SQLite in WAL mode: readers never block each other or the writer, and
every mutation commits before the method returns. Writers are serialized
by ``write_lock``, which callers doing read-modify-write sequences (the
merge engine, manual edits) hold across the whole sequence.
"""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from loguru import logger

from sshm.core.exceptions import PersistenceError
from sshm.discovery.models import HostKey
from sshm.persistence.converters import format_timestamp, record_to_row, row_to_record
from sshm.persistence.models import HostRecord, utcnow
from sshm.persistence.schema import init_host_tables

# Default SQLite connection timeout (seconds) to prevent indefinite blocking
_DEFAULT_TIMEOUT = 5.0

# Most recently used first, never-used last, then by name
_ORDER_BY = """
    ORDER BY last_used IS NULL, last_used DESC, display_name COLLATE NOCASE, host_key
"""

_UPSERT = """
    INSERT INTO hosts (
        host_key, key_host, key_port, display_name, address, port, username,
        username_source, key_path, description, tags, last_seen_sources, user_edited,
        created_at, updated_at, last_used, use_count
    ) VALUES (
        :host_key, :key_host, :key_port, :display_name, :address, :port, :username,
        :username_source, :key_path, :description, :tags, :last_seen_sources, :user_edited,
        :created_at, :updated_at, :last_used, :use_count
    )
    ON CONFLICT(host_key) DO UPDATE SET
        display_name = excluded.display_name,
        address = excluded.address,
        port = excluded.port,
        username = excluded.username,
        username_source = excluded.username_source,
        key_path = excluded.key_path,
        description = excluded.description,
        tags = excluded.tags,
        last_seen_sources = excluded.last_seen_sources,
        user_edited = excluded.user_edited,
        updated_at = excluded.updated_at,
        last_used = excluded.last_used,
        use_count = excluded.use_count
"""

_SEARCH_COLUMNS = ("display_name", "address", "username", "description", "tags")


def _casefold(value: str | None) -> str:
    return value.casefold() if value else ""


class HostStore:
    """
    SQLite-backed host inventory.

    One instance is created by the application and handed to whoever
    needs it; there is no module-level store.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.write_lock = threading.RLock()
        self._init_tables()
        logger.debug(f"🗄️ Host store initialized at {self.db_path}")

    def _get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=_DEFAULT_TIMEOUT)
        conn.row_factory = sqlite3.Row
        # SQLite's lower() only folds ASCII
        conn.create_function("casefold", 1, _casefold, deterministic=True)
        return conn

    @contextmanager
    def _connection(self, *, commit: bool = False) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database connections.

        Args:
            commit: If True, commits on success and rolls back on exception.
        """
        conn = self._get_connection()
        try:
            yield conn
            if commit:
                conn.commit()
        except Exception:
            if commit:
                conn.rollback()
            raise
        finally:
            conn.close()

    def _init_tables(self) -> None:
        try:
            with self._connection(commit=True) as conn:
                conn.execute("PRAGMA journal_mode = WAL")
                cursor = conn.cursor()
                try:
                    init_host_tables(cursor)
                finally:
                    cursor.close()
        except sqlite3.Error as e:
            raise PersistenceError("init", str(e), {"db_path": str(self.db_path)}) from e

    # =========================================================================
    # Write path
    # =========================================================================

    def put(self, record: HostRecord) -> None:
        """Insert or replace a record. ``created_at`` of an existing row is kept.

        Raises:
            PersistenceError: The record could not be committed.
        """
        with self.write_lock:
            try:
                with self._connection(commit=True) as conn:
                    conn.execute(_UPSERT, record_to_row(record))
            except sqlite3.Error as e:
                logger.error(f"❌ Failed to store host {record.key}: {e}")
                raise PersistenceError("put", str(e), {"key": str(record.key)}) from e

    def delete(self, key: HostKey) -> bool:
        """Delete a record.

        Returns:
            True if deleted, False if not found.
        """
        with self.write_lock:
            try:
                with self._connection(commit=True) as conn:
                    cursor = conn.execute("DELETE FROM hosts WHERE host_key = ?", (str(key),))
                    deleted = cursor.rowcount > 0
            except sqlite3.Error as e:
                raise PersistenceError("delete", str(e), {"key": str(key)}) from e
        if deleted:
            logger.info(f"🗑️ Host {key} deleted")
        return deleted

    def mark_used(self, key: HostKey, when: datetime | None = None) -> bool:
        """Record a connection to ``key``; consulted by list ordering.

        Returns:
            True if the host exists.
        """
        when = when or utcnow()
        with self.write_lock:
            try:
                with self._connection(commit=True) as conn:
                    cursor = conn.execute(
                        """
                        UPDATE hosts SET last_used = ?, use_count = use_count + 1
                        WHERE host_key = ?
                        """,
                        (format_timestamp(when), str(key)),
                    )
                    return cursor.rowcount > 0
            except sqlite3.Error as e:
                raise PersistenceError("mark_used", str(e), {"key": str(key)}) from e

    # =========================================================================
    # Read path
    # =========================================================================

    def _query(self, operation: str, sql: str, params: tuple | dict = ()) -> list[HostRecord]:
        try:
            with self._connection() as conn:
                rows = conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(operation, str(e)) from e
        return [row_to_record(row) for row in rows]

    def get(self, key: HostKey) -> HostRecord | None:
        records = self._query("get", "SELECT * FROM hosts WHERE host_key = ?", (str(key),))
        return records[0] if records else None

    def list(self) -> list[HostRecord]:
        """All records, most recently used first, then by display name."""
        return self._query("list", f"SELECT * FROM hosts {_ORDER_BY}")

    def search(self, query: str) -> list[HostRecord]:
        """
        Case-insensitive substring search over display name, address,
        username, description and tags, in ``list()`` order. An empty query
        returns everything.
        """
        needle = query.strip().casefold()
        if not needle:
            return self.list()
        where = " OR ".join(f"instr(casefold({c}), :needle) > 0" for c in _SEARCH_COLUMNS)
        return self._query(
            "search",
            f"SELECT * FROM hosts WHERE {where} {_ORDER_BY}",
            {"needle": needle},
        )

    def find_by_name(self, name: str) -> list[HostRecord]:
        """Records whose display name or address equals ``name`` (case-insensitive)."""
        return self._query(
            "find_by_name",
            f"""
            SELECT * FROM hosts
            WHERE casefold(display_name) = :name OR casefold(address) = :name
            {_ORDER_BY}
            """,
            {"name": name.strip().casefold()},
        )

    def count(self) -> int:
        try:
            with self._connection() as conn:
                return conn.execute("SELECT COUNT(*) FROM hosts").fetchone()[0]
        except sqlite3.Error as e:
            raise PersistenceError("count", str(e)) from e
