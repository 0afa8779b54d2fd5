#!/usr/bin/env python3
"""
sqlite_store.py: SQLite key-value store adapter

Keys and values live in a two-column BLOB table. The sqlite3 connection is
shared by all workers, so every statement runs in a worker thread under a
single lock.
"""

import asyncio
import logging
import sqlite3
import threading
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from ..evaluation.config import SQLiteSettings
from ..interfaces.store_adapter import (
    ReadError,
    StoreAdapter,
    StoreConnectionError,
    StoreHealthStatus,
    WriteError,
)

logger = logging.getLogger(__name__)

# SQLite's default SQLITE_MAX_VARIABLE_NUMBER on older builds
MAX_QUERY_PARAMETERS = 999


class SQLiteStoreAdapter(StoreAdapter):
    """Store adapter over a single sqlite3 connection."""

    def __init__(self, settings: Optional[SQLiteSettings] = None):
        self.settings = settings or SQLiteSettings()
        self.table = self.settings.table
        self.conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    @property
    def backend_name(self) -> str:
        return "sqlite"

    async def initialize(self) -> None:
        try:
            await asyncio.to_thread(self._open)
        except sqlite3.Error as e:
            raise StoreConnectionError(self.backend_name, f"cannot open {self.settings.path}: {e}", e) from e
        logger.info(f"SQLite store opened at {self.settings.path} (table {self.table})")

    def _open(self) -> None:
        conn = sqlite3.connect(
            self.settings.path,
            timeout=self.settings.busy_timeout_ms / 1000.0,
            check_same_thread=False,
        )
        try:
            conn.execute(f"PRAGMA journal_mode={self.settings.journal_mode}")
            conn.execute(f"PRAGMA synchronous={self.settings.synchronous}")
            conn.execute(f"PRAGMA busy_timeout={self.settings.busy_timeout_ms}")
            if self.settings.recreate_table:
                conn.execute(f"DROP TABLE IF EXISTS {self.table}")
            conn.execute(
                f"CREATE TABLE IF NOT EXISTS {self.table} "
                f"(id BLOB PRIMARY KEY NOT NULL, value BLOB NOT NULL)"
            )
            conn.commit()
        except sqlite3.Error:
            conn.close()
            raise
        self.conn = conn

    async def cleanup(self) -> None:
        if self.conn is None:
            return
        conn, self.conn = self.conn, None
        await asyncio.to_thread(conn.close)

    async def put(self, key: bytes, value: bytes) -> None:
        await self._write(
            "put",
            lambda conn: conn.execute(
                f"INSERT OR REPLACE INTO {self.table} (id, value) VALUES (?, ?)", (key, value)
            ),
        )

    async def multi_put(self, items: Iterable[Tuple[bytes, bytes]]) -> None:
        rows = list(items)
        await self._write(
            "multi_put",
            lambda conn: conn.executemany(
                f"INSERT OR REPLACE INTO {self.table} (id, value) VALUES (?, ?)", rows
            ),
        )

    async def delete(self, key: bytes) -> None:
        await self._write(
            "delete",
            lambda conn: conn.execute(f"DELETE FROM {self.table} WHERE id = ?", (key,)),
        )

    async def get(self, key: bytes) -> Optional[bytes]:
        def query(conn: sqlite3.Connection) -> Optional[bytes]:
            row = conn.execute(f"SELECT value FROM {self.table} WHERE id = ?", (key,)).fetchone()
            return bytes(row[0]) if row is not None else None

        return await self._read("get", query)

    async def multi_get(self, keys: Sequence[bytes]) -> List[Optional[bytes]]:
        keys = list(keys)

        def query(conn: sqlite3.Connection) -> List[Optional[bytes]]:
            found = {}
            for start in range(0, len(keys), MAX_QUERY_PARAMETERS):
                chunk = keys[start:start + MAX_QUERY_PARAMETERS]
                placeholders = ", ".join("?" * len(chunk))
                cursor = conn.execute(
                    f"SELECT id, value FROM {self.table} WHERE id IN ({placeholders})", chunk
                )
                for row_key, row_value in cursor:
                    found[bytes(row_key)] = bytes(row_value)
            # Rows come back in index order; map them back onto the request positions
            return [found.get(key) for key in keys]

        return await self._read("multi_get", query)

    async def health_check(self) -> StoreHealthStatus:
        try:
            count = await self._read(
                "count", lambda conn: conn.execute(f"SELECT COUNT(*) FROM {self.table}").fetchone()[0]
            )
        except ReadError as e:
            return StoreHealthStatus(backend_name=self.backend_name, is_healthy=False, error_message=str(e))
        return StoreHealthStatus(
            backend_name=self.backend_name,
            details={"path": self.settings.path, "row_count": count},
        )

    async def _write(self, operation: str, statement: Callable[[sqlite3.Connection], Any]) -> None:
        def run() -> None:
            conn = self._connection()
            with self._lock:
                try:
                    statement(conn)
                    conn.commit()
                except sqlite3.Error:
                    conn.rollback()
                    raise

        try:
            await asyncio.to_thread(run)
        except sqlite3.Error as e:
            raise WriteError(self.backend_name, f"{operation}: {e}", e) from e

    async def _read(self, operation: str, query: Callable[[sqlite3.Connection], Any]) -> Any:
        def run() -> Any:
            conn = self._connection()
            with self._lock:
                return query(conn)

        try:
            return await asyncio.to_thread(run)
        except sqlite3.Error as e:
            raise ReadError(self.backend_name, f"{operation}: {e}", e) from e

    def _connection(self) -> sqlite3.Connection:
        if self.conn is None:
            raise sqlite3.ProgrammingError("SQLite store is not initialized")
        return self.conn
