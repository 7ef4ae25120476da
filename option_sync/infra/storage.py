"""SQLite connection management for the options table."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from threading import Lock
from typing import Dict


class SQLiteManager:
    """Manage SQLite connections with basic schema guarantees."""

    def __init__(self) -> None:
        self._connections: Dict[Path, sqlite3.Connection] = {}
        self._tables: Dict[Path, set[str]] = {}
        self._lock = Lock()

    def connect(self, path: Path, table: str = "options") -> sqlite3.Connection:
        path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            conn = self._connections.get(path)
            if conn is None:
                conn = sqlite3.connect(path, check_same_thread=False)
                conn.row_factory = sqlite3.Row
                try:
                    self._ensure_schema(conn, table)
                except sqlite3.Error:
                    conn.close()
                    raise
                self._connections[path] = conn
                self._tables[path] = {table}
            elif table not in self._tables[path]:
                self._ensure_schema(conn, table)
                self._tables[path].add(table)
            return conn

    def _ensure_schema(self, conn: sqlite3.Connection, table: str) -> None:
        conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {table} (
                id INTEGER PRIMARY KEY,
                name TEXT NOT NULL
            )
            """
        )
        conn.commit()

    def reset(self, path: Path) -> None:
        with self._lock:
            if path in self._connections:
                self._connections[path].close()
                del self._connections[path]
                del self._tables[path]
        if path.exists():
            path.unlink()

    def close_all(self) -> None:
        with self._lock:
            for conn in self._connections.values():
                conn.close()
            self._connections.clear()
            self._tables.clear()


__all__ = ["SQLiteManager"]
