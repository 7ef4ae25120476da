"""Persist options in a flat SQLite table."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Iterable

from ...errors import StoreError, StoreReadError
from ...infra.storage import SQLiteManager
from ..models import Option
from .base import BaseOptionStore


class SQLiteOptionStore(BaseOptionStore):
    """Options table backed by SQLite, one row per option."""

    def __init__(self, manager: SQLiteManager, path: Path, table: str = "options") -> None:
        self.manager = manager
        self.path = path
        self.table = table
        try:
            self.conn = self.manager.connect(path, table)
        except (sqlite3.Error, OSError) as exc:
            raise StoreReadError(f"Cannot open {table} in {path}: {exc}") from exc

    def select_all(self) -> list[Option]:
        try:
            rows = self.conn.execute(f"SELECT id, name FROM {self.table} ORDER BY id").fetchall()
        except sqlite3.Error as exc:
            raise StoreReadError(f"Cannot read {self.table}: {exc}") from exc
        return [Option.from_row(row) for row in rows]

    def insert_one(self, option: Option) -> None:
        self._write(
            f"INSERT INTO {self.table}(id, name) VALUES (?, ?)",
            (option.id, option.name),
            action="insert",
        )

    def update_by_id(self, option_id: int, name: str) -> None:
        cursor = self._write(
            f"UPDATE {self.table} SET name = ? WHERE id = ?",
            (name, option_id),
            action="update",
        )
        if cursor.rowcount == 0:
            raise StoreError(f"update: no row with id {option_id} in {self.table}")

    def delete_by_id(self, option_id: int) -> None:
        self._write(f"DELETE FROM {self.table} WHERE id = ?", (option_id,), action="delete")

    def delete_all(self) -> None:
        self._write(f"DELETE FROM {self.table}", (), action="delete_all")

    def upsert_many(self, options: Iterable[Option]) -> None:
        rows = [(option.id, option.name) for option in options]
        if not rows:
            return
        try:
            with self.conn:
                self.conn.executemany(
                    f"INSERT INTO {self.table}(id, name) VALUES (?, ?) "
                    "ON CONFLICT(id) DO UPDATE SET name = excluded.name",
                    rows,
                )
        except sqlite3.Error as exc:
            raise StoreError(f"upsert_many failed on {self.table}: {exc}") from exc

    def close(self) -> None:
        self.conn.commit()

    def _write(self, sql: str, params: tuple, action: str) -> sqlite3.Cursor:
        try:
            with self.conn:
                return self.conn.execute(sql, params)
        except sqlite3.Error as exc:
            raise StoreError(f"{action} failed on {self.table}: {exc}") from exc


__all__ = ["SQLiteOptionStore"]
