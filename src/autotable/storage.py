"""SQLite store boundary and the process-wide store registry."""

from __future__ import annotations

import os
import re
import sqlite3
from dataclasses import dataclass
from typing import Any, Sequence
from urllib.parse import urlparse

from autotable.config import AutotableConfig
from autotable.errors import MissingColumnError, MissingTableError, StoreError
from autotable.logging import get_logger

logger = get_logger(__name__)

MEMORY = ":memory:"

_JOURNAL_MODES = {"DELETE", "TRUNCATE", "PERSIST", "MEMORY", "WAL", "OFF"}


@dataclass(frozen=True)
class StorageTarget:
    """Resolved location of a named store."""

    name: str
    uri: str
    db_path: str


def parse_storage_target(store_name: str, data_dir: str = ".") -> StorageTarget:
    """Resolve a store name to a sqlite path.

    ``:memory:`` is an in-memory database, ``sqlite:///path`` an explicit path,
    and a bare name becomes ``<data_dir>/<name>.db``.
    """
    if not store_name:
        raise StoreError("parse_storage_target", "Store name must not be empty")

    if store_name == MEMORY:
        return StorageTarget(name=store_name, uri=f"sqlite:///{MEMORY}", db_path=MEMORY)

    parsed = urlparse(store_name)
    if parsed.scheme == "sqlite":
        sqlite_path = parsed.path
        if parsed.netloc:
            sqlite_path = f"{parsed.netloc}{sqlite_path}"
        elif sqlite_path.startswith("//"):
            # sqlite:////abs/path -> /abs/path
            sqlite_path = sqlite_path[1:]
        elif sqlite_path.startswith("/"):
            sqlite_path = sqlite_path[1:]
        if not sqlite_path:
            raise StoreError("parse_storage_target", f"Invalid sqlite URI: {store_name}")
        return StorageTarget(name=store_name, uri=store_name, db_path=sqlite_path)

    # Single-letter schemes are Windows drive letters
    if len(parsed.scheme) > 1:
        raise StoreError(
            "parse_storage_target",
            f"Unsupported storage URI scheme '{parsed.scheme}' for '{store_name}'",
        )

    path = store_name if os.path.splitext(store_name)[1] else f"{store_name}.db"
    if not os.path.isabs(path):
        path = os.path.join(data_dir, path)
    return StorageTarget(name=store_name, uri=f"sqlite:///{path}", db_path=path)


def _classify(operation: str, error: sqlite3.Error, table: str | None) -> StoreError:
    message = str(error)
    lowered = message.lower()
    if "no such table" in lowered:
        return MissingTableError(operation, message, table=table)
    if "no such column" in lowered or "has no column named" in lowered:
        return MissingColumnError(operation, message, table=table)
    return StoreError(operation, message)


def _clauses(
    where: str | None,
    group_by: str | None,
    having: str | None,
    order_by: str | None,
    limit: int | None,
) -> str:
    parts = []
    if where:
        parts.append(f" WHERE {where}")
    if group_by:
        parts.append(f" GROUP BY {group_by}")
    if having:
        parts.append(f" HAVING {having}")
    if order_by:
        parts.append(f" ORDER BY {order_by}")
    if limit is not None:
        parts.append(f" LIMIT {int(limit)}")
    return "".join(parts)


class Store:
    """One autocommit sqlite3 connection for a named store."""

    def __init__(self, name: str, db_path: str, *, journal_mode: str = "WAL") -> None:
        mode = journal_mode.upper()
        if mode not in _JOURNAL_MODES:
            raise StoreError("open", f"Unsupported journal mode '{journal_mode}'")
        self.name = name
        self.db_path = db_path
        if db_path != MEMORY:
            parent = os.path.dirname(os.path.abspath(db_path))
            os.makedirs(parent, exist_ok=True)
        try:
            self._conn = sqlite3.connect(db_path, isolation_level=None, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute(f"PRAGMA journal_mode={mode}")
        except sqlite3.Error as e:
            raise StoreError("open", f"{db_path}: {e}") from e
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _run(
        self,
        operation: str,
        sql: str,
        args: Sequence[Any] = (),
        *,
        table: str | None = None,
    ) -> sqlite3.Cursor:
        if self._closed:
            raise StoreError(operation, f"Store '{self.name}' is closed")
        try:
            return self._conn.execute(sql, tuple(args))
        except sqlite3.Error as e:
            raise _classify(operation, e, table) from e

    def execute(self, sql: str, args: Sequence[Any] | None = None) -> None:
        self._run("execute", sql, args or ())

    def query(
        self,
        table: str,
        columns: Sequence[str] | None = None,
        *,
        where: str | None = None,
        args: Sequence[Any] | None = None,
        group_by: str | None = None,
        having: str | None = None,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[sqlite3.Row]:
        cols = ", ".join(columns) if columns else "*"
        sql = f"SELECT {cols} FROM {table}" + _clauses(where, group_by, having, order_by, limit)
        return self._run("query", sql, args or (), table=table).fetchall()

    def insert(self, table: str, values: dict[str, Any]) -> int:
        """Insert one row and return its new identity."""
        if values:
            cols = ", ".join(values)
            placeholders = ", ".join("?" for _ in values)
            sql = f"INSERT INTO {table} ({cols}) VALUES ({placeholders})"
        else:
            sql = f"INSERT INTO {table} DEFAULT VALUES"
        cursor = self._run("insert", sql, list(values.values()), table=table)
        return cursor.lastrowid  # type: ignore[return-value]

    def update(
        self,
        table: str,
        values: dict[str, Any],
        where: str,
        args: Sequence[Any] | None = None,
    ) -> int:
        if not values:
            return 0
        assignments = ", ".join(f"{col} = ?" for col in values)
        sql = f"UPDATE {table} SET {assignments} WHERE {where}"
        params = list(values.values()) + list(args or ())
        return self._run("update", sql, params, table=table).rowcount

    def delete(
        self,
        table: str,
        where: str | None = None,
        args: Sequence[Any] | None = None,
    ) -> int:
        sql = f"DELETE FROM {table}" + _clauses(where, None, None, None, None)
        return self._run("delete", sql, args or (), table=table).rowcount

    def count(self, table: str) -> int:
        row = self._run("count", f"SELECT COUNT(*) FROM {table}", table=table).fetchone()
        return int(row[0])

    def table_exists(self, table: str) -> bool:
        row = self._run(
            "table_exists",
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND lower(name) = lower(?)",
            (table,),
        ).fetchone()
        return row is not None

    def table_columns(self, table: str) -> dict[str, str]:
        """Map column name to upper-cased declared type; empty if the table is missing."""
        if not re.fullmatch(r"\w+", table):
            raise StoreError("table_columns", f"Invalid table name '{table}'")
        rows = self._run("table_columns", f"PRAGMA table_info({table})").fetchall()
        return {row["name"]: (row["type"] or "").upper() for row in rows}

    def list_tables(self) -> list[str]:
        rows = self._run(
            "list_tables",
            "SELECT name FROM sqlite_master WHERE type = 'table' "
            "AND name NOT LIKE 'sqlite_%' ORDER BY name",
        ).fetchall()
        return [row["name"] for row in rows]

    def drop_table(self, table: str) -> None:
        self._run("drop_table", f"DROP TABLE IF EXISTS {table};")

    def close(self) -> None:
        if not self._closed:
            self._conn.close()
            self._closed = True

    def __repr__(self) -> str:
        return f"Store(name={self.name!r}, db_path={self.db_path!r})"


_STORES: dict[str, Store] = {}


def _same_path(a: str, b: str) -> bool:
    if a == b:
        return True
    if MEMORY in (a, b):
        return False
    return os.path.abspath(a) == os.path.abspath(b)


def open_store(name: str, config: AutotableConfig | None = None) -> Store:
    """Return the registry's store for ``name``, opening it on first use."""
    cfg = config or AutotableConfig.from_env()
    target = parse_storage_target(name, cfg.data_dir)
    store = _STORES.get(name)
    if store is not None:
        if not _same_path(store.db_path, target.db_path):
            raise StoreError(
                "open_store",
                f"Store '{name}' is already open at '{store.db_path}', not '{target.db_path}'",
            )
        return store

    store = Store(name, target.db_path, journal_mode=cfg.journal_mode)
    _STORES[name] = store
    logger.debug("store_opened", store=name, path=target.db_path)
    return store


def close_store(name: str) -> bool:
    """Close and forget the store for ``name``. Returns False if it was not open."""
    store = _STORES.pop(name, None)
    if store is None:
        return False
    store.close()
    logger.debug("store_closed", store=name)
    return True


def close_all_stores() -> None:
    for name in list(_STORES):
        close_store(name)


def open_stores() -> dict[str, Store]:
    """Snapshot of the currently open stores keyed by name."""
    return dict(_STORES)


__all__ = [
    "MEMORY",
    "Store",
    "StorageTarget",
    "parse_storage_target",
    "open_store",
    "close_store",
    "close_all_stores",
    "open_stores",
]
