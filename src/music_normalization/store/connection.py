# music_normalization/store/connection.py

from __future__ import annotations

import logging
import re
import sqlite3
from collections import defaultdict
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from music_normalization.errors import ConstraintViolation, IntegrityViolation
from music_normalization.store.hooks import StoreHook

logger = logging.getLogger(__name__)

MEMORY = ":memory:"

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")


def check_identifier(name: str) -> str:
    """Return `name` if it is safe to splice into SQL as a table/column name."""
    if not _IDENTIFIER.match(name):
        msg = f"Invalid SQL identifier: {name!r}"
        raise ValueError(msg)
    return name


class MusicStore:
    """SQLite-backed store with scoped transactions and per-table hooks.

    Autocommit is disabled at the sqlite3 level (isolation_level=None) so
    that `transaction()` controls BEGIN/COMMIT explicitly. Nested
    `transaction()` blocks become SAVEPOINTs.

    Hooks registered with `register_hook` run around `insert`, `update`
    and `delete` inside the same transaction as the write. Plain `execute`
    bypasses them.
    """

    def __init__(self, path: str | Path = MEMORY) -> None:
        self._path = str(path)
        if self._path != MEMORY:
            Path(self._path).parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(self._path, isolation_level=None)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")

        self._depth = 0
        self._hooks: dict[str, list[StoreHook]] = defaultdict(list)
        self._primary_keys: dict[str, str] = {}

        logger.debug("Opened store at %s.", self._path)

    @property
    def path(self) -> str:
        return self._path

    def close(self) -> None:
        """Close the underlying connection."""
        self._conn.close()

    def __enter__(self) -> "MusicStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.close()

    # ------------------------------------------------------------------
    # Raw SQL
    # ------------------------------------------------------------------

    def execute(self, sql: str, params: Sequence[Any] | Mapping[str, Any] = ()) -> sqlite3.Cursor:
        return self._conn.execute(sql, params)

    def executemany(self, sql: str, rows: Iterable[Sequence[Any]]) -> sqlite3.Cursor:
        return self._conn.executemany(sql, rows)

    def query(
        self, sql: str, params: Sequence[Any] | Mapping[str, Any] = ()
    ) -> list[sqlite3.Row]:
        return self._conn.execute(sql, params).fetchall()

    def query_one(
        self, sql: str, params: Sequence[Any] | Mapping[str, Any] = ()
    ) -> sqlite3.Row | None:
        return self._conn.execute(sql, params).fetchone()

    def count(self, table: str, where: str | None = None, params: Sequence[Any] = ()) -> int:
        """Return the number of rows in `table`, optionally filtered."""
        sql = f"SELECT COUNT(*) FROM {check_identifier(table)}"
        if where:
            sql += f" WHERE {where}"
        return int(self._conn.execute(sql, params).fetchone()[0])

    def table_exists(self, name: str) -> bool:
        row = self.query_one(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ? "
            "UNION ALL SELECT 1 FROM sqlite_temp_master WHERE type = 'table' AND name = ?",
            (name, name),
        )
        return row is not None

    def table_columns(self, name: str) -> list[str]:
        rows = self.query(f"PRAGMA table_info({check_identifier(name)})")
        return [row["name"] for row in rows]

    def register_function(self, name: str, num_args: int, func: Callable[..., Any]) -> None:
        """Expose a Python function to SQL statements on this connection."""
        self._conn.create_function(name, num_args, func, deterministic=True)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @contextmanager
    def transaction(self) -> Iterator["MusicStore"]:
        """Run the block atomically. Any exception rolls the block back."""
        savepoint: str | None = None
        if self._depth == 0:
            self._conn.execute("BEGIN")
        else:
            savepoint = f"sp_{self._depth}"
            self._conn.execute(f"SAVEPOINT {savepoint}")
        self._depth += 1

        try:
            yield self
        except BaseException:
            self._depth -= 1
            if savepoint is None:
                self._conn.execute("ROLLBACK")
            else:
                self._conn.execute(f"ROLLBACK TO {savepoint}")
                self._conn.execute(f"RELEASE {savepoint}")
            raise
        else:
            self._depth -= 1
            if savepoint is None:
                self._conn.execute("COMMIT")
            else:
                self._conn.execute(f"RELEASE {savepoint}")

    # ------------------------------------------------------------------
    # Hooked row operations
    # ------------------------------------------------------------------

    def register_hook(self, table: str, hook: StoreHook) -> None:
        self._hooks[check_identifier(table)].append(hook)

    def hooks_for(self, table: str) -> tuple[StoreHook, ...]:
        return tuple(self._hooks.get(table, ()))

    def clear_hooks(self) -> None:
        self._hooks.clear()

    def primary_key(self, table: str) -> str:
        if table not in self._primary_keys:
            rows = self.query(f"PRAGMA table_info({check_identifier(table)})")
            keys = [row["name"] for row in rows if row["pk"]]
            if len(keys) != 1:
                msg = f"Table {table} has no single-column primary key."
                raise ValueError(msg)
            self._primary_keys[table] = keys[0]
        return self._primary_keys[table]

    def get(self, table: str, record_id: Any) -> sqlite3.Row | None:
        key = self.primary_key(table)
        return self.query_one(f"SELECT * FROM {table} WHERE {key} = ?", (record_id,))

    def exists(self, table: str, record_id: Any) -> bool:
        return self.get(table, record_id) is not None

    def insert(self, table: str, row: Mapping[str, Any]) -> int:
        """Insert one row, running before/after hooks. Returns the new rowid."""
        check_identifier(table)
        values = dict(row)
        columns = [check_identifier(c) for c in values]

        with self.transaction():
            for hook in self.hooks_for(table):
                hook.before_insert(self, table, values)

            sql = (
                f"INSERT INTO {table} ({', '.join(columns)}) "
                f"VALUES ({', '.join('?' for _ in columns)})"
            )
            cursor = self._write(table, sql, [values[c] for c in columns])
            record_id = int(cursor.lastrowid)

            for hook in self.hooks_for(table):
                hook.after_insert(self, table, values, record_id)

        logger.debug("Inserted %s row %s.", table, record_id)
        return record_id

    def update(self, table: str, record_id: Any, values: Mapping[str, Any]) -> int:
        """Update one row by primary key. Returns the number of rows changed."""
        key = self.primary_key(table)
        changes = dict(values)
        columns = [check_identifier(c) for c in changes]
        if not columns:
            return 0

        with self.transaction():
            for hook in self.hooks_for(table):
                hook.before_update(self, table, record_id, changes)

            assignments = ", ".join(f"{c} = ?" for c in columns)
            sql = f"UPDATE {table} SET {assignments} WHERE {key} = ?"
            cursor = self._write(table, sql, [changes[c] for c in columns] + [record_id])

            if cursor.rowcount:
                for hook in self.hooks_for(table):
                    hook.after_update(self, table, record_id, changes)

        return cursor.rowcount

    def delete(self, table: str, record_id: Any) -> int:
        """Delete one row by primary key. Returns the number of rows removed."""
        key = self.primary_key(table)

        with self.transaction():
            cursor = self._write(table, f"DELETE FROM {table} WHERE {key} = ?", [record_id])
            if cursor.rowcount:
                for hook in self.hooks_for(table):
                    hook.after_delete(self, table, record_id)

        return cursor.rowcount

    def _write(self, table: str, sql: str, params: Sequence[Any]) -> sqlite3.Cursor:
        try:
            return self._conn.execute(sql, params)
        except sqlite3.IntegrityError as exc:
            # RAISE(ABORT, ...) inside a reference trigger
            if exc.sqlite_errorname == "SQLITE_CONSTRAINT_TRIGGER":
                raise IntegrityViolation(str(exc)) from exc
            msg = f"{table}: {exc}"
            raise ConstraintViolation(msg) from exc
