# music_normalization/store/hooks.py

"""Per-table hooks invoked by MusicStore around every guarded mutation.

A hook rejects a write by raising from a `before_*` method; the store then
rolls back and the `after_*` methods never run. `after_*` methods run in
the same transaction as the write, so a failure there also undoes it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any

from music_normalization.cleaning.fields import is_adult
from music_normalization.domain.models import OperationType
from music_normalization.domain.tables import OPERATION_LOG
from music_normalization.errors import ConstraintViolation, IntegrityViolation

if TYPE_CHECKING:
    from music_normalization.store.connection import MusicStore

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def utc_timestamp() -> str:
    """Current UTC time in SQLite's CURRENT_TIMESTAMP format."""
    return datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)


def column_value(row: dict[str, Any], column: str) -> tuple[bool, Any]:
    """Look up `column` in `row` ignoring case, as SQLite resolves names.

    Returns (found, value).
    """
    if column in row:
        return True, row[column]
    wanted = column.casefold()
    for key, value in row.items():
        if key.casefold() == wanted:
            return True, value
    return False, None


class StoreHook:
    """Base hook. Every method is a no-op; subclasses override what they need."""

    def before_insert(self, store: MusicStore, table: str, row: dict[str, Any]) -> None:
        pass

    def after_insert(
        self, store: MusicStore, table: str, row: dict[str, Any], record_id: int
    ) -> None:
        pass

    def before_update(
        self, store: MusicStore, table: str, record_id: Any, changes: dict[str, Any]
    ) -> None:
        pass

    def after_update(
        self, store: MusicStore, table: str, record_id: Any, changes: dict[str, Any]
    ) -> None:
        pass

    def after_delete(self, store: MusicStore, table: str, record_id: Any) -> None:
        pass


class ForeignKeyGuard(StoreHook):
    """Reject rows whose mandatory parent reference does not resolve."""

    def __init__(self, column: str, parent: str, message: str) -> None:
        self.column = column
        self.parent = parent
        self.message = message

    def _check(self, store: MusicStore, table: str, value: Any) -> None:
        if value is None or not store.exists(self.parent, value):
            logger.info(
                "Rejected %s write: %s=%r not found in %s.",
                table,
                self.column,
                value,
                self.parent,
            )
            raise IntegrityViolation(self.message)

    def before_insert(self, store: MusicStore, table: str, row: dict[str, Any]) -> None:
        self._check(store, table, column_value(row, self.column)[1])

    def before_update(
        self, store: MusicStore, table: str, record_id: Any, changes: dict[str, Any]
    ) -> None:
        found, value = column_value(changes, self.column)
        if found:
            self._check(store, table, value)


class AgeGuard(StoreHook):
    """Enforce a minimum age on a birth-date column.

    The clock is read on every check, so the same row can pass today and
    would have failed last year. A null birth date passes, as it would a
    SQL CHECK.
    """

    def __init__(
        self,
        column: str = "BirthDate",
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.column = column
        self.clock = clock

    def _check(self, table: str, value: Any) -> None:
        if value is not None and not is_adult(value, self.clock()):
            msg = f"{table}: {self.column} {value!r} is under the minimum age"
            raise ConstraintViolation(msg)

    def before_insert(self, store: MusicStore, table: str, row: dict[str, Any]) -> None:
        self._check(table, column_value(row, self.column)[1])

    def before_update(
        self, store: MusicStore, table: str, record_id: Any, changes: dict[str, Any]
    ) -> None:
        found, value = column_value(changes, self.column)
        if found:
            self._check(table, value)


def record_operation(
    store: MusicStore,
    operation: OperationType,
    table: str,
    record_id: Any,
    timestamp: str | None = None,
) -> int:
    """Append one entry to the audit trail. Returns its LogID."""
    cursor = store.execute(
        f"INSERT INTO {OPERATION_LOG} (OperationType, TableName, RecordID, Timestamp) "
        "VALUES (?, ?, ?, ?)",
        (operation.value, table, record_id, timestamp or utc_timestamp()),
    )
    return int(cursor.lastrowid)


class AuditLogger(StoreHook):
    """Append an OperationLog entry after each configured mutation."""

    def __init__(
        self,
        operations: Iterable[OperationType] = (OperationType.INSERT,),
        clock: Callable[[], str] = utc_timestamp,
    ) -> None:
        self.operations = frozenset(operations)
        self.clock = clock

    def _log(self, store: MusicStore, operation: OperationType, table: str, record_id: Any) -> None:
        if operation in self.operations:
            record_operation(store, operation, table, record_id, self.clock())

    def after_insert(
        self, store: MusicStore, table: str, row: dict[str, Any], record_id: int
    ) -> None:
        self._log(store, OperationType.INSERT, table, record_id)

    def after_update(
        self, store: MusicStore, table: str, record_id: Any, changes: dict[str, Any]
    ) -> None:
        self._log(store, OperationType.UPDATE, table, record_id)

    def after_delete(self, store: MusicStore, table: str, record_id: Any) -> None:
        self._log(store, OperationType.DELETE, table, record_id)
