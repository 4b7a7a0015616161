# music_normalization/pipeline/guard.py

"""Stage 4: install the standing integrity hooks on a store."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from music_normalization.domain.models import OperationType
from music_normalization.domain.tables import ALBUMS, ARTISTS, TRACKS
from music_normalization.store.connection import MusicStore
from music_normalization.store.hooks import (
    AgeGuard,
    AuditLogger,
    ForeignKeyGuard,
    utc_timestamp,
)

logger = logging.getLogger(__name__)

INVALID_ARTIST_MESSAGE = "Invalid ArtistID"
INVALID_ALBUM_MESSAGE = "Invalid AlbumID"


def _reference_triggers() -> dict[str, str]:
    """Persistent copies of the foreign-key hooks.

    They catch writes made with raw SQL or from connections that never
    installed the hooks.
    """
    references = (
        (ALBUMS.name, "ArtistID", ARTISTS.name, INVALID_ARTIST_MESSAGE),
        (TRACKS.name, "AlbumID", ALBUMS.name, INVALID_ALBUM_MESSAGE),
    )
    triggers: dict[str, str] = {}
    for child, column, parent, message in references:
        for event in ("INSERT", f"UPDATE OF {column}"):
            name = f"trg_{child.lower()}_{column.lower()}_{event.split()[0].lower()}"
            triggers[name] = (
                f"CREATE TRIGGER IF NOT EXISTS {name} BEFORE {event} ON {child} "
                f"FOR EACH ROW WHEN NEW.{column} IS NULL OR NOT EXISTS "
                f"(SELECT 1 FROM {parent} WHERE {column} = NEW.{column}) "
                f"BEGIN SELECT RAISE(ABORT, '{message}'); END"
            )
    return triggers


TRIGGER_DDL = _reference_triggers()


def drop_integrity_triggers(store: MusicStore) -> None:
    """Remove the persistent reference triggers, e.g. before republishing."""
    for name in TRIGGER_DDL:
        store.execute(f"DROP TRIGGER IF EXISTS {name}")


def install_integrity_guard(
    store: MusicStore,
    *,
    today: Callable[[], date] = date.today,
    clock: Callable[[], str] = utc_timestamp,
    audited_operations: tuple[OperationType, ...] = (OperationType.INSERT,),
) -> None:
    """Register validation and audit hooks for later guarded writes.

    Hooks live on this store handle only; call again after reopening the
    database. Installing twice replaces the earlier hooks. The reference
    checks are also written to the database as triggers, which outlive
    the handle.
    """
    with store.transaction():
        for ddl in TRIGGER_DDL.values():
            store.execute(ddl)

    store.clear_hooks()

    store.register_hook(
        ALBUMS.name,
        ForeignKeyGuard("ArtistID", ARTISTS.name, INVALID_ARTIST_MESSAGE),
    )
    store.register_hook(
        TRACKS.name,
        ForeignKeyGuard("AlbumID", ALBUMS.name, INVALID_ALBUM_MESSAGE),
    )
    store.register_hook(ARTISTS.name, AgeGuard("BirthDate", clock=today))
    store.register_hook(
        ARTISTS.name,
        AuditLogger(operations=audited_operations, clock=clock),
    )

    logger.info(
        "Integrity guard installed (audited operations: %s).",
        ", ".join(op.value for op in audited_operations),
    )
