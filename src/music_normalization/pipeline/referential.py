# music_normalization/pipeline/referential.py

"""Stage 2: remove staged rows whose foreign key does not resolve."""

from __future__ import annotations

import logging

from music_normalization.domain.tables import TABLES, TABLES_BY_NAME, TableDef
from music_normalization.store.connection import MusicStore

logger = logging.getLogger(__name__)


def remove_table_orphans(store: MusicStore, table: TableDef) -> int:
    """Delete rows of one staged table whose non-null FK has no parent row.

    A null foreign key is an optional relationship, not an orphan.
    """
    fk = table.foreign_key
    if fk is None:
        return 0

    parent = TABLES_BY_NAME[fk.parent]
    # The IS NOT NULL filter matters: NOT IN over a set containing NULL is never true.
    cursor = store.execute(
        f"DELETE FROM {table.staging_name} "
        f"WHERE {fk.column} IS NOT NULL "
        f"AND {fk.column} NOT IN ("
        f"SELECT {fk.parent_column} FROM {parent.staging_name} "
        f"WHERE {fk.parent_column} IS NOT NULL)"
    )
    return cursor.rowcount


def remove_orphans(store: MusicStore) -> dict[str, int]:
    """Prune orphans level by level: Genres, Artists, Albums, Tracks.

    Each level runs against its parent's already-pruned rows, so deleting
    an artist also removes its albums and, through them, their tracks.
    Returns the number of rows removed per table.
    """
    removed: dict[str, int] = {}
    for table in TABLES:
        removed[table.name] = remove_table_orphans(store, table)
        if removed[table.name]:
            logger.info(
                "Removed %s orphan rows from %s.", removed[table.name], table.name
            )
    return removed
