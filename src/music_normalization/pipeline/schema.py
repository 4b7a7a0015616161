# music_normalization/pipeline/schema.py

"""Stage 1: create the normalized target schema."""

from __future__ import annotations

import logging
import sqlite3

from music_normalization.domain.tables import (
    OPERATION_LOG,
    OPERATION_LOG_COLUMNS,
    TABLES,
)
from music_normalization.errors import SchemaError
from music_normalization.store.connection import MusicStore

logger = logging.getLogger(__name__)

# Parents first so REFERENCES always name an existing table.
TABLE_DDL: dict[str, str] = {
    "Genres": """
        CREATE TABLE IF NOT EXISTS Genres (
            GenreID INTEGER PRIMARY KEY,
            Name TEXT NOT NULL CHECK (length(trim(Name)) > 0)
        )
    """,
    "Artists": """
        CREATE TABLE IF NOT EXISTS Artists (
            ArtistID INTEGER PRIMARY KEY,
            Name TEXT NOT NULL CHECK (length(trim(Name)) > 0),
            BirthDate TEXT,
            GenreID INTEGER REFERENCES Genres(GenreID)
        )
    """,
    "Albums": """
        CREATE TABLE IF NOT EXISTS Albums (
            AlbumID INTEGER PRIMARY KEY,
            Title TEXT NOT NULL CHECK (length(trim(Title)) > 0),
            ReleaseDate TEXT,
            ReleaseDateNormalized TEXT,
            ArtistID INTEGER REFERENCES Artists(ArtistID)
        )
    """,
    "Tracks": """
        CREATE TABLE IF NOT EXISTS Tracks (
            TrackID INTEGER PRIMARY KEY,
            Title TEXT NOT NULL CHECK (length(trim(Title)) > 0),
            Duration INTEGER NOT NULL CHECK (typeof(Duration) = 'integer' AND Duration > 0),
            AlbumID INTEGER REFERENCES Albums(AlbumID)
        )
    """,
    OPERATION_LOG: """
        CREATE TABLE IF NOT EXISTS OperationLog (
            LogID INTEGER PRIMARY KEY AUTOINCREMENT,
            OperationType TEXT NOT NULL CHECK (OperationType IN ('INSERT', 'UPDATE', 'DELETE')),
            TableName TEXT NOT NULL,
            RecordID INTEGER,
            Timestamp TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """,
}

INDEX_DDL: dict[str, str] = {
    "idx_artists_genre": "CREATE INDEX IF NOT EXISTS idx_artists_genre ON Artists(GenreID)",
    "idx_artists_name": "CREATE INDEX IF NOT EXISTS idx_artists_name ON Artists(Name)",
    "idx_albums_artist": "CREATE INDEX IF NOT EXISTS idx_albums_artist ON Albums(ArtistID)",
    "idx_albums_release": (
        "CREATE INDEX IF NOT EXISTS idx_albums_release ON Albums(ReleaseDateNormalized)"
    ),
    "idx_tracks_album": "CREATE INDEX IF NOT EXISTS idx_tracks_album ON Tracks(AlbumID)",
    "idx_log_table_record": (
        "CREATE INDEX IF NOT EXISTS idx_log_table_record ON OperationLog(TableName, RecordID)"
    ),
}

EXPECTED_COLUMNS: dict[str, tuple[str, ...]] = {
    **{table.name: table.columns for table in TABLES},
    OPERATION_LOG: OPERATION_LOG_COLUMNS,
}


def create_schema(store: MusicStore) -> None:
    """Create all tables and indexes if absent.

    Safe to re-run: existing tables and their rows are left alone. Raises
    SchemaError if a table of the same name exists with a different layout.
    """
    with store.transaction():
        for name, ddl in TABLE_DDL.items():
            _run_ddl(store, name, ddl)
            verify_table(store, name)
        for name, ddl in INDEX_DDL.items():
            _run_ddl(store, name, ddl)

    logger.info(
        "Schema ready: %s tables, %s indexes.", len(TABLE_DDL), len(INDEX_DDL)
    )


def verify_table(store: MusicStore, name: str) -> None:
    """Raise SchemaError if `name` lacks any expected column."""
    existing = set(store.table_columns(name))
    missing = [c for c in EXPECTED_COLUMNS[name] if c not in existing]
    if missing:
        msg = (
            f"Existing table {name} is incompatible with the normalized schema; "
            f"missing columns: {', '.join(missing)}"
        )
        raise SchemaError(msg)


def _run_ddl(store: MusicStore, name: str, ddl: str) -> None:
    try:
        store.execute(ddl)
    except sqlite3.DatabaseError as exc:
        msg = f"Could not create {name}: {exc}"
        raise SchemaError(msg) from exc
