# music_normalization/pipeline/staging.py

"""Load a raw snapshot into per-connection staging tables.

Staging tables mirror the normalized column layout without constraints.
Declared column types give SQLite's type affinity a chance to coerce
numeric text ("7", "245") to integers. The implicit rowid records input
order, which deduplication relies on.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from music_normalization.domain.raw import RawArtist, RawGenre, RawSnapshot
from music_normalization.domain.tables import ALBUMS, ARTISTS, GENRES, TABLES, TRACKS, TableDef
from music_normalization.store.connection import MusicStore

logger = logging.getLogger(__name__)

STAGING_DDL: dict[str, str] = {
    GENRES.name: "GenreID INTEGER, Name TEXT",
    ARTISTS.name: "ArtistID INTEGER, Name TEXT, BirthDate TEXT, GenreID INTEGER",
    ALBUMS.name: (
        "AlbumID INTEGER, Title TEXT, ReleaseDate TEXT, "
        "ReleaseDateNormalized TEXT, ArtistID INTEGER"
    ),
    TRACKS.name: "TrackID INTEGER, Title TEXT, Duration INTEGER, AlbumID INTEGER",
}


def _genre_key(name: str) -> str:
    return name.strip().casefold()


def factor_genres(
    genres: list[RawGenre], artists: list[RawArtist]
) -> tuple[list[RawGenre], list[RawArtist]]:
    """Move the redundant artist genre text into the Genres table.

    Artists with a GenreID keep it. Artists with only a genre name get the
    id of the matching genre (trimmed, case-insensitive); unknown names
    become new genres numbered after the highest existing integer id.
    """
    genres = list(genres)
    by_name: dict[str, Any] = {}
    next_id = 1
    for genre in genres:
        if isinstance(genre.name, str) and genre.name.strip():
            by_name.setdefault(_genre_key(genre.name), genre.genre_id)
        try:
            next_id = max(next_id, int(genre.genre_id) + 1)
        except (TypeError, ValueError):
            continue

    factored: list[RawArtist] = []
    created = 0
    for artist in artists:
        name = artist.genre
        if artist.genre_id is not None or not isinstance(name, str) or not name.strip():
            factored.append(artist)
            continue

        key = _genre_key(name)
        if key not in by_name:
            genres.append(RawGenre(genre_id=next_id, name=name.strip()))
            by_name[key] = next_id
            next_id += 1
            created += 1

        factored.append(
            RawArtist(
                artist_id=artist.artist_id,
                name=artist.name,
                birth_date=artist.birth_date,
                genre_id=by_name[key],
                genre=artist.genre,
            )
        )

    if created:
        logger.info("Factored %s new genres out of artist rows.", created)
    return genres, factored


def create_staging_tables(store: MusicStore) -> None:
    """(Re)create empty TEMP staging tables for every domain table."""
    for table in TABLES:
        store.execute(f"DROP TABLE IF EXISTS temp.{table.staging_name}")
        store.execute(f"CREATE TEMP TABLE {table.staging_name} ({STAGING_DDL[table.name]})")


def drop_staging_tables(store: MusicStore) -> None:
    for table in TABLES:
        store.execute(f"DROP TABLE IF EXISTS temp.{table.staging_name}")


SQLITE_INT_MIN = -(2**63)
SQLITE_INT_MAX = 2**63 - 1


def is_bindable(value: Any) -> bool:
    """True if sqlite3 can store `value` in a staging column as is."""
    if value is None or isinstance(value, (str, float)):
        return True
    if isinstance(value, int):
        return SQLITE_INT_MIN <= value <= SQLITE_INT_MAX
    return False


def _insert_rows(
    store: MusicStore,
    table: TableDef,
    rows: Iterable[tuple[Any, ...]],
    columns: tuple[str, ...],
) -> int:
    values = []
    skipped = 0
    for row in rows:
        if all(is_bindable(v) for v in row):
            values.append(row)
        else:
            skipped += 1
            logger.debug("Unstorable raw %s row: %r", table.name, row)
    if skipped:
        logger.warning(
            "Skipped %s raw %s rows holding nested or out-of-range values.",
            skipped,
            table.name,
        )

    sql = (
        f"INSERT INTO {table.staging_name} ({', '.join(columns)}) "
        f"VALUES ({', '.join('?' for _ in columns)})"
    )
    store.executemany(sql, values)
    return len(values)


def stage_snapshot(store: MusicStore, snapshot: RawSnapshot) -> dict[str, int]:
    """Copy a raw snapshot into fresh staging tables. Returns row counts.

    Rows holding a value sqlite3 cannot bind (a JSON list or object, an
    integer beyond 64 bits) are skipped and left out of the counts.

    The redundant Album.Genre and Track.ArtistGenre values are not staged.
    """
    genres, artists = factor_genres(snapshot.genres, snapshot.artists)

    create_staging_tables(store)
    counts = {
        GENRES.name: _insert_rows(
            store,
            GENRES,
            ((g.genre_id, g.name) for g in genres),
            ("GenreID", "Name"),
        ),
        ARTISTS.name: _insert_rows(
            store,
            ARTISTS,
            ((a.artist_id, a.name, a.birth_date, a.genre_id) for a in artists),
            ("ArtistID", "Name", "BirthDate", "GenreID"),
        ),
        ALBUMS.name: _insert_rows(
            store,
            ALBUMS,
            ((a.album_id, a.title, a.release_date, a.artist_id) for a in snapshot.albums),
            ("AlbumID", "Title", "ReleaseDate", "ArtistID"),
        ),
        TRACKS.name: _insert_rows(
            store,
            TRACKS,
            ((t.track_id, t.title, t.duration, t.album_id) for t in snapshot.tracks),
            ("TrackID", "Title", "Duration", "AlbumID"),
        ),
    }
    logger.info("Staged raw rows: %s", counts)
    return counts
