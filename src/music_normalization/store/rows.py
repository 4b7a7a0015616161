# music_normalization/store/rows.py

"""Conversions between domain models and table rows."""

from __future__ import annotations

import sqlite3
from typing import Any

from music_normalization.domain.models import (
    Album,
    Artist,
    Genre,
    OperationLogEntry,
    OperationType,
    Track,
)
from music_normalization.domain.tables import OPERATION_LOG
from music_normalization.store.connection import MusicStore


def genre_to_row(genre: Genre) -> dict[str, Any]:
    return {"GenreID": genre.id, "Name": genre.name}


def artist_to_row(artist: Artist) -> dict[str, Any]:
    return {
        "ArtistID": artist.id,
        "Name": artist.name,
        "BirthDate": artist.birth_date,
        "GenreID": artist.genre_id,
    }


def album_to_row(album: Album) -> dict[str, Any]:
    return {
        "AlbumID": album.id,
        "Title": album.title,
        "ReleaseDate": album.release_date,
        "ReleaseDateNormalized": album.release_date_normalized,
        "ArtistID": album.artist_id,
    }


def track_to_row(track: Track) -> dict[str, Any]:
    return {
        "TrackID": track.id,
        "Title": track.title,
        "Duration": track.duration,
        "AlbumID": track.album_id,
    }


def genre_from_row(row: sqlite3.Row) -> Genre:
    return Genre(id=row["GenreID"], name=row["Name"])


def artist_from_row(row: sqlite3.Row) -> Artist:
    return Artist(
        id=row["ArtistID"],
        name=row["Name"],
        birth_date=row["BirthDate"],
        genre_id=row["GenreID"],
    )


def album_from_row(row: sqlite3.Row) -> Album:
    return Album(
        id=row["AlbumID"],
        title=row["Title"],
        artist_id=row["ArtistID"],
        release_date=row["ReleaseDate"],
        release_date_normalized=row["ReleaseDateNormalized"],
    )


def track_from_row(row: sqlite3.Row) -> Track:
    return Track(
        id=row["TrackID"],
        title=row["Title"],
        duration=row["Duration"],
        album_id=row["AlbumID"],
    )


def log_entry_from_row(row: sqlite3.Row) -> OperationLogEntry:
    return OperationLogEntry(
        id=row["LogID"],
        operation_type=OperationType(row["OperationType"]),
        table_name=row["TableName"],
        record_id=row["RecordID"],
        timestamp=row["Timestamp"],
    )


def load_genres(store: MusicStore) -> list[Genre]:
    return [genre_from_row(r) for r in store.query("SELECT * FROM Genres ORDER BY GenreID")]


def load_artists(store: MusicStore) -> list[Artist]:
    return [artist_from_row(r) for r in store.query("SELECT * FROM Artists ORDER BY ArtistID")]


def load_albums(store: MusicStore) -> list[Album]:
    return [album_from_row(r) for r in store.query("SELECT * FROM Albums ORDER BY AlbumID")]


def load_tracks(store: MusicStore) -> list[Track]:
    return [track_from_row(r) for r in store.query("SELECT * FROM Tracks ORDER BY TrackID")]


def load_operation_log(store: MusicStore) -> list[OperationLogEntry]:
    rows = store.query(f"SELECT * FROM {OPERATION_LOG} ORDER BY LogID")
    return [log_entry_from_row(r) for r in rows]
