# music_normalization/io/raw_snapshot.py

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import asdict
from pathlib import Path
from typing import Any

from music_normalization.domain.raw import (
    RawAlbum,
    RawArtist,
    RawGenre,
    RawSnapshot,
    RawTrack,
)

logger = logging.getLogger(__name__)

GENRES_FILE = "genres.jsonl"
ARTISTS_FILE = "artists.jsonl"
ALBUMS_FILE = "albums.jsonl"
TRACKS_FILE = "tracks.jsonl"


def _pick(raw: dict[str, Any], *keys: str) -> Any:
    """Return the first present key. Accepts snake_case or raw column spelling."""
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def genre_from_raw(raw: dict[str, Any]) -> RawGenre:
    return RawGenre(
        genre_id=_pick(raw, "genre_id", "GenreID", "id"),
        name=_pick(raw, "name", "Name", "GenreName"),
    )


def artist_from_raw(raw: dict[str, Any]) -> RawArtist:
    return RawArtist(
        artist_id=_pick(raw, "artist_id", "ArtistID", "id"),
        name=_pick(raw, "name", "Name", "ArtistName"),
        birth_date=_pick(raw, "birth_date", "BirthDate"),
        genre_id=_pick(raw, "genre_id", "GenreID"),
        genre=_pick(raw, "genre", "Genre"),
    )


def album_from_raw(raw: dict[str, Any]) -> RawAlbum:
    return RawAlbum(
        album_id=_pick(raw, "album_id", "AlbumID", "id"),
        title=_pick(raw, "title", "Title", "AlbumTitle"),
        release_date=_pick(raw, "release_date", "ReleaseDate"),
        artist_id=_pick(raw, "artist_id", "ArtistID"),
        genre=_pick(raw, "genre", "Genre"),
    )


def track_from_raw(raw: dict[str, Any]) -> RawTrack:
    return RawTrack(
        track_id=_pick(raw, "track_id", "TrackID", "id"),
        title=_pick(raw, "title", "Title", "TrackTitle"),
        duration=_pick(raw, "duration", "Duration"),
        album_id=_pick(raw, "album_id", "AlbumID"),
        artist_genre=_pick(raw, "artist_genre", "ArtistGenre"),
    )


def _read_table(path: Path) -> list[dict[str, Any]]:
    """Read one raw table, one JSON object per line.

    Blank lines are ignored. Lines that are not valid JSON, or that hold
    something other than an object, are skipped and tallied in a single
    warning per table.
    """
    if not path.exists():
        logger.warning("Raw table %s not found; treating it as empty.", path)
        return []

    records: list[dict[str, Any]] = []
    skipped: list[int] = []
    with path.open("r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError as exc:
                logger.debug("%s line %d is not JSON: %s", path.name, line_number, exc)
                skipped.append(line_number)
                continue
            if not isinstance(obj, dict):
                skipped.append(line_number)
                continue
            records.append(obj)

    if skipped:
        logger.warning(
            "Skipped %d unreadable rows in %s (lines %s).",
            len(skipped),
            path.name,
            ", ".join(str(n) for n in skipped),
        )
    return records


def _write_table(path: Path, records: Iterable[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        for record in records:
            f.write(json.dumps(record, ensure_ascii=False) + "\n")


def load_raw_snapshot(directory: str | Path) -> RawSnapshot:
    """Load the four raw tables from a directory of JSONL files."""
    root = Path(directory)
    if not root.is_dir():
        msg = f"Raw data directory not found: {root}"
        raise FileNotFoundError(msg)

    snapshot = RawSnapshot(
        genres=[genre_from_raw(r) for r in _read_table(root / GENRES_FILE)],
        artists=[artist_from_raw(r) for r in _read_table(root / ARTISTS_FILE)],
        albums=[album_from_raw(r) for r in _read_table(root / ALBUMS_FILE)],
        tracks=[track_from_raw(r) for r in _read_table(root / TRACKS_FILE)],
    )
    logger.info(
        "Loaded raw snapshot from %s: %s genres, %s artists, %s albums, %s tracks.",
        root,
        len(snapshot.genres),
        len(snapshot.artists),
        len(snapshot.albums),
        len(snapshot.tracks),
    )
    return snapshot


def save_raw_snapshot(snapshot: RawSnapshot, directory: str | Path) -> None:
    """Write a snapshot back out in the snake_case JSONL layout."""
    root = Path(directory)
    _write_table(root / GENRES_FILE, (asdict(g) for g in snapshot.genres))
    _write_table(root / ARTISTS_FILE, (asdict(a) for a in snapshot.artists))
    _write_table(root / ALBUMS_FILE, (asdict(a) for a in snapshot.albums))
    _write_table(root / TRACKS_FILE, (asdict(t) for t in snapshot.tracks))
