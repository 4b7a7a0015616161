# music_normalization/domain/raw.py

"""Records of the unnormalized input snapshot.

Values are kept as read: ids may be strings, durations may be text, and the
redundant genre columns are still present. Cleaning happens in the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class RawGenre:
    genre_id: Any
    name: str | None


@dataclass(slots=True)
class RawArtist:
    artist_id: Any
    name: str | None
    birth_date: str | None = None
    genre_id: Any = None
    genre: str | None = None  # redundant genre name


@dataclass(slots=True)
class RawAlbum:
    album_id: Any
    title: str | None
    release_date: str | None = None
    artist_id: Any = None
    genre: str | None = None  # transitively dependent on the artist


@dataclass(slots=True)
class RawTrack:
    track_id: Any
    title: str | None
    duration: Any = None
    album_id: Any = None
    artist_genre: str | None = None  # transitively dependent on the album


@dataclass(slots=True)
class RawSnapshot:
    """The four raw tables, each in input order."""

    genres: list[RawGenre] = field(default_factory=list)
    artists: list[RawArtist] = field(default_factory=list)
    albums: list[RawAlbum] = field(default_factory=list)
    tracks: list[RawTrack] = field(default_factory=list)
