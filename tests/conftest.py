"""Shared fixtures: an in-memory store and a small dirty snapshot."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date

import pytest

from music_normalization.domain.raw import (
    RawAlbum,
    RawArtist,
    RawGenre,
    RawSnapshot,
    RawTrack,
)
from music_normalization.store.connection import MusicStore

TODAY = date(2026, 1, 1)


@pytest.fixture
def store() -> Iterator[MusicStore]:
    with MusicStore() as s:
        yield s


@pytest.fixture
def snapshot() -> RawSnapshot:
    return RawSnapshot(
        genres=[
            RawGenre(genre_id=1, name="Rock"),
            RawGenre(genre_id=2, name="Jazz"),
        ],
        artists=[
            RawArtist(artist_id=1, name=" Bob ", birth_date="1980-01-01", genre_id=1),
            RawArtist(artist_id=2, name="  ", birth_date="1975-05-05", genre_id=2),
            RawArtist(artist_id=3, name="Carol", birth_date="1990-02-02", genre_id=99),
            RawArtist(artist_id=1, name="Bob Duplicate", birth_date="1981-01-01", genre_id=2),
            RawArtist(artist_id=4, name="Dana", birth_date=None, genre="Pop"),
            RawArtist(artist_id=5, name="Kid", birth_date="2015-01-01", genre_id=1),
        ],
        albums=[
            RawAlbum(album_id=10, title="First", release_date="3/4/23", artist_id=1, genre="Rock"),
            RawAlbum(album_id=11, title="Second", release_date="12/31/99", artist_id=4),
            RawAlbum(album_id=12, title="Blank Artist", release_date="1/1/01", artist_id=2),
            RawAlbum(album_id=13, title="Ghost", release_date="1/1/01", artist_id=77),
            RawAlbum(album_id=14, title="No Artist", release_date="not-a-date", artist_id=None),
            RawAlbum(album_id=15, title="Kid Album", release_date="1/1/20", artist_id=5),
            RawAlbum(album_id=16, title="Carol Album", release_date="6/7/88", artist_id=3),
        ],
        tracks=[
            RawTrack(track_id=100, title="Song A", duration=200, album_id=10, artist_genre="Rock"),
            RawTrack(track_id=101, title="Song B", duration="245", album_id=11),
            RawTrack(track_id=102, title="Silent", duration=0, album_id=10),
            RawTrack(track_id=103, title="Ghost Track", duration=100, album_id=13),
            RawTrack(track_id=104, title="Blank Artist Track", duration=100, album_id=12),
            RawTrack(track_id=100, title="Song A Duplicate", duration=300, album_id=10),
            RawTrack(track_id=105, title="Carol Track", duration=100, album_id=16),
        ],
    )


@pytest.fixture
def today() -> date:
    return TODAY
