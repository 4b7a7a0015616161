"""Tests for the standing integrity and audit hooks."""

from __future__ import annotations

from datetime import date

import pytest

from music_normalization.domain.models import Album, Artist, Genre, OperationType, Track
from music_normalization.errors import ConstraintViolation, IntegrityViolation, ValidationError
from music_normalization.pipeline.guard import install_integrity_guard
from music_normalization.pipeline.schema import create_schema
from music_normalization.store.connection import MusicStore
from music_normalization.store.rows import (
    album_to_row,
    artist_to_row,
    genre_to_row,
    load_artists,
    load_genres,
    load_operation_log,
    track_to_row,
)

FIXED_TIME = "2026-01-01 12:00:00"


@pytest.fixture
def guarded(store: MusicStore, today: date) -> MusicStore:
    create_schema(store)
    install_integrity_guard(store, today=lambda: today, clock=lambda: FIXED_TIME)
    return store


def test_album_with_unknown_artist_is_rejected(guarded: MusicStore) -> None:
    before = guarded.count("Albums")

    with pytest.raises(IntegrityViolation, match="Invalid ArtistID"):
        guarded.insert("Albums", album_to_row(Album(id=1, title="Lost", artist_id=404)))

    assert guarded.count("Albums") == before


def test_album_without_artist_is_rejected(guarded: MusicStore) -> None:
    with pytest.raises(ValidationError):
        guarded.insert("Albums", album_to_row(Album(id=1, title="Loose", artist_id=None)))


def test_artist_insert_is_audited(guarded: MusicStore) -> None:
    before = guarded.count("OperationLog")

    guarded.insert("Artists", artist_to_row(Artist(id=9, name="Nina", birth_date="1990-01-01")))

    entries = load_operation_log(guarded)
    assert guarded.count("OperationLog") == before + 1
    assert entries[-1].operation_type is OperationType.INSERT
    assert entries[-1].table_name == "Artists"
    assert entries[-1].record_id == 9
    assert entries[-1].timestamp == FIXED_TIME


def test_valid_album_and_track_are_accepted(guarded: MusicStore) -> None:
    guarded.insert("Artists", artist_to_row(Artist(id=1, name="Bob")))
    guarded.insert(
        "Albums",
        album_to_row(Album(id=10, title="First", artist_id=1, release_date="3/4/23")),
    )
    guarded.insert("Tracks", track_to_row(Track(id=100, title="Song", duration=200, album_id=10)))

    assert guarded.count("Albums") == 1
    assert guarded.count("Tracks") == 1
    # Only artist writes are audited.
    assert guarded.count("OperationLog") == 1


def test_track_with_unknown_album_is_rejected(guarded: MusicStore) -> None:
    with pytest.raises(IntegrityViolation, match="Invalid AlbumID"):
        guarded.insert("Tracks", track_to_row(Track(id=1, title="Lost", duration=60, album_id=3)))


def test_underage_artist_is_rejected_without_log_entry(guarded: MusicStore) -> None:
    with pytest.raises(ConstraintViolation):
        guarded.insert("Artists", artist_to_row(Artist(id=5, name="Kid", birth_date="2015-01-01")))

    assert guarded.count("Artists") == 0
    assert guarded.count("OperationLog") == 0


def test_age_check_is_reevaluated_against_the_clock(store: MusicStore) -> None:
    create_schema(store)
    current = {"today": date(2020, 1, 1)}
    install_integrity_guard(store, today=lambda: current["today"])
    row = artist_to_row(Artist(id=1, name="Teen", birth_date="2005-06-01"))

    with pytest.raises(ConstraintViolation):
        store.insert("Artists", row)

    current["today"] = date(2026, 1, 1)
    assert store.insert("Artists", row) == 1


def test_artist_with_blank_name_is_rejected_without_log_entry(guarded: MusicStore) -> None:
    with pytest.raises(ConstraintViolation):
        guarded.insert("Artists", {"ArtistID": 1, "Name": "   "})

    assert guarded.count("OperationLog") == 0


def test_update_and_delete_can_be_audited(store: MusicStore) -> None:
    create_schema(store)
    install_integrity_guard(
        store,
        clock=lambda: FIXED_TIME,
        audited_operations=(OperationType.INSERT, OperationType.UPDATE, OperationType.DELETE),
    )

    store.insert("Artists", {"ArtistID": 1, "Name": "Bob"})
    store.update("Artists", 1, {"Name": "Robert"})
    store.delete("Artists", 1)

    assert [e.operation_type for e in load_operation_log(store)] == [
        OperationType.INSERT,
        OperationType.UPDATE,
        OperationType.DELETE,
    ]


def test_update_to_unknown_artist_is_rejected(guarded: MusicStore) -> None:
    guarded.insert("Artists", {"ArtistID": 1, "Name": "Bob"})
    guarded.insert("Albums", {"AlbumID": 1, "Title": "First", "ArtistID": 1})

    with pytest.raises(IntegrityViolation):
        guarded.update("Albums", 1, {"ArtistID": 2})

    assert guarded.get("Albums", 1)["ArtistID"] == 1


def test_installing_twice_does_not_duplicate_log_entries(guarded: MusicStore) -> None:
    install_integrity_guard(guarded, clock=lambda: FIXED_TIME)

    guarded.insert("Artists", {"ArtistID": 1, "Name": "Bob"})

    assert guarded.count("OperationLog") == 1


def test_foreign_key_column_matches_any_case(guarded: MusicStore) -> None:
    guarded.insert("Artists", {"ArtistID": 1, "Name": "Bob"})

    guarded.insert("Albums", {"AlbumID": 1, "Title": "T", "artistid": 1})

    with pytest.raises(IntegrityViolation, match="Invalid ArtistID"):
        guarded.update("Albums", 1, {"ARTISTID": 2})
    assert guarded.get("Albums", 1)["ArtistID"] == 1


def test_age_check_matches_any_case(guarded: MusicStore) -> None:
    with pytest.raises(ConstraintViolation):
        guarded.insert("Artists", {"ArtistID": 5, "Name": "Kid", "birthdate": "2015-01-01"})


def test_artist_in_known_genre_is_accepted(guarded: MusicStore) -> None:
    guarded.insert("Genres", genre_to_row(Genre(id=1, name="Jazz")))
    guarded.insert("Artists", artist_to_row(Artist(id=2, name="Nina", genre_id=1)))

    assert [(g.id, g.name) for g in load_genres(guarded)] == [(1, "Jazz")]
    assert load_artists(guarded)[0].genre_id == 1
