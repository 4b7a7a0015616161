"""Tests for loading the raw JSONL snapshot."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from music_normalization.domain.raw import RawSnapshot
from music_normalization.io.raw_snapshot import (
    artist_from_raw,
    load_raw_snapshot,
    save_raw_snapshot,
)


def test_artist_from_raw_accepts_raw_column_names() -> None:
    artist = artist_from_raw(
        {"ArtistID": 3, "Name": "Carol", "BirthDate": "1990-02-02", "Genre": "Jazz"}
    )

    assert artist.artist_id == 3
    assert artist.name == "Carol"
    assert artist.birth_date == "1990-02-02"
    assert artist.genre_id is None
    assert artist.genre == "Jazz"


def test_load_raw_snapshot_skips_invalid_lines(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    (tmp_path / "genres.jsonl").write_text('{"GenreID": 1, "Name": "Rock"}\n', encoding="utf-8")
    (tmp_path / "artists.jsonl").write_text(
        '{"artist_id": 1, "name": "Bob", "genre_id": 1}\n'
        "not json\n"
        "\n"
        "[1, 2]\n"
        '{"artist_id": 2, "name": "Dana"}\n',
        encoding="utf-8",
    )

    with caplog.at_level(logging.WARNING):
        snapshot = load_raw_snapshot(tmp_path)

    assert [g.name for g in snapshot.genres] == ["Rock"]
    assert [a.name for a in snapshot.artists] == ["Bob", "Dana"]
    assert snapshot.albums == []
    assert snapshot.tracks == []
    assert "Skipped 2 unreadable rows in artists.jsonl (lines 2, 4)" in caplog.text
    assert "albums.jsonl not found" in caplog.text


def test_load_raw_snapshot_requires_directory(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_raw_snapshot(tmp_path / "missing")


def test_saved_snapshot_loads_back(tmp_path: Path, snapshot: RawSnapshot) -> None:
    save_raw_snapshot(snapshot, tmp_path)

    loaded = load_raw_snapshot(tmp_path)

    assert loaded == snapshot
