# music_normalization/domain/models.py

"""Core domain models for the normalized music schema."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class OperationType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(slots=True)
class Genre:
    """A musical genre. Reachable from albums and tracks only via the artist."""

    id: int
    name: str


@dataclass(slots=True)
class Artist:
    """A performing artist."""

    id: int
    name: str
    birth_date: str | None = None  # ISO "YYYY-MM-DD"
    genre_id: int | None = None


@dataclass(slots=True)
class Album:
    """An album with its raw and canonical release dates."""

    id: int
    title: str
    artist_id: int | None
    release_date: str | None = None  # raw, e.g. "3/4/23"
    release_date_normalized: str | None = None  # "2023-03-04"


@dataclass(slots=True)
class Track:
    """A single track on an album."""

    id: int
    title: str
    duration: int  # seconds
    album_id: int | None


@dataclass(slots=True)
class OperationLogEntry:
    """One row of the append-only audit trail."""

    id: int
    operation_type: OperationType
    table_name: str
    record_id: int | None
    timestamp: str
