# music_normalization/domain/tables.py

"""Table layout shared by the schema definer, the cleaners and the guard."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ForeignKey:
    column: str
    parent: str
    parent_column: str


@dataclass(frozen=True, slots=True)
class TableDef:
    """Column layout of one normalized table."""

    name: str
    primary_key: str
    columns: tuple[str, ...]
    foreign_key: ForeignKey | None = None
    # Free-text columns trimmed by the normalizer; null/blank rows are dropped.
    text_fields: tuple[str, ...] = ()

    @property
    def staging_name(self) -> str:
        return f"staging_{self.name.lower()}"


GENRES = TableDef(
    name="Genres",
    primary_key="GenreID",
    columns=("GenreID", "Name"),
    text_fields=("Name",),
)

ARTISTS = TableDef(
    name="Artists",
    primary_key="ArtistID",
    columns=("ArtistID", "Name", "BirthDate", "GenreID"),
    foreign_key=ForeignKey("GenreID", "Genres", "GenreID"),
    text_fields=("Name",),
)

ALBUMS = TableDef(
    name="Albums",
    primary_key="AlbumID",
    columns=("AlbumID", "Title", "ReleaseDate", "ReleaseDateNormalized", "ArtistID"),
    foreign_key=ForeignKey("ArtistID", "Artists", "ArtistID"),
)

TRACKS = TableDef(
    name="Tracks",
    primary_key="TrackID",
    columns=("TrackID", "Title", "Duration", "AlbumID"),
    foreign_key=ForeignKey("AlbumID", "Albums", "AlbumID"),
)

# Dependency order: every table's parent comes before it.
TABLES: tuple[TableDef, ...] = (GENRES, ARTISTS, ALBUMS, TRACKS)

TABLES_BY_NAME: dict[str, TableDef] = {t.name: t for t in TABLES}

OPERATION_LOG = "OperationLog"
OPERATION_LOG_COLUMNS = ("LogID", "OperationType", "TableName", "RecordID", "Timestamp")
