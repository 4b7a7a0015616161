# music_normalization/pipeline/normalizer.py

"""Stage 3: deduplicate, trim and validate staged rows, then publish them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

from music_normalization.cleaning.fields import is_adult, normalize_date, normalize_name
from music_normalization.domain.tables import ALBUMS, ARTISTS, TABLES, TRACKS
from music_normalization.pipeline.referential import remove_orphans
from music_normalization.store.connection import MusicStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class NormalizationReport:
    """Row counts produced by one normalization pass."""

    duplicates_removed: dict[str, int] = field(default_factory=dict)
    blank_text_removed: dict[str, int] = field(default_factory=dict)
    invalid_removed: dict[str, int] = field(default_factory=dict)
    cascaded_orphans: dict[str, int] = field(default_factory=dict)
    dates_normalized: int = 0
    dates_unparseable: int = 0


def _sql_is_adult(birth_date: str | None, today: str) -> int:
    return int(is_adult(birth_date, date.fromisoformat(today)))


def register_sql_functions(store: MusicStore) -> None:
    """Make the field rules callable from SQL on this connection."""
    store.register_function("normalize_date", 1, normalize_date)
    store.register_function("normalize_name", 1, normalize_name)
    store.register_function("is_adult", 2, _sql_is_adult)


def deduplicate(store: MusicStore) -> dict[str, int]:
    """Keep one row per key: the first one staged (smallest rowid).

    Rows without a key cannot be identified and are dropped as well.
    """
    removed: dict[str, int] = {}
    for table in TABLES:
        key = table.primary_key
        staged = table.staging_name
        no_key = store.execute(f"DELETE FROM {staged} WHERE {key} IS NULL").rowcount
        duplicates = store.execute(
            f"DELETE FROM {staged} WHERE rowid NOT IN "
            f"(SELECT MIN(rowid) FROM {staged} GROUP BY {key})"
        ).rowcount
        removed[table.name] = no_key + duplicates
        if removed[table.name]:
            logger.info(
                "Removed %s duplicate or keyless rows from %s.",
                removed[table.name],
                table.name,
            )
    return removed


def normalize_text_fields(store: MusicStore) -> dict[str, int]:
    """Trim flagged free-text fields; drop rows left null or empty."""
    removed: dict[str, int] = {}
    for table in TABLES:
        removed[table.name] = 0
        for column in table.text_fields:
            store.execute(
                f"UPDATE {table.staging_name} SET {column} = normalize_name({column})"
            )
            removed[table.name] += store.execute(
                f"DELETE FROM {table.staging_name} WHERE {column} IS NULL"
            ).rowcount
        if removed[table.name]:
            logger.info(
                "Dropped %s %s rows with blank text.", removed[table.name], table.name
            )
    return removed


def drop_invalid_rows(store: MusicStore, today: date) -> dict[str, int]:
    """Exclude rows the live constraints would reject.

    Non-integer keys, blank titles, missing or non-positive durations and
    under-age or unreadable birth dates are removed rather than raised.
    """
    removed: dict[str, int] = {}
    for table in TABLES:
        removed[table.name] = store.execute(
            f"DELETE FROM {table.staging_name} "
            f"WHERE typeof({table.primary_key}) != 'integer'"
        ).rowcount

    removed[ARTISTS.name] += store.execute(
        f"DELETE FROM {ARTISTS.staging_name} "
        "WHERE BirthDate IS NOT NULL AND NOT is_adult(BirthDate, ?)",
        (today.isoformat(),),
    ).rowcount
    removed[ALBUMS.name] += store.execute(
        f"DELETE FROM {ALBUMS.staging_name} "
        "WHERE Title IS NULL OR length(trim(Title)) = 0"
    ).rowcount
    removed[TRACKS.name] += store.execute(
        f"DELETE FROM {TRACKS.staging_name} "
        "WHERE Title IS NULL OR length(trim(Title)) = 0 "
        "OR Duration IS NULL OR typeof(Duration) != 'integer' OR Duration <= 0"
    ).rowcount

    for name, count in removed.items():
        if count:
            logger.info("Excluded %s invalid %s rows.", count, name)
    return removed


def normalize_release_dates(store: MusicStore) -> tuple[int, int]:
    """Fill ReleaseDateNormalized. Returns (normalized, unparseable) counts.

    Unparseable dates become null; they are counted, never raised.
    """
    staged = ALBUMS.staging_name
    store.execute(
        f"UPDATE {staged} SET ReleaseDateNormalized = normalize_date(ReleaseDate)"
    )
    normalized = store.count(staged, "ReleaseDateNormalized IS NOT NULL")
    unparseable = store.count(
        staged, "ReleaseDate IS NOT NULL AND ReleaseDateNormalized IS NULL"
    )
    if unparseable:
        logger.info("%s release dates could not be normalized.", unparseable)
    return normalized, unparseable


def normalize_fields(store: MusicStore, today: date) -> NormalizationReport:
    """Run every normalization step over the staged tables, in order."""
    register_sql_functions(store)

    report = NormalizationReport()
    report.duplicates_removed = deduplicate(store)
    report.blank_text_removed = normalize_text_fields(store)
    report.invalid_removed = drop_invalid_rows(store, today)
    # Children of rows excluded above would otherwise survive as orphans.
    report.cascaded_orphans = remove_orphans(store)
    report.dates_normalized, report.dates_unparseable = normalize_release_dates(store)
    return report


def publish(store: MusicStore) -> dict[str, int]:
    """Replace the domain tables' rows with the staged rows.

    Children are cleared before parents and parents are filled before
    children, so foreign keys hold at every statement. OperationLog is
    left untouched.
    """
    for table in reversed(TABLES):
        replaced = store.execute(f"DELETE FROM {table.name}").rowcount
        if replaced:
            logger.warning("Replacing %s existing rows in %s.", replaced, table.name)

    published: dict[str, int] = {}
    for table in TABLES:
        columns = ", ".join(table.columns)
        published[table.name] = store.execute(
            f"INSERT INTO {table.name} ({columns}) "
            f"SELECT {columns} FROM {table.staging_name} ORDER BY rowid"
        ).rowcount
    logger.info("Published normalized rows: %s", published)
    return published
