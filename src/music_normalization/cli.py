# src/music_normalization/cli.py

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from music_normalization.cleaning.fields import normalize_date, normalize_name
from music_normalization.config import get_database_path, get_raw_data_dir
from music_normalization.domain.models import Album, Artist
from music_normalization.domain.tables import OPERATION_LOG, TABLES
from music_normalization.errors import MigrationError
from music_normalization.io.raw_snapshot import load_raw_snapshot
from music_normalization.pipeline.guard import install_integrity_guard
from music_normalization.pipeline.runner import run_migration
from music_normalization.pipeline.schema import create_schema
from music_normalization.store.connection import MusicStore
from music_normalization.store.rows import album_to_row, artist_to_row

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    """Entry point for the music-normalization CLI."""
    args = _build_arg_parser().parse_args(argv)

    _configure_logging(verbose=args.verbose)

    if args.command == "normalize-date":
        result = normalize_date(args.value)
        print(result if result is not None else "null")
        return

    db_path = Path(args.db) if args.db else get_database_path()

    try:
        with MusicStore(db_path) as store:
            if args.command == "init-schema":
                create_schema(store)
            elif args.command == "migrate":
                _cmd_migrate(store, raw_dir=args.raw_dir, today=args.today)
            elif args.command == "verify":
                _cmd_verify(store)
            elif args.command == "add-artist":
                _cmd_add_artist(store, args)
            elif args.command == "add-album":
                _cmd_add_album(store, args)
            else:
                msg = f"Unknown command: {args.command}"
                raise ValueError(msg)
    except (MigrationError, FileNotFoundError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user. Exiting.")
        sys.exit(1)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="music-normalization",
        description="Normalize a raw music dataset into a guarded SQLite schema.",
    )

    parser.add_argument(
        "--db",
        default=None,
        help="SQLite database file (default: $MUSIC_NORMALIZATION_DB or data/music.db).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
        help="Sub-command to run.",
    )

    subparsers.add_parser(
        "init-schema",
        help="Create the normalized tables and indexes if absent.",
    )

    migrate_parser = subparsers.add_parser(
        "migrate",
        help="Clean, normalize and load a raw JSONL snapshot.",
    )
    migrate_parser.add_argument(
        "--raw-dir",
        default=None,
        help="Directory with genres/artists/albums/tracks.jsonl "
        "(default: $MUSIC_NORMALIZATION_RAW_DIR or data/raw).",
    )
    migrate_parser.add_argument(
        "--today",
        type=date.fromisoformat,
        default=None,
        help="Processing date for the age check, YYYY-MM-DD (default: today).",
    )

    subparsers.add_parser(
        "verify",
        help="Print row counts and referential checks for the normalized tables.",
    )

    date_parser = subparsers.add_parser(
        "normalize-date",
        help="Print the canonical form of an M/D/YY release date.",
    )
    date_parser.add_argument("value", help="Raw date, e.g. 3/4/23.")

    artist_parser = subparsers.add_parser(
        "add-artist",
        help="Insert one artist through the integrity guard.",
    )
    artist_parser.add_argument("--id", type=int, required=True)
    artist_parser.add_argument("--name", required=True)
    artist_parser.add_argument("--birth-date", default=None, help="YYYY-MM-DD.")
    artist_parser.add_argument("--genre-id", type=int, default=None)

    album_parser = subparsers.add_parser(
        "add-album",
        help="Insert one album through the integrity guard.",
    )
    album_parser.add_argument("--id", type=int, required=True)
    album_parser.add_argument("--title", required=True)
    album_parser.add_argument("--artist-id", type=int, required=True)
    album_parser.add_argument("--release-date", default=None, help="Raw M/D/YY date.")

    return parser


def _configure_logging(*, verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _cmd_migrate(store: MusicStore, *, raw_dir: str | None, today: date | None) -> None:
    directory = Path(raw_dir) if raw_dir else get_raw_data_dir()
    snapshot = load_raw_snapshot(directory)
    report = run_migration(store, snapshot, today=today)

    for table in TABLES:
        print(
            f"{table.name}: staged={report.staged.get(table.name, 0)} "
            f"published={report.published.get(table.name, 0)}"
        )
    print(
        f"Release dates: normalized={report.normalization.dates_normalized} "
        f"unparseable={report.normalization.dates_unparseable}"
    )


def _cmd_verify(store: MusicStore) -> None:
    create_schema(store)

    for table in TABLES:
        print(f"{table.name}: {store.count(table.name)}")
    print(f"{OPERATION_LOG}: {store.count(OPERATION_LOG)}")

    null_dates = store.count(
        "Albums", "ReleaseDate IS NOT NULL AND ReleaseDateNormalized IS NULL"
    )
    orphan_albums = store.count(
        "Albums",
        "ArtistID IS NOT NULL AND ArtistID NOT IN (SELECT ArtistID FROM Artists)",
    )
    orphan_tracks = store.count(
        "Tracks",
        "AlbumID IS NOT NULL AND AlbumID NOT IN (SELECT AlbumID FROM Albums)",
    )
    print(f"Unparseable release dates: {null_dates}")
    print(f"Orphan albums: {orphan_albums} | Orphan tracks: {orphan_tracks}")


def _cmd_add_artist(store: MusicStore, args: argparse.Namespace) -> None:
    create_schema(store)
    install_integrity_guard(store)

    artist = Artist(
        id=args.id,
        name=normalize_name(args.name) or "",
        birth_date=args.birth_date,
        genre_id=args.genre_id,
    )
    record_id = store.insert("Artists", artist_to_row(artist))
    logger.info("Inserted artist %s (%s).", record_id, artist.name)


def _cmd_add_album(store: MusicStore, args: argparse.Namespace) -> None:
    create_schema(store)
    install_integrity_guard(store)

    album = Album(
        id=args.id,
        title=args.title,
        artist_id=args.artist_id,
        release_date=args.release_date,
        release_date_normalized=normalize_date(args.release_date),
    )
    record_id = store.insert("Albums", album_to_row(album))
    logger.info("Inserted album %s (%s).", record_id, album.title)


if __name__ == "__main__":
    # python -m music_normalization.cli -v migrate --raw-dir data/raw
    # python -m music_normalization.cli normalize-date 3/4/23
    main()
